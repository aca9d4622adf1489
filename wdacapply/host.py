# Copyright (C) 2025 Juraj Marcin <juraj@jurajmarcin.com>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import ctypes
import sys
from dataclasses import dataclass
from logging import getLogger
from os import environ
from pathlib import Path, PureWindowsPath

_logger = getLogger(__name__)

MINIMUM_BUILD = 10240
# ConfigCI cannot compile PackageFamilyName rules or dynamic code security
# before Windows 10 1803
LEGACY_FEATURES_BUILD = 17134
BLOCKLIST_BUILD = 17763
MULTI_POLICY_BUILD = 18362
CITOOL_BUILD = 22621

DEFAULT_SYSTEM_ROOT = PureWindowsPath("C:/Windows")


def default_system_root() -> Path:
    return Path(environ.get("SystemRoot", str(DEFAULT_SYSTEM_ROOT)))


@dataclass(frozen=True, kw_only=True)
class HostPlatform:
    is_windows: bool
    is_admin: bool
    major: int
    build: int
    system_root: Path

    @property
    def code_integrity_path(self) -> Path:
        return self.system_root / "System32" / "CodeIntegrity"

    @property
    def single_policy_path(self) -> Path:
        return self.code_integrity_path / "SiPolicy.p7b"

    @property
    def active_policies_path(self) -> Path:
        return self.code_integrity_path / "CiPolicies" / "Active"

    @property
    def supports_multi_policy(self) -> bool:
        return self.build >= MULTI_POLICY_BUILD

    @property
    def supports_legacy_features(self) -> bool:
        return self.build >= LEGACY_FEATURES_BUILD

    @property
    def supports_blocklist(self) -> bool:
        return self.build >= BLOCKLIST_BUILD

    @property
    def has_citool(self) -> bool:
        return self.build >= CITOOL_BUILD

    @staticmethod
    def _is_admin() -> bool:
        try:
            return bool(ctypes.windll.shell32.IsUserAnAdmin())  # type: ignore
        except (AttributeError, OSError):
            _logger.debug("Unable to query administrator token membership")
            return False

    @staticmethod
    def detect(system_root: Path | None = None) -> "HostPlatform":
        if sys.platform != "win32":
            _logger.debug("Running on non-Windows platform %r", sys.platform)
            return HostPlatform(
                is_windows=False,
                is_admin=False,
                major=0,
                build=0,
                system_root=system_root or default_system_root(),
            )
        version = sys.getwindowsversion()  # type: ignore[attr-defined]
        host = HostPlatform(
            is_windows=True,
            is_admin=HostPlatform._is_admin(),
            major=version.major,
            build=version.build,
            system_root=system_root or default_system_root(),
        )
        _logger.debug("Detected host %r", host)
        return host
