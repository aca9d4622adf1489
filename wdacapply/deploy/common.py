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

import shutil
from logging import getLogger
from pathlib import Path

from wdacapply.config import Config
from wdacapply.host import MINIMUM_BUILD, HostPlatform
from wdacapply.types.reports import DeploymentReport

_logger = getLogger(__name__)


class DeployError(Exception):
    pass


class PrivilegeError(DeployError):
    pass


class UnsupportedOSError(DeployError):
    pass


class DownloadError(DeployError):
    pass


class PolicySchemaError(DeployError):
    pass


class UnsupportedPlatformError(DeployError):
    pass


class ToolError(DeployError):
    pass


class PolicyToolchain:
    def set_audit_mode(self, xml_path: Path, enabled: bool) -> None:
        del xml_path
        del enabled
        raise NotImplementedError()

    def compile(self, xml_path: Path, binary_path: Path) -> None:
        del xml_path
        del binary_path
        raise NotImplementedError()

    def refresh(self, host: HostPlatform, binary_path: Path) -> None:
        del host
        del binary_path
        raise NotImplementedError()


def check_host(host: HostPlatform) -> None:
    if not host.is_windows:
        raise UnsupportedOSError(
            "Windows Defender Application Control policies can only be deployed "
            "on Windows"
        )
    if not host.is_admin:
        raise PrivilegeError(
            "Administrator privileges are required, rerun from an elevated prompt"
        )
    if host.major < 10 or host.build < MINIMUM_BUILD:
        raise UnsupportedOSError(
            f"Windows {host.major} build {host.build} is not supported, "
            f"Windows 10 build {MINIMUM_BUILD} or newer is required"
        )


class PolicyDeployer:
    def __init__(
        self, config: Config, host: HostPlatform, toolchain: PolicyToolchain
    ) -> None:
        self._config = config
        self._host = host
        self._toolchain = toolchain

    def _install(self, binary: Path, destination: Path) -> None:
        _logger.info("Installing policy binary to %r", str(destination))
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(binary, destination)
        except OSError as ex:
            raise DeployError(
                f"Failed to copy policy binary to '{destination}': {ex}"
            ) from ex

    def _finish(self, report: DeploymentReport) -> DeploymentReport:
        if self._config.refresh:
            self._toolchain.refresh(self._host, report.destination)
            report.refreshed = True
            _logger.info("Policy has been activated")
        else:
            _logger.warning("Reboot the system for the policy to take effect")
        return report

    def deploy(self) -> DeploymentReport:
        raise NotImplementedError()
