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

from pathlib import Path
from subprocess import CalledProcessError

from wdacapply.deploy.common import PolicyToolchain, ToolError
from wdacapply.host import HostPlatform
from wdacapply.types.policy import AUDIT_MODE_OPTION_NUMBER
from wdacapply.utils.logging import get_logger
from wdacapply.utils.subprocess import ps_quote, run, run_powershell

_logger = get_logger(__name__)


class ConfigCIToolchain(PolicyToolchain):
    """Policy tools shipped with Windows.

    XML edits and compilation go through the ConfigCI PowerShell module,
    activation through CiTool on newer builds and the CI WMI provider
    elsewhere.
    """

    def __init__(self, powershell_path: Path, citool_path: Path) -> None:
        self._powershell_path = powershell_path
        self._citool_path = citool_path

    def _powershell(self, description: str, *statements: str) -> None:
        try:
            process = run_powershell(
                self._powershell_path,
                ("Import-Module ConfigCI", *statements),
                logger=_logger,
            )
        except FileNotFoundError as ex:
            raise ToolError(
                f"Failed to {description}: PowerShell binary "
                f"'{self._powershell_path}' not found"
            ) from ex
        except CalledProcessError as ex:
            raise ToolError(
                f"Failed to {description}: {(ex.stderr or ex.stdout or '').strip()}"
            ) from ex
        if process.stdout:
            _logger.verbose("%s", process.stdout.strip())

    def set_audit_mode(self, xml_path: Path, enabled: bool) -> None:
        _logger.info(
            "%s audit mode in %r", "Enabling" if enabled else "Disabling", str(xml_path)
        )
        statement = (
            f"Set-RuleOption -FilePath {ps_quote(xml_path)} "
            f"-Option {AUDIT_MODE_OPTION_NUMBER}"
        )
        if not enabled:
            statement += " -Delete"
        self._powershell("set audit mode rule option", statement)

    def compile(self, xml_path: Path, binary_path: Path) -> None:
        _logger.info("Compiling %r to %r", str(xml_path), str(binary_path))
        self._powershell(
            "compile policy",
            f"ConvertFrom-CIPolicy -XmlFilePath {ps_quote(xml_path)} "
            f"-BinaryFilePath {ps_quote(binary_path)} | Out-Null",
        )
        if not binary_path.is_file():
            raise ToolError(f"Policy compiler did not produce '{binary_path}'")

    def refresh(self, host: HostPlatform, binary_path: Path) -> None:
        if host.has_citool:
            _logger.info("Refreshing policies with %r", str(self._citool_path))
            try:
                run([self._citool_path, "--refresh"], logger=_logger, check=True)
            except (FileNotFoundError, CalledProcessError) as ex:
                raise ToolError(f"Failed to refresh policies: {ex}") from ex
            return
        _logger.info("Refreshing policies with %r", str(binary_path))
        self._powershell(
            "refresh policies",
            "Invoke-CimMethod -Namespace root\\Microsoft\\Windows\\CI "
            "-ClassName PS_UpdateAndCompareCIPolicy -MethodName Update "
            f"-Arguments @{{FilePath = {ps_quote(binary_path)}}} | Out-Null",
        )
