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

from collections.abc import Iterable
from logging import getLogger
from typing import TextIO

from wdacapply.config import Config
from wdacapply.types.reports import DeploymentReport, PolicySource

_logger = getLogger(__name__)


class ReportFormatter:
    def __init__(self, config: Config, report: DeploymentReport) -> None:
        self._config = config
        self._report = report

    def formatted_lines(self) -> Iterable[str]:
        return ()

    def format_report(self, file: TextIO) -> None:
        _logger.debug("Formatting the report using formatted_lines from %r", self)
        file.writelines(line + "\n" for line in self.formatted_lines())

    @property
    def _title(self) -> str:
        match self._report.source:
            case PolicySource.AUTO:
                return "Vulnerable driver block list deployment"
            case PolicySource.XML:
                return "WDAC policy deployment"

    @property
    def _mode(self) -> str:
        return "enforce" if self._report.enforce else "audit"

    @property
    def _activation_message(self) -> str:
        if self._report.refreshed:
            return "Policy is active."
        return "Reboot required for the policy to take effect."
