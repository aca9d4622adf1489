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
from typing import Any, TextIO

from wdacapply.report.common import ReportFormatter

_logger = getLogger(__name__)


def _indent(string: str | Any, size: int) -> str:
    return "    " * size + str(string)


class PlainReportFormatter(ReportFormatter):
    def formatted_lines(self) -> Iterable[str]:
        report = self._report
        yield self._title
        yield ""
        if report.xml_policy:
            yield _indent(f"Policy XML: {report.xml_policy}", 1)
            yield _indent(f"Policy format: {report.policy_format}", 1)
            if report.policy_id:
                yield _indent(f"Policy ID: {report.policy_id}", 1)
            if report.audit_before is not None:
                was = "audit" if report.audit_before else "enforce"
                yield _indent(f"Previous mode: {was}", 1)
        yield _indent(f"Mode: {self._mode}", 1)
        if report.stripped_legacy_features:
            yield _indent("Removed features unsupported by this Windows build", 1)
        yield _indent(f"Policy binary: {report.binary_path}", 1)
        yield _indent(f"Installed to: {report.destination}", 1)
        if report.sidecar:
            yield _indent(f"Applied policy saved to: {report.sidecar}", 1)
        yield _indent(self._activation_message, 1)

    def format_report(self, file: TextIO) -> None:
        _logger.info("Generating plain text report")
        return super().format_report(file)
