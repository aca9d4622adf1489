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

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel

from wdacapply.types.policy import PolicyFormat


class ReportFormat(StrEnum):
    PLAIN = "plain"
    JSON = "json"


class PolicySource(StrEnum):
    AUTO = "auto"
    XML = "xml"


class DeploymentReport(BaseModel):
    source: PolicySource
    enforce: bool
    destination: Path
    binary_path: Path
    policy_format: PolicyFormat = PolicyFormat.LEGACY
    policy_id: str | None = None
    xml_policy: Path | None = None
    audit_before: bool | None = None
    stripped_legacy_features: bool = False
    sidecar: Path | None = None
    refreshed: bool = False
