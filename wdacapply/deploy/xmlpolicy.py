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
from pathlib import Path

from wdacapply.deploy.common import (
    DeployError,
    PolicyDeployer,
    PolicySchemaError,
    ToolError,
    UnsupportedPlatformError,
)
from wdacapply.host import MULTI_POLICY_BUILD
from wdacapply.types.policy import PolicyDocument, PolicyFormat
from wdacapply.types.reports import DeploymentReport, PolicySource
from wdacapply.utils.logging import get_logger

_logger = get_logger(__name__)

APPLIED_SUFFIX = "-applied.xml"


def applied_policy_path(xml_policy: Path) -> Path:
    return xml_policy.with_name(xml_policy.stem + APPLIED_SUFFIX)


def _copy(src: Path, dst: Path) -> None:
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dst)
    except OSError as ex:
        raise DeployError(f"Failed to copy '{src}' to '{dst}': {ex}") from ex


class XMLPolicyDeployer(PolicyDeployer):
    @staticmethod
    def _load(path: Path) -> PolicyDocument:
        try:
            return PolicyDocument.load(path)
        except OSError as ex:
            raise DeployError(f"Failed to read policy '{path}': {ex}") from ex
        except ValueError as ex:
            raise PolicySchemaError(str(ex)) from ex

    def _destination(self, document: PolicyDocument) -> Path:
        try:
            policy_format = document.policy_format
        except ValueError as ex:
            raise PolicySchemaError(str(ex)) from ex
        match policy_format:
            case PolicyFormat.LEGACY:
                return self._host.single_policy_path
            case PolicyFormat.MULTI_POLICY:
                if not self._host.supports_multi_policy:
                    raise UnsupportedPlatformError(
                        f"Multiple policy format requires Windows 10 build "
                        f"{MULTI_POLICY_BUILD} or newer, this system is build "
                        f"{self._host.build}"
                    )
                policy_id = document.policy_id
                if not policy_id:
                    raise PolicySchemaError(
                        f"Policy '{document.path}' has empty PolicyID"
                    )
                file_name = f"{{{policy_id.strip('{}')}}}.cip"
                return self._host.active_policies_path / file_name

    def deploy(self) -> DeploymentReport:
        xml_policy = self._config.xml_policy
        assert xml_policy is not None
        document = self._load(xml_policy)
        audit_before = document.audit_mode
        _logger.info(
            "Policy is currently in %s mode", "audit" if audit_before else "enforce"
        )
        destination = self._destination(document)
        policy_format = document.policy_format
        _logger.verbose("Policy format is %s", policy_format)

        work_xml = self._config.work_dir / xml_policy.name
        _logger.info("Copying policy %r to %r", str(xml_policy), str(work_xml))
        _copy(xml_policy, work_xml)
        document = self._load(work_xml)

        stripped = False
        if (
            policy_format == PolicyFormat.LEGACY
            and not self._host.supports_legacy_features
        ):
            _logger.info(
                "Removing policy features unsupported on build %d", self._host.build
            )
            stripped = document.strip_legacy_features()
            if stripped:
                document.save()

        self._toolchain.set_audit_mode(work_xml, not self._config.enforce)
        document = self._load(work_xml)
        if document.audit_mode == self._config.enforce:
            raise ToolError(
                f"Policy '{work_xml}' is still in "
                f"{'audit' if document.audit_mode else 'enforce'} mode after update"
            )

        binary = self._config.work_dir / destination.name
        self._toolchain.compile(work_xml, binary)
        self._install(binary, destination)

        sidecar = applied_policy_path(xml_policy)
        _logger.info("Saving applied policy to %r", str(sidecar))
        _copy(work_xml, sidecar)

        return self._finish(
            DeploymentReport(
                source=PolicySource.XML,
                enforce=self._config.enforce,
                destination=destination,
                binary_path=binary,
                policy_format=policy_format,
                policy_id=document.policy_id,
                xml_policy=xml_policy,
                audit_before=audit_before,
                stripped_legacy_features=stripped,
                sidecar=sidecar,
            )
        )
