from collections.abc import Callable
from logging import INFO
from pathlib import Path
from xml.etree import ElementTree as et

import pytest

from wdacapply.config import BLOCKLIST_URL, Config
from wdacapply.deploy.common import PolicyToolchain
from wdacapply.host import HostPlatform
from wdacapply.types.policy import AUDIT_MODE_OPTION, SIPOLICY_NS, PolicyDocument
from wdacapply.types.reports import ReportFormat

LEGACY_POLICY = """<?xml version="1.0" encoding="utf-8"?>
<SiPolicy xmlns="urn:schemas-microsoft-com:sipolicy">
  <VersionEx>10.0.0.0</VersionEx>
  <PolicyTypeID>{A244370E-44C9-4C06-B551-F6016E563076}</PolicyTypeID>
  <PlatformID>{2E07F7E4-194C-4D20-B7C9-6F44A6C5A234}</PlatformID>
  <!-- Block vulnerable drivers -->
  <Rules>
    <Rule>
      <Option>Enabled:Unsigned System Integrity Policy</Option>
    </Rule>
    <Rule>
      <Option>Enabled:Audit Mode</Option>
    </Rule>
    <Rule>
      <Option>Enabled:Dynamic Code Security</Option>
    </Rule>
  </Rules>
  <FileRules>
    <Allow ID="ID_ALLOW_A_1" FriendlyName="Calculator"
      PackageFamilyName="Microsoft.WindowsCalculator_8wekyb3d8bbwe" />
    <Deny ID="ID_DENY_D_1" FriendlyName="vuln.sys" Hash="00112233" />
  </FileRules>
</SiPolicy>
"""

MULTI_POLICY_ID = "{5951A96A-E0B5-4D3D-8FB8-3E5B61030784}"

MULTI_POLICY = f"""<?xml version="1.0" encoding="utf-8"?>
<SiPolicy xmlns="urn:schemas-microsoft-com:sipolicy" PolicyType="Base Policy">
  <VersionEx>10.0.0.0</VersionEx>
  <PolicyID>{MULTI_POLICY_ID}</PolicyID>
  <BasePolicyID>{MULTI_POLICY_ID}</BasePolicyID>
  <PlatformID>{{2E07F7E4-194C-4D20-B7C9-6F44A6C5A234}}</PlatformID>
  <Rules>
    <Rule>
      <Option>Enabled:Unsigned System Integrity Policy</Option>
    </Rule>
  </Rules>
  <FileRules>
    <Allow ID="ID_ALLOW_A_1" FriendlyName="Calculator"
      PackageFamilyName="Microsoft.WindowsCalculator_8wekyb3d8bbwe" />
  </FileRules>
</SiPolicy>
"""

UNKNOWN_POLICY = """<?xml version="1.0" encoding="utf-8"?>
<SiPolicy xmlns="urn:schemas-microsoft-com:sipolicy">
  <VersionEx>10.0.0.0</VersionEx>
  <Rules />
</SiPolicy>
"""

COMPILED = b"compiled policy"


class FakeToolchain(PolicyToolchain):
    """Edits rule options like Set-RuleOption and writes a dummy binary."""

    def __init__(self, toggle: bool = True) -> None:
        self.toggle = toggle
        self.audit_mode_requests: list[bool] = []
        self.compiled: list[PolicyDocument] = []
        self.refreshed: list[Path] = []

    def set_audit_mode(self, xml_path: Path, enabled: bool) -> None:
        self.audit_mode_requests.append(enabled)
        if not self.toggle:
            return
        tree = et.parse(
            xml_path, et.XMLParser(target=et.TreeBuilder(insert_comments=True))
        )
        rules = tree.getroot().find(f"{{{SIPOLICY_NS}}}Rules")
        assert rules is not None
        for rule in list(rules):
            option = rule.find(f"{{{SIPOLICY_NS}}}Option")
            if option is not None and option.text == AUDIT_MODE_OPTION:
                rules.remove(rule)
        if enabled:
            rule = et.SubElement(rules, f"{{{SIPOLICY_NS}}}Rule")
            et.SubElement(rule, f"{{{SIPOLICY_NS}}}Option").text = AUDIT_MODE_OPTION
        tree.write(xml_path, encoding="utf-8", xml_declaration=True)

    def compile(self, xml_path: Path, binary_path: Path) -> None:
        self.compiled.append(PolicyDocument.load(xml_path))
        binary_path.write_bytes(COMPILED)

    def refresh(self, host: HostPlatform, binary_path: Path) -> None:
        del host
        self.refreshed.append(binary_path)


def make_host(system_root: Path, build: int = 19045, **kwargs) -> HostPlatform:
    values: dict = dict(
        is_windows=True,
        is_admin=True,
        major=10,
        build=build,
        system_root=system_root,
    )
    values.update(kwargs)
    return HostPlatform(**values)


@pytest.fixture
def system_root(tmp_path: Path) -> Path:
    return tmp_path / "Windows"


@pytest.fixture
def make_config(tmp_path: Path, system_root: Path) -> Callable[..., Config]:
    def _make_config(**overrides) -> Config:
        values: dict = dict(
            log_level=INFO,
            log_levels={},
            work_dir=tmp_path / "work",
            keep_work_dir=False,
            powershell_path=Path("powershell.exe"),
            citool_path=Path("CiTool.exe"),
            xml_policy=None,
            enforce=False,
            auto=False,
            refresh=False,
            blocklist_url=BLOCKLIST_URL,
            timeout=5.0,
            system_root=system_root,
            report_format=ReportFormat.PLAIN,
            output=None,
        )
        values.update(overrides)
        return Config(**values)

    return _make_config


@pytest.fixture
def policy_dir(tmp_path: Path) -> Path:
    path = tmp_path / "policies"
    path.mkdir()
    return path


@pytest.fixture
def legacy_policy(policy_dir: Path) -> Path:
    path = policy_dir / "legacy.xml"
    path.write_text(LEGACY_POLICY, encoding="utf-8")
    return path


@pytest.fixture
def multi_policy(policy_dir: Path) -> Path:
    path = policy_dir / "base.xml"
    path.write_text(MULTI_POLICY, encoding="utf-8")
    return path
