from io import StringIO
from logging import DEBUG
from pathlib import Path

from wdacapply.report import report_formatter_factory
from wdacapply.types.policy import PolicyFormat
from wdacapply.types.reports import DeploymentReport, PolicySource, ReportFormat

XML_REPORT = DeploymentReport(
    source=PolicySource.XML,
    enforce=True,
    destination=Path("C:/Windows/System32/CodeIntegrity/SiPolicy.p7b"),
    binary_path=Path("work/SiPolicy.p7b"),
    policy_format=PolicyFormat.LEGACY,
    xml_policy=Path("policy.xml"),
    audit_before=True,
    stripped_legacy_features=True,
    sidecar=Path("policy-applied.xml"),
)


def test_plain_report(make_config) -> None:
    output = StringIO()
    report_formatter_factory(make_config(), XML_REPORT).format_report(output)
    lines = output.getvalue().splitlines()

    assert lines[0] == "WDAC policy deployment"
    assert "    Previous mode: audit" in lines
    assert "    Mode: enforce" in lines
    assert "    Removed features unsupported by this Windows build" in lines
    assert "    Applied policy saved to: policy-applied.xml" in lines
    assert lines[-1] == "    Reboot required for the policy to take effect."


def test_plain_blocklist_report(make_config) -> None:
    report = DeploymentReport(
        source=PolicySource.AUTO,
        enforce=False,
        destination=Path("SiPolicy.p7b"),
        binary_path=Path("SiPolicy_Audit.p7b"),
        refreshed=True,
    )
    output = StringIO()
    report_formatter_factory(make_config(), report).format_report(output)
    text = output.getvalue()

    assert text.startswith("Vulnerable driver block list deployment\n")
    assert "Policy XML" not in text
    assert "    Mode: audit\n" in text
    assert text.endswith("    Policy is active.\n")


def test_json_report(make_config) -> None:
    output = StringIO()
    config = make_config(report_format=ReportFormat.JSON, log_level=DEBUG)
    report_formatter_factory(config, XML_REPORT).format_report(output)

    assert "\n    " in output.getvalue()
    assert DeploymentReport.model_validate_json(output.getvalue()) == XML_REPORT
