from pathlib import Path

import pytest
from conftest import LEGACY_POLICY, MULTI_POLICY, MULTI_POLICY_ID, UNKNOWN_POLICY

from wdacapply.types.policy import (
    DYNAMIC_CODE_SECURITY_OPTION,
    PACKAGE_FAMILY_NAME_ATTRIBUTE,
    PolicyDocument,
    PolicyFormat,
)


def _document(tmp_path: Path, text: str) -> PolicyDocument:
    path = tmp_path / "policy.xml"
    path.write_text(text, encoding="utf-8")
    return PolicyDocument.load(path)


def test_policy_format(tmp_path: Path) -> None:
    assert _document(tmp_path, LEGACY_POLICY).policy_format == PolicyFormat.LEGACY
    multi = _document(tmp_path, MULTI_POLICY)
    assert multi.policy_format == PolicyFormat.MULTI_POLICY
    assert multi.policy_id == MULTI_POLICY_ID


def test_unknown_policy_format(tmp_path: Path) -> None:
    document = _document(tmp_path, UNKNOWN_POLICY)
    with pytest.raises(ValueError, match="PolicyTypeID nor PolicyID"):
        document.policy_format


def test_load_rejects_invalid_xml(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Invalid policy XML"):
        _document(tmp_path, "<SiPolicy")
    with pytest.raises(ValueError, match="root element is not SiPolicy"):
        _document(tmp_path, "<Policy><PolicyID>x</PolicyID></Policy>")


def test_audit_mode_detection(tmp_path: Path) -> None:
    assert _document(tmp_path, LEGACY_POLICY).audit_mode
    assert not _document(tmp_path, MULTI_POLICY).audit_mode


def test_audit_mode_requires_namespace(tmp_path: Path) -> None:
    text = LEGACY_POLICY.replace(
        "<Option>Enabled:Audit Mode</Option>",
        '<x:Option xmlns:x="urn:other">Enabled:Audit Mode</x:Option>',
    )
    assert not _document(tmp_path, text).audit_mode


def test_strip_legacy_features(tmp_path: Path) -> None:
    document = _document(tmp_path, LEGACY_POLICY)
    assert document.strip_legacy_features()
    document.save()

    saved = (tmp_path / "policy.xml").read_text(encoding="utf-8")
    assert PACKAGE_FAMILY_NAME_ATTRIBUTE not in saved
    assert DYNAMIC_CODE_SECURITY_OPTION not in saved
    assert "ns0:" not in saved

    reloaded = PolicyDocument.load(tmp_path / "policy.xml")
    assert reloaded.policy_format == PolicyFormat.LEGACY
    assert reloaded.rule_options == [
        "Enabled:Unsigned System Integrity Policy",
        "Enabled:Audit Mode",
    ]
    assert 'ID="ID_DENY_D_1"' in saved
    assert 'FriendlyName="Calculator"' in saved
    assert "<!-- Block vulnerable drivers -->" in saved


def test_strip_legacy_features_noop(tmp_path: Path) -> None:
    document = _document(tmp_path, UNKNOWN_POLICY)
    assert not document.strip_legacy_features()
