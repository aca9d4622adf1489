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
from logging import getLogger
from pathlib import Path
from xml.etree import ElementTree as et

_logger = getLogger(__name__)

SIPOLICY_NS = "urn:schemas-microsoft-com:sipolicy"
_NS = {"si": SIPOLICY_NS}

AUDIT_MODE_OPTION = "Enabled:Audit Mode"
AUDIT_MODE_OPTION_NUMBER = 3
DYNAMIC_CODE_SECURITY_OPTION = "Enabled:Dynamic Code Security"
PACKAGE_FAMILY_NAME_ATTRIBUTE = "PackageFamilyName"

et.register_namespace("", SIPOLICY_NS)


class PolicyFormat(StrEnum):
    LEGACY = "legacy"
    MULTI_POLICY = "multi-policy"


class PolicyDocument:
    """WDAC policy XML loaded from ``path``.

    Only the handful of elements needed for deployment are interpreted, the
    rest of the document is carried through unchanged.
    """

    def __init__(self, path: Path, tree: "et.ElementTree[et.Element]") -> None:
        self.path = path
        self._tree = tree

    @staticmethod
    def load(path: str | Path) -> "PolicyDocument":
        path = Path(path)
        _logger.debug("Reading policy document %r", path)
        try:
            tree = et.parse(
                path, et.XMLParser(target=et.TreeBuilder(insert_comments=True))
            )
        except et.ParseError as ex:
            raise ValueError(f"Invalid policy XML '{path}': {ex}") from ex
        if tree.getroot().tag != f"{{{SIPOLICY_NS}}}SiPolicy":
            raise ValueError(
                f"Invalid policy XML '{path}': root element is not SiPolicy"
            )
        return PolicyDocument(path, tree)

    @property
    def _root(self) -> et.Element:
        return self._tree.getroot()

    def _text(self, name: str) -> str | None:
        element = self._root.find(f"si:{name}", _NS)
        if element is None or element.text is None:
            return None
        return element.text.strip()

    @property
    def policy_format(self) -> PolicyFormat:
        if self._root.find("si:PolicyTypeID", _NS) is not None:
            return PolicyFormat.LEGACY
        if self._root.find("si:PolicyID", _NS) is not None:
            return PolicyFormat.MULTI_POLICY
        raise ValueError(
            f"Policy '{self.path}' has neither PolicyTypeID nor PolicyID, "
            "unable to determine the policy format"
        )

    @property
    def policy_id(self) -> str | None:
        return self._text("PolicyID")

    @property
    def rule_options(self) -> list[str]:
        return [
            option.text.strip()
            for option in self._root.iterfind("si:Rules/si:Rule/si:Option", _NS)
            if option.text
        ]

    @property
    def audit_mode(self) -> bool:
        return AUDIT_MODE_OPTION in self.rule_options

    def strip_legacy_features(self) -> bool:
        stripped = False
        for element in self._root.iter():
            if PACKAGE_FAMILY_NAME_ATTRIBUTE in element.attrib:
                _logger.debug(
                    "Removing %s attribute from %r",
                    PACKAGE_FAMILY_NAME_ATTRIBUTE,
                    element.get("ID", element.tag),
                )
                del element.attrib[PACKAGE_FAMILY_NAME_ATTRIBUTE]
                stripped = True
        rules = self._root.find("si:Rules", _NS)
        if rules is not None:
            for rule in list(rules):
                option = rule.find("si:Option", _NS)
                if (
                    option is not None
                    and option.text
                    and option.text.strip() == DYNAMIC_CODE_SECURITY_OPTION
                ):
                    _logger.debug("Removing rule option %r", option.text.strip())
                    rules.remove(rule)
                    stripped = True
        return stripped

    def save(self, path: str | Path | None = None) -> None:
        target = Path(path) if path else self.path
        _logger.debug("Writing policy document %r", target)
        self._tree.write(target, encoding="utf-8", xml_declaration=True)
