"""!
@brief In-memory Office Deployment Tool configuration document.
@details Wraps an :mod:`xml.etree.ElementTree` tree shaped as
``Configuration → Add → Product → {Language, ExcludeApp}`` with an optional
``Configuration → Updates`` element. Every mutation is an idempotent upsert:
nodes are addressed by their ``ID`` attribute and re-applying an operation
never duplicates a node.

Attribute setters share one convention. ``None`` leaves the attribute as it
is, a blank string removes it, and any other value replaces it.
"""
from __future__ import annotations

import copy
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Mapping

from .errors import OdtGeneratorError

ROOT_TAG = "Configuration"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


class MissingConfigurationRootError(OdtGeneratorError):
    """!
    @brief Raised when a product-level upsert runs before ``Add`` exists.
    """


def _indent_xml(elem: ET.Element, level: int = 0) -> None:
    """!
    @brief Add indentation to XML elements for pretty printing.
    @param elem Root element to indent.
    @param level Current indentation level.
    """
    indent = "\n" + "  " * level
    if len(elem):
        if not elem.text or not elem.text.strip():
            elem.text = indent + "  "
        if not elem.tail or not elem.tail.strip():
            elem.tail = indent
        for child in elem:
            _indent_xml(child, level + 1)
        if not child.tail or not child.tail.strip():
            child.tail = indent
    else:
        if level and (not elem.tail or not elem.tail.strip()):
            elem.tail = indent


def render_xml(element: ET.Element) -> str:
    """!
    @brief Serialise an element tree with the XML declaration, leaving the input untouched.
    """

    root = copy.deepcopy(element)
    _indent_xml(root)
    xml_str = ET.tostring(root, encoding="unicode")
    return f"{XML_DECLARATION}\n{xml_str}"


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def set_attribute(element: ET.Element, name: str, value: object | None) -> None:
    """!
    @brief Apply the upsert convention to one attribute.
    """

    if value is None:
        return
    text = _format_value(value)
    if not text.strip():
        element.attrib.pop(name, None)
    else:
        element.set(name, text)


def _find_by_id(parent: ET.Element, tag: str, identifier: str) -> ET.Element | None:
    wanted = identifier.lower()
    for child in parent.findall(tag):
        if child.get("ID", "").lower() == wanted:
            return child
    return None


class ConfigurationDocument:
    """!
    @brief Mutable ODT configuration tree with idempotent upserts.
    """

    def __init__(self, root: ET.Element | None = None) -> None:
        if root is None:
            root = ET.Element(ROOT_TAG)
        elif root.tag != ROOT_TAG:
            raise MissingConfigurationRootError(f"Expected <{ROOT_TAG}> root element, found <{root.tag}>")
        self._root = root

    @classmethod
    def from_string(cls, text: str) -> "ConfigurationDocument":
        return cls(ET.fromstring(text))

    @classmethod
    def from_file(cls, path: str | Path) -> "ConfigurationDocument":
        """!
        @brief Load a document from disk, keeping its structure verbatim.
        """

        return cls(ET.parse(str(path)).getroot())

    @property
    def root(self) -> ET.Element:
        return self._root

    @property
    def add(self) -> ET.Element | None:
        return self._root.find("Add")

    @property
    def platform(self) -> str | None:
        add = self.add
        return add.get("OfficeClientEdition") if add is not None else None

    @property
    def updates(self) -> ET.Element | None:
        return self._root.find("Updates")

    def _require_add(self) -> ET.Element:
        add = self.add
        if add is None:
            raise MissingConfigurationRootError("The configuration has no <Add> element; call ensure_add() first")
        return add

    def ensure_add(self, version: str | None = None, platform: str | None = None) -> ET.Element:
        """!
        @brief Create the ``Add`` element if needed and upsert its attributes.
        @param version Value for ``Version``.
        @param platform Value for ``OfficeClientEdition`` (``"32"``/``"64"``).
        """

        add = self.add
        if add is None:
            add = ET.Element("Add")
            self._root.insert(0, add)
        set_attribute(add, "OfficeClientEdition", platform)
        set_attribute(add, "Version", version)
        return add

    def set_source_path(self, source_path: str | None) -> None:
        set_attribute(self._require_add(), "SourcePath", source_path)

    def upsert_product(self, product_id: str, attributes: Mapping[str, object | None] | None = None) -> ET.Element:
        """!
        @brief Return the ``Product`` node for ``product_id``, creating it on first use.
        @details Supplied attributes are merged into an existing node.
        @throws MissingConfigurationRootError When ``Add`` does not exist.
        """

        add = self._require_add()
        product = _find_by_id(add, "Product", product_id)
        if product is None:
            product = ET.SubElement(add, "Product")
            product.set("ID", product_id)
        for name, value in (attributes or {}).items():
            set_attribute(product, name, value)
        return product

    def upsert_language(self, product_id: str, language_id: str) -> ET.Element:
        """!
        @brief Add a ``Language`` under the product; IDs are stored lower-case.
        """

        product = self.upsert_product(product_id)
        normalized = language_id.strip().lower()
        language = _find_by_id(product, "Language", normalized)
        if language is None:
            language = ET.Element("Language")
            language.set("ID", normalized)
            # Languages precede ExcludeApp entries.
            position = len(product.findall("Language"))
            product.insert(position, language)
        return language

    def upsert_exclude_app(self, product_id: str, app_id: str) -> ET.Element:
        product = self.upsert_product(product_id)
        exclude = _find_by_id(product, "ExcludeApp", app_id)
        if exclude is None:
            exclude = ET.SubElement(product, "ExcludeApp")
            exclude.set("ID", app_id)
        return exclude

    def upsert_updates(
        self,
        enabled: bool | str | None = None,
        update_path: str | None = None,
        target_version: str | None = None,
        deadline: str | None = None,
    ) -> ET.Element:
        """!
        @brief Create or amend the ``Updates`` element.
        @details Each attribute follows the module-wide convention
        independently; booleans render as ``TRUE``/``FALSE``.
        """

        updates = self.updates
        if updates is None:
            updates = ET.SubElement(self._root, "Updates")
        set_attribute(updates, "Enabled", enabled)
        set_attribute(updates, "UpdatePath", update_path)
        set_attribute(updates, "TargetVersion", target_version)
        set_attribute(updates, "Deadline", deadline)
        return updates

    def product_ids(self) -> List[str]:
        add = self.add
        if add is None:
            return []
        return [product.get("ID", "") for product in add.findall("Product") if product.get("ID")]

    def languages(self, product_id: str) -> List[str]:
        add = self.add
        product = _find_by_id(add, "Product", product_id) if add is not None else None
        if product is None:
            return []
        return [language.get("ID", "") for language in product.findall("Language")]

    def exclude_apps(self, product_id: str) -> List[str]:
        add = self.add
        product = _find_by_id(add, "Product", product_id) if add is not None else None
        if product is None:
            return []
        return [app.get("ID", "") for app in product.findall("ExcludeApp")]

    def to_xml(self) -> str:
        """!
        @brief Render the document with an XML declaration and two-space indent.
        """

        return render_xml(self._root)

    def write(self, output_path: str | Path) -> Path:
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_xml(), encoding="utf-8")
        return path


__all__ = [
    "ConfigurationDocument",
    "MissingConfigurationRootError",
    "XML_DECLARATION",
    "render_xml",
    "set_attribute",
]
