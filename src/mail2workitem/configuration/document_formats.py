"""Adapters between on-disk documents and the canonical configuration mapping.

Both formats produce the same nested shape, keyed by the element names of the
XML document::

    {"Instances": [{"Name": "...", "TfsServerConfig": {...}, ...}]}

XML attributes and child elements are interchangeable on read. On write,
the keys listed in ``ATTRIBUTE_KEYS`` become attributes.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigParseError

ROOT_TAG = "Config"

LIST_ITEM_TAGS: Mapping[str, str] = {
    "Instances": "InstanceConfig",
    "DefaultFieldValues": "DefaultValueDefinition",
    "Mnemonics": "MnemonicDefinition",
    "RecipientOverrides": "RecipientOverrideDefinition",
    "DateBasedOverrides": "DateBasedFieldOverrides",
    "Entries": "DateBasedOverrideEntry",
}

ATTRIBUTE_KEYS = frozenset(
    {"Name", "Field", "Value", "Mnemonic", "Alias", "FieldName", "StartDate"}
)

XML_SUFFIXES = frozenset({".xml", ".config"})
YAML_SUFFIXES = frozenset({".yaml", ".yml", ".json"})


class DocumentFormat(str, Enum):
    """Supported serialization formats of the configuration document."""

    XML = "xml"
    YAML = "yaml"


def detect_format(path: Path, content: bytes) -> DocumentFormat:
    """Pick the document format from the file suffix, falling back to the content."""
    suffix = path.suffix.lower()
    if suffix in XML_SUFFIXES:
        return DocumentFormat.XML
    if suffix in YAML_SUFFIXES:
        return DocumentFormat.YAML
    stripped = content.lstrip(b"\xef\xbb\xbf \t\r\n")
    return DocumentFormat.XML if stripped.startswith(b"<") else DocumentFormat.YAML


def parse_document(content: bytes, document_format: DocumentFormat) -> Mapping[str, Any]:
    """Parse raw document bytes into the canonical mapping."""
    if document_format is DocumentFormat.XML:
        return parse_xml_document(content)
    return parse_yaml_document(content)


def parse_yaml_document(content: bytes) -> Mapping[str, Any]:
    try:
        parsed = yaml.safe_load(content.decode("utf-8-sig"))
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise ConfigParseError(f"Failed to parse configuration file: {exc}") from exc
    if parsed is None:
        parsed = {}
    if not isinstance(parsed, Mapping):
        raise ConfigParseError("Configuration root must be a mapping.")
    return parsed


def parse_xml_document(content: bytes) -> Mapping[str, Any]:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise ConfigParseError(f"Failed to parse configuration file: {exc}") from exc
    if _local_name(root.tag) != ROOT_TAG:
        raise ConfigParseError(
            f"Configuration root element must be <{ROOT_TAG}>, found <{_local_name(root.tag)}>."
        )
    node = _element_to_value(root)
    if not isinstance(node, Mapping):
        return {}
    return node


def _element_to_value(element: ET.Element) -> Any:
    tag = _local_name(element.tag)
    if tag in LIST_ITEM_TAGS:
        expected_tag = LIST_ITEM_TAGS[tag]
        items: list[Any] = []
        for child in element:
            child_tag = _local_name(child.tag)
            if child_tag != expected_tag:
                raise ConfigParseError(
                    f"<{tag}> may only contain <{expected_tag}>, found <{child_tag}>."
                )
            items.append(_element_to_value(child))
        return items
    attributes = {
        _local_name(key): value for key, value in element.attrib.items() if not _is_xsi(key)
    }
    if len(element) == 0 and not attributes:
        return element.text or ""
    node: dict[str, Any] = dict(attributes)
    for child in element:
        child_tag = _local_name(child.tag)
        if child_tag in node:
            raise ConfigParseError(f"<{tag}> defines '{child_tag}' more than once.")
        node[child_tag] = _element_to_value(child)
    return node


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _is_xsi(key: str) -> bool:
    return key.startswith("{http://www.w3.org/2001/XMLSchema-instance}")


def render_document(mapping: Mapping[str, Any], document_format: DocumentFormat) -> str:
    """Serialize the canonical mapping in the requested format."""
    if document_format is DocumentFormat.XML:
        return render_xml_document(mapping)
    return yaml.safe_dump(dict(mapping), sort_keys=False, allow_unicode=True)


def render_xml_document(mapping: Mapping[str, Any]) -> str:
    root = ET.Element(ROOT_TAG)
    _fill_element(root, mapping)
    ET.indent(root)
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def _fill_element(element: ET.Element, mapping: Mapping[str, Any]) -> None:
    for key, value in mapping.items():
        if value is None:
            continue
        if key in ATTRIBUTE_KEYS and not isinstance(value, (Mapping, list)):
            element.set(key, _xml_text(value))
            continue
        child = ET.SubElement(element, key)
        if key in LIST_ITEM_TAGS:
            for item in value:
                _fill_element(ET.SubElement(child, LIST_ITEM_TAGS[key]), item)
        elif isinstance(value, Mapping):
            _fill_element(child, value)
        else:
            child.text = _xml_text(value)


def _xml_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
