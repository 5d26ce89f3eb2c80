"""Configuration loader service."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from .document_formats import DocumentFormat, detect_format, parse_document, render_document
from .errors import ConfigParseError, ConfigValidationError
from .settings_tree import (
    ConfigDocument,
    DateBasedFieldOverrides,
    DateBasedOverrideEntry,
    DefaultValueDefinition,
    EmailSettings,
    InstanceConfig,
    MailboxServiceType,
    MnemonicDefinition,
    ProcessingStrategyType,
    RecipientOverrideDefinition,
    TfsServerConfig,
    WorkItemSettings,
    normalize_datetime,
)

LOGGER = logging.getLogger(__name__)

_TRUE_LITERALS = frozenset({"true", "1"})
_FALSE_LITERALS = frozenset({"false", "0"})

_EnumT = TypeVar("_EnumT", bound=Enum)


def load_configuration(config_path: Path | str) -> ConfigDocument:
    """Load and validate the configuration document.

    Files referenced by the document (query, password and template files) are
    not read here; they are resolved on first access.

    Raises:
      ConfigParseError: If the document is missing, unreadable or malformed.
      ConfigValidationError: If required values are empty or instance names repeat.
    """
    path = Path(config_path)
    try:
        with path.open("rb") as handle:
            content = handle.read()
    except OSError as exc:
        raise ConfigParseError(f"Configuration file could not be read: {path}: {exc}") from exc

    document_format = detect_format(path, content)
    parsed = parse_document(content, document_format)
    document = build_document(parsed, base_directory=path.parent, source_path=path)
    LOGGER.debug(
        "Loaded %s configuration from %s with instances: %s",
        document_format.value,
        path,
        ", ".join(document.instance_names) or "<none>",
    )
    return document


def build_document(
    parsed: Mapping[str, Any],
    *,
    base_directory: Path | None = None,
    source_path: Path | None = None,
) -> ConfigDocument:
    """Materialize a configuration tree from the canonical mapping."""
    if not isinstance(parsed, Mapping):
        raise ConfigParseError("Configuration root must be a mapping.")
    raw_instances = _sequence(parsed.get("Instances"), "Instances")
    instances = tuple(
        _parse_instance(item, f"Instances[{index}]", base_directory)
        for index, item in enumerate(raw_instances)
    )
    return ConfigDocument(instances=instances, source_path=source_path)


def dump_configuration(
    document: ConfigDocument,
    output_path: Path | str,
    document_format: DocumentFormat | None = None,
) -> Path:
    """Write ``document`` to ``output_path``; the format follows the suffix unless given."""
    destination = Path(output_path)
    if document_format is None:
        document_format = detect_format(destination, b"")
    destination.write_text(
        render_document(document_to_mapping(document), document_format), encoding="utf-8"
    )
    return destination


def document_to_mapping(document: ConfigDocument) -> dict[str, Any]:
    """Convert a configuration tree back into the canonical mapping."""
    return {"Instances": [_instance_to_mapping(item) for item in document.instances]}


def _parse_instance(value: Any, label: str, base_directory: Path | None) -> InstanceConfig:
    section = _require_mapping(value, label)
    name = _require_non_empty_string(section.get("Name"), f"{label}.Name")
    label = f"Instance '{name}'"
    return InstanceConfig(
        name=name,
        tfs_server=_parse_tfs_server(section.get("TfsServerConfig"), label, base_directory),
        work_items=_parse_work_item_settings(section.get("WorkItemSettings"), label),
        email=_parse_email_settings(section.get("EmailSettings"), label, base_directory),
    )


def _parse_tfs_server(value: Any, owner: str, base_directory: Path | None) -> TfsServerConfig:
    label = f"{owner} TfsServerConfig"
    section = _require_mapping(value, label)
    return TfsServerConfig(
        collection_uri=_require_non_empty_string(
            section.get("CollectionUri"), f"{label}.CollectionUri"
        ),
        project=_require_non_empty_string(section.get("Project"), f"{label}.Project"),
        work_item_template=_require_non_empty_string(
            section.get("WorkItemTemplate"), f"{label}.WorkItemTemplate"
        ),
        service_identity_username=_optional_string(
            section.get("ServiceIdentityUsername"), f"{label}.ServiceIdentityUsername"
        ),
        service_identity_password_file=_optional_string(
            section.get("ServiceIdentityPasswordFile"), f"{label}.ServiceIdentityPasswordFile"
        ),
        cache_query_file=_optional_string(section.get("CacheQueryFile"), f"{label}.CacheQueryFile"),
        simulation_mode=_parse_bool(section.get("SimulationMode"), f"{label}.SimulationMode"),
        names_list_field_name=_optional_string(
            section.get("NamesListFieldName"), f"{label}.NamesListFieldName"
        ),
        ad_organization=_optional_string(section.get("ADOrganization"), f"{label}.ADOrganization"),
        base_directory=base_directory,
    )


def _parse_work_item_settings(value: Any, owner: str) -> WorkItemSettings:
    label = f"{owner} WorkItemSettings"
    section = _require_mapping(value, label)
    default_field_values = tuple(
        DefaultValueDefinition(
            field=_require_non_empty_string(item.get("Field"), f"{item_label}.Field"),
            value=_optional_string(item.get("Value"), f"{item_label}.Value"),
        )
        for item_label, item in _mapping_items(
            section.get("DefaultFieldValues"), f"{label}.DefaultFieldValues"
        )
    )
    mnemonics = tuple(
        MnemonicDefinition(
            mnemonic=_require_non_empty_string(item.get("Mnemonic"), f"{item_label}.Mnemonic"),
            field=_require_non_empty_string(item.get("Field"), f"{item_label}.Field"),
            value=_optional_string(item.get("Value"), f"{item_label}.Value"),
        )
        for item_label, item in _mapping_items(section.get("Mnemonics"), f"{label}.Mnemonics")
    )
    recipient_overrides = tuple(
        RecipientOverrideDefinition(
            alias=_require_non_empty_string(item.get("Alias"), f"{item_label}.Alias"),
            field=_require_non_empty_string(item.get("Field"), f"{item_label}.Field"),
            value=_optional_string(item.get("Value"), f"{item_label}.Value"),
        )
        for item_label, item in _mapping_items(
            section.get("RecipientOverrides"), f"{label}.RecipientOverrides"
        )
    )
    date_based_overrides = tuple(
        _parse_date_based_overrides(item, item_label)
        for item_label, item in _mapping_items(
            section.get("DateBasedOverrides"), f"{label}.DateBasedOverrides"
        )
    )
    return WorkItemSettings(
        conversation_index_field_name=_optional_string(
            section.get("ConversationIndexFieldName"), f"{label}.ConversationIndexFieldName"
        ),
        default_field_values=default_field_values,
        mnemonics=mnemonics,
        recipient_overrides=recipient_overrides,
        date_based_overrides=date_based_overrides,
        add_email_header_to_item=_parse_bool(
            section.get("AddEmailHeaderToItem"), f"{label}.AddEmailHeaderToItem"
        ),
        default_assign=_optional_string(section.get("DefaultAssign"), f"{label}.DefaultAssign"),
        attach_original_message=_parse_bool(
            section.get("AttachOriginalMessage"), f"{label}.AttachOriginalMessage"
        ),
        processing_strategy=_parse_enum(
            section.get("ProcessingStrategy"),
            ProcessingStrategyType,
            ProcessingStrategyType.SIMPLE_BUG,
            f"{label}.ProcessingStrategy",
        ),
    )


def _parse_date_based_overrides(item: Mapping[str, Any], label: str) -> DateBasedFieldOverrides:
    field_name = _require_non_empty_string(item.get("FieldName"), f"{label}.FieldName")
    entries = tuple(
        DateBasedOverrideEntry(
            start_date=_parse_datetime(entry.get("StartDate"), f"{entry_label}.StartDate"),
            value=_optional_string(entry.get("Value"), f"{entry_label}.Value"),
        )
        for entry_label, entry in _mapping_items(item.get("Entries"), f"{label}.Entries")
    )
    return DateBasedFieldOverrides(
        field_name=field_name,
        default_value=_optional_string(item.get("DefaultValue"), f"{label}.DefaultValue"),
        entries=entries,
    )


def _parse_email_settings(value: Any, owner: str, base_directory: Path | None) -> EmailSettings:
    label = f"{owner} EmailSettings"
    section = _require_mapping(value, label)

    def text(key: str) -> str | None:
        return _optional_string(section.get(key), f"{label}.{key}")

    def flag(key: str) -> bool:
        return _parse_bool(section.get(key), f"{label}.{key}")

    return EmailSettings(
        service_type=_parse_enum(
            section.get("ServiceType"),
            MailboxServiceType,
            MailboxServiceType.EWS,
            f"{label}.ServiceType",
        ),
        ews_mailbox_address=text("EWSMailboxAddress"),
        ews_username=text("EWSUsername"),
        ews_password_file=text("EWSPasswordFile"),
        send_ack_emails=flag("SendAckEmails"),
        ack_emails_recipients_all=flag("AckEmailsRecipientsAll"),
        incoming_folder=text("IncomingFolder"),
        completed_folder=text("CompletedFolder"),
        error_folder=text("ErrorFolder"),
        recipient_display_names=text("RecipientDisplayNames"),
        append_only_email_title_regex=text("AppendOnlyEmailTitleRegex"),
        append_only_email_body_regex=text("AppendOnlyEmailBodyRegex"),
        reply_template=text("ReplyTemplate"),
        base_directory=base_directory,
    )


def _instance_to_mapping(instance: InstanceConfig) -> dict[str, Any]:
    tfs = instance.tfs_server
    work_items = instance.work_items
    email = instance.email
    return {
        "Name": instance.name,
        "TfsServerConfig": _drop_none(
            {
                "CollectionUri": tfs.collection_uri,
                "ServiceIdentityUsername": tfs.service_identity_username,
                "ServiceIdentityPasswordFile": tfs.service_identity_password_file,
                "Project": tfs.project,
                "WorkItemTemplate": tfs.work_item_template,
                "CacheQueryFile": tfs.cache_query_file,
                "SimulationMode": tfs.simulation_mode,
                "NamesListFieldName": tfs.names_list_field_name,
                "ADOrganization": tfs.ad_organization,
            }
        ),
        "WorkItemSettings": _drop_none(
            {
                "ConversationIndexFieldName": work_items.conversation_index_field_name,
                "DefaultFieldValues": [
                    _drop_none({"Field": item.field, "Value": item.value})
                    for item in work_items.default_field_values
                ],
                "Mnemonics": [
                    _drop_none(
                        {"Mnemonic": item.mnemonic, "Field": item.field, "Value": item.value}
                    )
                    for item in work_items.mnemonics
                ],
                "RecipientOverrides": [
                    _drop_none({"Alias": item.alias, "Field": item.field, "Value": item.value})
                    for item in work_items.recipient_overrides
                ],
                "DateBasedOverrides": [
                    _drop_none(
                        {
                            "FieldName": item.field_name,
                            "DefaultValue": item.default_value,
                            "Entries": [
                                _drop_none({"StartDate": entry.start_date, "Value": entry.value})
                                for entry in item.entries
                            ],
                        }
                    )
                    for item in work_items.date_based_overrides
                ],
                "AddEmailHeaderToItem": work_items.add_email_header_to_item,
                "DefaultAssign": work_items.default_assign,
                "AttachOriginalMessage": work_items.attach_original_message,
                "ProcessingStrategy": work_items.processing_strategy.value,
            }
        ),
        "EmailSettings": _drop_none(
            {
                "ServiceType": email.service_type.value,
                "EWSMailboxAddress": email.ews_mailbox_address,
                "EWSUsername": email.ews_username,
                "EWSPasswordFile": email.ews_password_file,
                "SendAckEmails": email.send_ack_emails,
                "AckEmailsRecipientsAll": email.ack_emails_recipients_all,
                "IncomingFolder": email.incoming_folder,
                "CompletedFolder": email.completed_folder,
                "ErrorFolder": email.error_folder,
                "RecipientDisplayNames": email.recipient_display_names,
                "AppendOnlyEmailTitleRegex": email.append_only_email_title_regex,
                "AppendOnlyEmailBodyRegex": email.append_only_email_body_regex,
                "ReplyTemplate": email.reply_template,
            }
        ),
    }


def _drop_none(mapping: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in mapping.items() if value is not None}


def _parse_datetime(value: Any, field_name: str) -> datetime:
    if isinstance(value, (datetime, date)):
        return normalize_datetime(value)
    if not isinstance(value, str) or not value.strip():
        raise ConfigParseError(f"{field_name} must be a date.")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise ConfigParseError(f"{field_name} '{value}' is not a valid date.") from exc
    return normalize_datetime(parsed)


def _parse_bool(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_LITERALS:
            return True
        if lowered in _FALSE_LITERALS:
            return False
    raise ConfigParseError(f"{field_name} must be a boolean (true/false), got {value!r}.")


def _parse_enum(value: Any, enum_type: type[_EnumT], default: _EnumT, field_name: str) -> _EnumT:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigParseError(f"{field_name} must be a string.")
    try:
        return enum_type(value.strip())
    except ValueError as exc:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise ConfigParseError(f"{field_name} '{value}' is not one of: {allowed}.") from exc


def _mapping_items(value: Any, field_name: str) -> list[tuple[str, Mapping[str, Any]]]:
    return [
        (f"{field_name}[{index}]", _require_mapping(item, f"{field_name}[{index}]"))
        for index, item in enumerate(_sequence(value, field_name))
    ]


def _sequence(value: Any, field_name: str) -> Sequence[Any]:
    if value is None or value == "":
        return ()
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ConfigParseError(f"{field_name} must be a list.")
    return value


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value == "":
        # empty XML element
        return {}
    if not isinstance(value, Mapping):
        raise ConfigParseError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if value is None:
        raise ConfigValidationError(f"{field_name} is required.")
    if not isinstance(value, str):
        raise ConfigParseError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigValidationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # unquoted YAML numbers
        return str(value)
    if not isinstance(value, str):
        raise ConfigParseError(f"{field_name} must be a string.")
    return value
