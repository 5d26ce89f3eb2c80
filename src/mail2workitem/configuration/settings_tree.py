"""Configuration domain entities."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from pathlib import Path

from .deferred_text import DeferredFileText
from .errors import ConfigValidationError


def normalize_datetime(value: datetime | date) -> datetime:
    """Return ``value`` as a naive UTC datetime; dates map to midnight."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(UTC).replace(tzinfo=None)
        return value
    return datetime(value.year, value.month, value.day)


class ProcessingStrategyType(str, Enum):
    """How incoming messages are turned into work item changes."""

    SIMPLE_BUG = "SimpleBugStrategy"
    UPDATE_ITEM_METADATA = "UpdateItemMetadataStrategy"


class MailboxServiceType(str, Enum):
    """Mailbox access mode."""

    EWS = "EWS"
    EWS_BY_RECIPIENTS = "EWSByRecipients"


@dataclass(frozen=True)
class DefaultValueDefinition:
    """Value applied to a field when nothing more specific matches."""

    field: str
    value: str | None


@dataclass(frozen=True)
class MnemonicDefinition:
    """Token that selects a field value when found in a message."""

    mnemonic: str
    field: str
    value: str | None


@dataclass(frozen=True)
class RecipientOverrideDefinition:
    """Field value selected by the sender alias."""

    alias: str
    field: str
    value: str | None


@dataclass(frozen=True)
class DateBasedOverrideEntry:
    """Value that becomes effective at ``start_date``."""

    start_date: datetime
    value: str | None


@dataclass(frozen=True)
class DateBasedFieldOverrides:
    """Dated value table for one field."""

    field_name: str
    default_value: str | None
    entries: tuple[DateBasedOverrideEntry, ...] = ()


@dataclass(frozen=True)
class TfsServerConfig:  # pylint: disable=too-many-instance-attributes
    """Work item tracking server connectivity."""

    collection_uri: str
    project: str
    work_item_template: str
    service_identity_username: str | None = None
    service_identity_password_file: str | None = None
    cache_query_file: str | None = None
    simulation_mode: bool = False
    names_list_field_name: str | None = None
    ad_organization: str | None = None
    base_directory: Path | None = field(default=None, compare=False, repr=False)
    _cache_query: DeferredFileText = field(init=False, compare=False, repr=False)
    _service_identity_password: DeferredFileText = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_cache_query",
            DeferredFileText(
                self.cache_query_file,
                field_name="TfsServerConfig.CacheQueryFile",
                base_directory=self.base_directory,
            ),
        )
        object.__setattr__(
            self,
            "_service_identity_password",
            DeferredFileText(
                self.service_identity_password_file,
                field_name="TfsServerConfig.ServiceIdentityPasswordFile",
                base_directory=self.base_directory,
            ),
        )

    @property
    def cache_query(self) -> str:
        """Query text used to populate the conversation-to-work-item cache."""
        return self._cache_query.resolve()

    @property
    def service_identity_password(self) -> str:
        return self._service_identity_password.resolve()


@dataclass(frozen=True)
class WorkItemSettings:  # pylint: disable=too-many-instance-attributes
    """Work item field policy."""

    conversation_index_field_name: str | None = None
    default_field_values: tuple[DefaultValueDefinition, ...] = ()
    mnemonics: tuple[MnemonicDefinition, ...] = ()
    recipient_overrides: tuple[RecipientOverrideDefinition, ...] = ()
    date_based_overrides: tuple[DateBasedFieldOverrides, ...] = ()
    add_email_header_to_item: bool = False
    default_assign: str | None = None
    attach_original_message: bool = False
    processing_strategy: ProcessingStrategyType = ProcessingStrategyType.SIMPLE_BUG

    def default_value_for(self, field_name: str) -> DefaultValueDefinition | None:
        """Return the first default declared for ``field_name``."""
        for definition in self.default_field_values:
            if definition.field == field_name:
                return definition
        return None

    def date_based_override_for(self, field_name: str) -> DateBasedFieldOverrides | None:
        for overrides in self.date_based_overrides:
            if overrides.field_name == field_name:
                return overrides
        return None


@dataclass(frozen=True)
class EmailSettings:  # pylint: disable=too-many-instance-attributes
    """Mailbox handling configuration."""

    service_type: MailboxServiceType = MailboxServiceType.EWS
    ews_mailbox_address: str | None = None
    ews_username: str | None = None
    ews_password_file: str | None = None
    send_ack_emails: bool = False
    ack_emails_recipients_all: bool = False
    incoming_folder: str | None = None
    completed_folder: str | None = None
    error_folder: str | None = None
    recipient_display_names: str | None = None
    append_only_email_title_regex: str | None = None
    append_only_email_body_regex: str | None = None
    reply_template: str | None = None
    base_directory: Path | None = field(default=None, compare=False, repr=False)
    _ews_password: DeferredFileText = field(init=False, compare=False, repr=False)
    _reply_template_text: DeferredFileText = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_ews_password",
            DeferredFileText(
                self.ews_password_file,
                field_name="EmailSettings.EWSPasswordFile",
                base_directory=self.base_directory,
            ),
        )
        object.__setattr__(
            self,
            "_reply_template_text",
            DeferredFileText(
                self.reply_template,
                field_name="EmailSettings.ReplyTemplate",
                base_directory=self.base_directory,
            ),
        )

    @property
    def ews_password(self) -> str:
        return self._ews_password.resolve()

    @property
    def reply_template_text(self) -> str:
        """Body template used for acknowledgement replies."""
        return self._reply_template_text.resolve()

    def get_reply_template(self) -> str:
        return self.reply_template_text

    @property
    def recipient_display_name_list(self) -> tuple[str, ...]:
        """Display names from ``recipient_display_names``, split on semicolons."""
        if not self.recipient_display_names:
            return ()
        names = (item.strip() for item in self.recipient_display_names.split(";"))
        return tuple(name for name in names if name)


@dataclass(frozen=True)
class InstanceConfig:
    """One independently configured mail-to-work-item pipeline."""

    name: str
    tfs_server: TfsServerConfig
    work_items: WorkItemSettings
    email: EmailSettings


@dataclass(frozen=True)
class ConfigDocument:
    """Top-level configuration aggregate."""

    instances: tuple[InstanceConfig, ...] = ()
    source_path: Path | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        duplicates = sorted(
            name
            for name, count in Counter(item.name for item in self.instances).items()
            if count > 1
        )
        if duplicates:
            raise ConfigValidationError(
                f"Instance names must be unique; duplicated: {', '.join(duplicates)}."
            )

    @property
    def instance_names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.instances)

    def instance(self, name: str) -> InstanceConfig:
        """Return the instance called ``name``.

        Raises:
          KeyError: If no instance has that name.
        """
        for item in self.instances:
            if item.name == name:
                return item
        raise KeyError(name)
