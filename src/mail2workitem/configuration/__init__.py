"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .deferred_text import DeferredFileText
from .document_formats import DocumentFormat
from .errors import (
    ConfigArgumentError,
    ConfigFileError,
    ConfigParseError,
    ConfigurationError,
    ConfigValidationError,
)
from .loader import build_document, document_to_mapping, dump_configuration, load_configuration
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
)

__all__ = [
    "ConfigDocument",
    "InstanceConfig",
    "TfsServerConfig",
    "WorkItemSettings",
    "EmailSettings",
    "DefaultValueDefinition",
    "MnemonicDefinition",
    "RecipientOverrideDefinition",
    "DateBasedFieldOverrides",
    "DateBasedOverrideEntry",
    "MailboxServiceType",
    "ProcessingStrategyType",
    "DeferredFileText",
    "DocumentFormat",
    "ConfigurationError",
    "ConfigParseError",
    "ConfigValidationError",
    "ConfigArgumentError",
    "ConfigFileError",
    "load_configuration",
    "build_document",
    "document_to_mapping",
    "dump_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
