"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "mail2workitem.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Configuration template for mail2workitem.
# Replace every <REQUIRED> placeholder before validating the document.
# Remove <OPTIONAL> keys your setup does not need.
# Relative file paths are resolved against the directory of this file.

Instances:
  - Name: "<REQUIRED>"
    TfsServerConfig:
      CollectionUri: "<REQUIRED>"
      Project: "<REQUIRED>"
      WorkItemTemplate: "<REQUIRED>"
      ServiceIdentityUsername: "<OPTIONAL>"
      ServiceIdentityPasswordFile: "<OPTIONAL>"
      # File holding the work item query used to match conversations to items.
      CacheQueryFile: "<OPTIONAL>"
      # When true, no work items are created or saved.
      SimulationMode: false
      NamesListFieldName: "<OPTIONAL>"
      ADOrganization: "<OPTIONAL>"
    WorkItemSettings:
      ConversationIndexFieldName: "<OPTIONAL>"
      # First entry per field wins.
      DefaultFieldValues:
        - Field: "<OPTIONAL>"
          Value: "<OPTIONAL>"
      Mnemonics:
        - Mnemonic: "<OPTIONAL>"
          Field: "<OPTIONAL>"
          Value: "<OPTIONAL>"
      RecipientOverrides:
        - Alias: "<OPTIONAL>"
          Field: "<OPTIONAL>"
          Value: "<OPTIONAL>"
      DateBasedOverrides:
        - FieldName: "<OPTIONAL>"
          DefaultValue: "<OPTIONAL>"
          Entries:
            # StartDate is an ISO date, compared as a UTC calendar date.
            - StartDate: 2020-01-01
              Value: "<OPTIONAL>"
      AddEmailHeaderToItem: false
      DefaultAssign: "<OPTIONAL>"
      AttachOriginalMessage: false
      # SimpleBugStrategy or UpdateItemMetadataStrategy.
      ProcessingStrategy: SimpleBugStrategy
    EmailSettings:
      # EWS uses the folder settings; EWSByRecipients uses RecipientDisplayNames.
      ServiceType: EWS
      EWSMailboxAddress: "<OPTIONAL>"
      EWSUsername: "<OPTIONAL>"
      EWSPasswordFile: "<OPTIONAL>"
      SendAckEmails: false
      AckEmailsRecipientsAll: false
      IncomingFolder: "<OPTIONAL>"
      CompletedFolder: "<OPTIONAL>"
      ErrorFolder: "<OPTIONAL>"
      # Semicolon delimited display names.
      RecipientDisplayNames: "<OPTIONAL>"
      AppendOnlyEmailTitleRegex: "<OPTIONAL>"
      AppendOnlyEmailBodyRegex: "<OPTIONAL>"
      ReplyTemplate: "<OPTIONAL>"
"""


def build_placeholder_configuration() -> str:
    """Build a YAML configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
