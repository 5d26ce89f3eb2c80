"""Effective work item field values for one incoming message.

Several rule kinds may target the same field. They are consulted in a fixed
order and the first one that yields a value wins:

1. recipient override matching the sender alias,
2. mnemonic found in the subject or body,
3. date-based override resolved at the reference date,
4. default field value.

Rules without a value are skipped. Fields no rule targets stay unset so the
caller can apply its own fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from mail2workitem.configuration.settings_tree import WorkItemSettings

from .date_overrides import effective_override_value


@dataclass(frozen=True)
class MessageContext:
    """Message facts the field rules look at."""

    sender_alias: str | None = None
    subject: str = ""
    body: str = ""

    def contains_token(self, token: str) -> bool:
        needle = token.casefold()
        return needle in self.subject.casefold() or needle in self.body.casefold()


class FieldResolutionPolicy:
    """Resolves field values from a work item settings block."""

    def __init__(self, settings: WorkItemSettings) -> None:
        self._settings = settings

    @property
    def settings(self) -> WorkItemSettings:
        return self._settings

    def effective_value(
        self,
        field_name: str,
        message: MessageContext,
        reference: date | datetime | None = None,
    ) -> str | None:
        """Return the value ``field_name`` should take for ``message``, or ``None``."""
        settings = self._settings

        if message.sender_alias:
            sender = message.sender_alias.casefold()
            for override in settings.recipient_overrides:
                if override.value is None or override.field != field_name:
                    continue
                if override.alias.casefold() == sender:
                    return override.value

        for mnemonic in settings.mnemonics:
            if mnemonic.value is None or mnemonic.field != field_name:
                continue
            if message.contains_token(mnemonic.mnemonic):
                return mnemonic.value

        dated = settings.date_based_override_for(field_name)
        if dated is not None:
            dated_value = effective_override_value(dated, reference)
            if dated_value is not None:
                return dated_value

        default = settings.default_value_for(field_name)
        if default is not None:
            return default.value
        return None

    def targeted_fields(self) -> tuple[str, ...]:
        """Every field some rule targets, in first-declared order."""
        settings = self._settings
        names = [item.field for item in settings.recipient_overrides]
        names += [item.field for item in settings.mnemonics]
        names += [item.field_name for item in settings.date_based_overrides]
        names += [item.field for item in settings.default_field_values]
        return tuple(dict.fromkeys(names))

    def effective_values(
        self, message: MessageContext, reference: date | datetime | None = None
    ) -> dict[str, str | None]:
        """Resolve every targeted field for ``message``."""
        return {
            field_name: self.effective_value(field_name, message, reference)
            for field_name in self.targeted_fields()
        }
