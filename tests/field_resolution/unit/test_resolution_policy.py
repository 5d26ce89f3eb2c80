"""Field resolution precedence tests."""

from __future__ import annotations

from datetime import date, datetime

import pytest
from mail2workitem.configuration.settings_tree import (
    DateBasedFieldOverrides,
    DateBasedOverrideEntry,
    DefaultValueDefinition,
    MnemonicDefinition,
    RecipientOverrideDefinition,
    WorkItemSettings,
)
from mail2workitem.field_resolution.resolution_policy import FieldResolutionPolicy, MessageContext

_REFERENCE = date(2021, 1, 1)


def _settings(*, with_date_override: bool = True) -> WorkItemSettings:
    date_based = (
        (
            DateBasedFieldOverrides(
                field_name="F",
                default_value="Z",
                entries=(DateBasedOverrideEntry(datetime(2020, 1, 1), "D"),),
            ),
        )
        if with_date_override
        else ()
    )
    return WorkItemSettings(
        default_field_values=(
            DefaultValueDefinition(field="F", value="P"),
            DefaultValueDefinition(field="G", value="G1"),
            DefaultValueDefinition(field="G", value="G2"),
        ),
        mnemonics=(MnemonicDefinition(mnemonic="#urgent", field="F", value="M"),),
        recipient_overrides=(RecipientOverrideDefinition(alias="alice", field="F", value="R"),),
        date_based_overrides=date_based,
    )


def test_recipient_override_wins() -> None:
    policy = FieldResolutionPolicy(_settings())
    message = MessageContext(sender_alias="alice", subject="Printer broken")

    assert policy.effective_value("F", message, _REFERENCE) == "R"


def test_recipient_override_beats_mnemonic() -> None:
    policy = FieldResolutionPolicy(_settings())
    message = MessageContext(sender_alias="alice", subject="#urgent printer broken")

    assert policy.effective_value("F", message, _REFERENCE) == "R"


def test_mnemonic_wins_for_other_senders() -> None:
    policy = FieldResolutionPolicy(_settings())
    message = MessageContext(sender_alias="bob", subject="Printer", body="this is #urgent")

    assert policy.effective_value("F", message, _REFERENCE) == "M"


def test_date_override_applies_without_rule_match() -> None:
    policy = FieldResolutionPolicy(_settings())
    message = MessageContext(sender_alias="bob", subject="Printer broken")

    assert policy.effective_value("F", message, _REFERENCE) == "D"


def test_date_override_default_applies_before_first_entry() -> None:
    policy = FieldResolutionPolicy(_settings())
    message = MessageContext(sender_alias="bob")

    assert policy.effective_value("F", message, date(2019, 6, 1)) == "Z"


def test_default_field_value_applies_without_date_override() -> None:
    policy = FieldResolutionPolicy(_settings(with_date_override=False))
    message = MessageContext(sender_alias="bob", subject="Printer broken")

    assert policy.effective_value("F", message, _REFERENCE) == "P"


def test_date_override_without_value_falls_back_to_default_field_value() -> None:
    settings = WorkItemSettings(
        default_field_values=(DefaultValueDefinition(field="F", value="P"),),
        date_based_overrides=(DateBasedFieldOverrides(field_name="F", default_value=None),),
    )

    assert FieldResolutionPolicy(settings).effective_value("F", MessageContext(), _REFERENCE) == "P"


def test_first_declared_default_wins() -> None:
    policy = FieldResolutionPolicy(_settings())

    assert policy.effective_value("G", MessageContext(), _REFERENCE) == "G1"


def test_untargeted_field_is_unset() -> None:
    policy = FieldResolutionPolicy(_settings())

    message = MessageContext(sender_alias="alice")

    assert policy.effective_value("Unknown", message, _REFERENCE) is None


@pytest.mark.parametrize(
    "message",
    [
        MessageContext(sender_alias="ALICE"),
        MessageContext(sender_alias="bob", subject="#URGENT"),
    ],
)
def test_matching_ignores_case(message: MessageContext) -> None:
    policy = FieldResolutionPolicy(_settings(with_date_override=False))

    assert policy.effective_value("F", message, _REFERENCE) in {"R", "M"}


def test_first_matching_mnemonic_in_declared_order_wins() -> None:
    settings = WorkItemSettings(
        mnemonics=(
            MnemonicDefinition(mnemonic="#ui", field="Area", value="UI"),
            MnemonicDefinition(mnemonic="#db", field="Area", value="Database"),
        )
    )
    message = MessageContext(subject="#db slow", body="also #ui glitch")

    assert FieldResolutionPolicy(settings).effective_value("Area", message, _REFERENCE) == "UI"


def test_recipient_override_for_other_field_is_ignored() -> None:
    settings = WorkItemSettings(
        recipient_overrides=(RecipientOverrideDefinition(alias="alice", field="Owner", value="A"),),
        default_field_values=(DefaultValueDefinition(field="F", value="P"),),
    )
    message = MessageContext(sender_alias="alice")

    assert FieldResolutionPolicy(settings).effective_value("F", message, _REFERENCE) == "P"


def test_effective_values_covers_every_targeted_field() -> None:
    policy = FieldResolutionPolicy(_settings())
    message = MessageContext(sender_alias="bob", subject="#urgent")

    assert policy.targeted_fields() == ("F", "G")
    assert policy.effective_values(message, _REFERENCE) == {"F": "M", "G": "G1"}


def test_rules_without_value_fall_through_to_default() -> None:
    settings = WorkItemSettings(
        default_field_values=(DefaultValueDefinition(field="F", value="P"),),
        mnemonics=(MnemonicDefinition(mnemonic="#urgent", field="F", value=None),),
        recipient_overrides=(RecipientOverrideDefinition(alias="alice", field="F", value=None),),
    )
    message = MessageContext(sender_alias="alice", subject="#urgent")

    assert FieldResolutionPolicy(settings).effective_value("F", message, _REFERENCE) == "P"


def test_recipient_override_without_value_yields_to_mnemonic() -> None:
    settings = WorkItemSettings(
        mnemonics=(MnemonicDefinition(mnemonic="#urgent", field="F", value="M"),),
        recipient_overrides=(RecipientOverrideDefinition(alias="alice", field="F", value=None),),
    )
    message = MessageContext(sender_alias="alice", body="please treat as #urgent")

    assert FieldResolutionPolicy(settings).effective_value("F", message, _REFERENCE) == "M"
