"""Effective value lookup for dated field override tables."""

from __future__ import annotations

from datetime import UTC, date, datetime

from mail2workitem.configuration.settings_tree import (
    DateBasedFieldOverrides,
    DateBasedOverrideEntry,
    normalize_datetime,
)


def today_utc() -> datetime:
    """Current UTC calendar date as a naive midnight datetime."""
    return normalize_datetime(datetime.now(UTC).date())


def effective_override_value(
    overrides: DateBasedFieldOverrides, reference: date | datetime | None = None
) -> str | None:
    """Return the value in effect for ``overrides`` at ``reference``.

    Only entries starting on or before ``reference`` qualify. The one with the
    latest start date wins; among equal start dates the entry declared last
    wins. Without a qualifying entry the table's default value applies.
    ``reference`` defaults to today's UTC date.
    """
    moment = today_utc() if reference is None else normalize_datetime(reference)
    selected: DateBasedOverrideEntry | None = None
    for entry in overrides.entries:
        if entry.start_date > moment:
            continue
        if selected is None or entry.start_date >= selected.start_date:
            selected = entry
    if selected is None:
        return overrides.default_value
    return selected.value
