"""Field value resolution exports."""

from .date_overrides import effective_override_value, today_utc
from .resolution_policy import FieldResolutionPolicy, MessageContext

__all__ = [
    "FieldResolutionPolicy",
    "MessageContext",
    "effective_override_value",
    "today_utc",
]
