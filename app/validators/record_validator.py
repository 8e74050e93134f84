"""
app/validators/record_validator.py

Admissibility filter for raw source records.

A record is skipped when its name or natural key contains a placeholder
token (case-insensitive substring match), or when a required attribute is
missing or blank. The filter runs once per source file before batching; the
filtered length becomes that file's total_count.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from app.config import RecordValidationSettings, get_record_validation_settings

logger = logging.getLogger(__name__)

NATURAL_KEY_FIELD = "company_id"
NAME_FIELD = "name"


class RecordValidator:
    """
    Pure predicate over raw records. No I/O, no state.
    """

    def __init__(
        self,
        *,
        placeholder_tokens: Sequence[str],
        required_fields: Sequence[str] = ("country", "industry"),
    ) -> None:
        self._placeholder_tokens = tuple(
            token.strip().lower() for token in placeholder_tokens if token and token.strip()
        )
        self._required_fields = tuple(required_fields)

    @classmethod
    def from_settings(cls, settings: RecordValidationSettings | None = None) -> "RecordValidator":
        settings = settings or get_record_validation_settings()
        return cls(
            placeholder_tokens=settings.placeholder_tokens,
            required_fields=settings.required_fields,
        )

    def rejection_reason(self, raw: Mapping[str, Any]) -> str | None:
        """
        Return why a record is inadmissible, or None when it may be written.
        """

        if not isinstance(raw, Mapping):
            return "not_an_object"

        natural_key = _as_text(raw.get(NATURAL_KEY_FIELD))
        name = _as_text(raw.get(NAME_FIELD))
        if not natural_key:
            return "missing_natural_key"
        if not name:
            return "missing_name"

        for token in self._placeholder_tokens:
            if token in name.lower() or token in natural_key.lower():
                return f"placeholder:{token}"

        for field_name in self._required_fields:
            if not _as_text(raw.get(field_name)):
                return f"missing_{field_name}"
        return None

    def is_admissible(self, raw: Mapping[str, Any]) -> bool:
        return self.rejection_reason(raw) is None

    def filter_admissible(
        self,
        records: Sequence[Mapping[str, Any]],
        *,
        source_name: str | None = None,
    ) -> list[Mapping[str, Any]]:
        """
        Keep admissible records in their original order.
        """

        kept: list[Mapping[str, Any]] = []
        rejected: dict[str, int] = {}
        for raw in records:
            reason = self.rejection_reason(raw)
            if reason is None:
                kept.append(raw)
            else:
                rejected[reason] = rejected.get(reason, 0) + 1

        if rejected:
            logger.info(
                "Filtered inadmissible records source=%s kept=%s rejected=%s reasons=%s",
                source_name,
                len(kept),
                sum(rejected.values()),
                rejected,
            )
        return kept


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()
