from __future__ import annotations

import unittest

from app.config import RecordValidationSettings
from app.validators.record_validator import RecordValidator


def _record(**overrides):
    record = {
        "company_id": "c-100",
        "name": "Northwind Robotics",
        "country": "Canada",
        "industry": "Robotics",
    }
    record.update(overrides)
    return record


class TestRecordValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = RecordValidator(
            placeholder_tokens=("demo", "placeholder", "lorem ipsum"),
            required_fields=("country", "industry"),
        )

    def test_accepts_complete_record(self) -> None:
        self.assertTrue(self.validator.is_admissible(_record()))
        self.assertIsNone(self.validator.rejection_reason(_record()))

    def test_rejects_placeholder_token_in_name_case_insensitively(self) -> None:
        self.assertEqual(
            self.validator.rejection_reason(_record(name="DEMO Company Ltd")),
            "placeholder:demo",
        )

    def test_rejects_placeholder_token_in_natural_key(self) -> None:
        self.assertFalse(self.validator.is_admissible(_record(company_id="placeholder-7")))

    def test_substring_match_covers_multi_word_tokens(self) -> None:
        self.assertFalse(self.validator.is_admissible(_record(name="Acme lorem ipsum holdings")))

    def test_rejects_missing_or_blank_required_attributes(self) -> None:
        self.assertEqual(self.validator.rejection_reason(_record(country=None)), "missing_country")
        self.assertEqual(self.validator.rejection_reason(_record(industry="   ")), "missing_industry")

    def test_rejects_missing_natural_key_and_name(self) -> None:
        self.assertEqual(self.validator.rejection_reason(_record(company_id="")), "missing_natural_key")
        self.assertEqual(self.validator.rejection_reason(_record(name=None)), "missing_name")

    def test_rejects_non_object(self) -> None:
        self.assertEqual(self.validator.rejection_reason(["not", "a", "record"]), "not_an_object")

    def test_filter_keeps_order_and_drops_rejects(self) -> None:
        records = [
            _record(company_id="c-1"),
            _record(company_id="c-2", name="Demo Startup"),
            _record(company_id="c-3"),
            _record(company_id="c-4", country=""),
        ]

        kept = self.validator.filter_admissible(records, source_name="batch.json")

        self.assertEqual([record["company_id"] for record in kept], ["c-1", "c-3"])

    def test_from_settings_uses_configured_tokens(self) -> None:
        validator = RecordValidator.from_settings(
            RecordValidationSettings(placeholder_tokens=("sample",), required_fields=("country",))
        )

        self.assertFalse(validator.is_admissible(_record(name="Sample Co")))
        self.assertTrue(validator.is_admissible(_record(name="Demo Co", industry=None)))


if __name__ == "__main__":
    unittest.main()
