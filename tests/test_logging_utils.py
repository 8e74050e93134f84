"""
tests/test_logging_utils.py

JSON event lines built from keyword fields and result dataclasses.
"""

from __future__ import annotations

import json
import logging
import unittest

from app.domain.migration import MigrationRunResult, RunOutcome
from app.logging_utils import event_payload, log_event

logger = logging.getLogger("tests.logging_utils")


class LogEventTests(unittest.TestCase):
    def test_line_is_sorted_json(self) -> None:
        with self.assertLogs(logger, level="INFO") as captured:
            log_event(logger, logging.INFO, "migration_control", action="pause", is_paused=True)

        self.assertEqual(
            captured.records[0].getMessage(),
            '{"action": "pause", "event": "migration_control", "is_paused": true}',
        )

    def test_result_dataclass_fields_are_merged(self) -> None:
        result = MigrationRunResult(
            outcome=RunOutcome.PROCESSED,
            message="Processed a.json records 0-5 of 12.",
            file_name="a.json",
            processed=5,
            total=12,
        )

        with self.assertLogs(logger, level="INFO") as captured:
            log_event(logger, logging.INFO, "migration_invocation", result, success=result.success)

        payload = json.loads(captured.records[0].getMessage())
        self.assertEqual(payload["event"], "migration_invocation")
        self.assertEqual(payload["file_name"], "a.json")
        self.assertEqual((payload["processed"], payload["total"]), (5, 12))
        self.assertIs(payload["success"], True)

    def test_keyword_fields_override_source(self) -> None:
        result = MigrationRunResult(outcome=RunOutcome.PAUSED, message="paused")

        payload = event_payload("migration_invocation", result, message="redacted")

        self.assertEqual(payload["message"], "redacted")
        self.assertEqual(payload["outcome"], RunOutcome.PAUSED)

    def test_non_dataclass_source_is_rejected(self) -> None:
        with self.assertRaises(TypeError):
            event_payload("migration_invocation", {"outcome": "processed"})
        with self.assertRaises(TypeError):
            event_payload("migration_invocation", MigrationRunResult)

    def test_disabled_level_emits_nothing(self) -> None:
        quiet = logging.getLogger("tests.logging_utils.quiet")
        quiet.setLevel(logging.WARNING)
        self.addCleanup(quiet.setLevel, logging.NOTSET)

        with self.assertLogs(quiet, level="WARNING") as captured:
            log_event(quiet, logging.INFO, "migration_invocation", outcome="processed")
            quiet.warning("marker")

        self.assertEqual([record.getMessage() for record in captured.records], ["marker"])


if __name__ == "__main__":
    unittest.main()
