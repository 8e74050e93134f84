"""
app/connectors/base.py

Source catalog abstraction: an ordered, fixed list of named source files,
each holding an array of raw startup records.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

logger = logging.getLogger(__name__)


class SourceFetchError(RuntimeError):
    """
    Raised when a source file is unreachable or malformed.

    Aborts the current engine invocation; the ledger is left untouched.
    """


class BaseSourceCatalog(ABC):
    """
    Read-only catalog contract used by the import engine.
    """

    def __init__(self, *, file_names: Sequence[str]) -> None:
        self._file_names = tuple(file_names)

    def list_files(self) -> list[str]:
        """
        Return source file names in processing order.
        """

        return list(self._file_names)

    @abstractmethod
    def fetch_file(self, name: str) -> list[dict[str, Any]]:
        """
        Fetch one source file and return its raw records in file order.
        """

    def _require_known(self, name: str) -> None:
        if name not in self._file_names:
            raise SourceFetchError(f"{name}: not part of the source catalog.")

    @staticmethod
    def parse_records(name: str, payload: Any) -> list[dict[str, Any]]:
        """
        Accept a JSON array of records or a JSON object whose values are records.
        """

        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, dict):
            items = list(payload.values())
        else:
            raise SourceFetchError(
                f"{name}: expected a JSON array or object, got {type(payload).__name__}."
            )

        records: list[dict[str, Any]] = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise SourceFetchError(
                    f"{name}: record at position {index} is {type(item).__name__}, expected an object."
                )
            records.append(item)
        return records
