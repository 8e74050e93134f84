"""
app/connectors/local_source_catalog.py

Source catalog reading JSON files from a local directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Sequence

from app.connectors.base import BaseSourceCatalog, SourceFetchError

logger = logging.getLogger(__name__)


class LocalSourceCatalog(BaseSourceCatalog):
    def __init__(self, *, directory: str | Path, file_names: Sequence[str]) -> None:
        super().__init__(file_names=file_names)
        self._directory = Path(directory)

    def fetch_file(self, name: str) -> list[dict[str, Any]]:
        self._require_known(name)
        path = self._directory / name
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise SourceFetchError(f"{name}: file not found in {self._directory}.") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceFetchError(f"{name}: could not be read: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise SourceFetchError(f"{name}: invalid JSON at line {exc.lineno}.") from exc

        records = self.parse_records(name, payload)
        logger.info("Loaded source file name=%s records=%s", name, len(records))
        return records
