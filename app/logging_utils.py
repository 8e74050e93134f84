"""
Structured logging for the import job: one JSON object per line.

Result dataclasses (invocation outcomes, control actions) can be passed
whole; their fields become the payload and explicit keyword fields are
layered on top.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any


def event_payload(event: str, source: Any = None, **fields: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"event": event}
    if source is not None:
        if not dataclasses.is_dataclass(source) or isinstance(source, type):
            raise TypeError(f"log source must be a dataclass instance, got {type(source).__name__}")
        payload.update(dataclasses.asdict(source))
    payload.update(fields)
    return payload


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    source: Any = None,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON. Serialization is skipped
    when ``level`` is disabled for ``logger``.
    """

    if not logger.isEnabledFor(level):
        return
    payload = event_payload(event, source, **fields)
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
