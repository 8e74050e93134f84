"""
Repository layer exports.
"""

from db.repositories.control_state_repository import ControlStateRepository
from db.repositories.progress_ledger import MAX_ERROR_MESSAGE_LENGTH, ProgressLedger

__all__ = [
    "ControlStateRepository",
    "MAX_ERROR_MESSAGE_LENGTH",
    "ProgressLedger",
]
