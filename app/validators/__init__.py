"""
app/validators package marker.
"""

from app.validators.record_validator import NATURAL_KEY_FIELD, RecordValidator

__all__ = [
    "NATURAL_KEY_FIELD",
    "RecordValidator",
]
