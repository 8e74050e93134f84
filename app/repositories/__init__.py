"""
app/repositories package marker.
"""

from app.repositories.startup_repository import StartupRepository

__all__ = [
    "StartupRepository",
]
