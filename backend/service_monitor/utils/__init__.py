"""Utility helpers."""
from .db_utils import retry_on_lock
from .timestamps import utcnow, isoformat_z

__all__ = ["retry_on_lock", "utcnow", "isoformat_z"]
