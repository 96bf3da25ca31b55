"""Utility modules for Citetrack."""

from .config import Settings, get_settings
from .timeutil import utc_now, as_naive_utc

__all__ = [
    "Settings",
    "get_settings",
    "utc_now",
    "as_naive_utc",
]
