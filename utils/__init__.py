"""Shared utilities for the backend."""
from utils.case import dict_keys_to_snake
from utils.stamps import new_id, utc_now

__all__ = [
    "dict_keys_to_snake",
    "new_id",
    "utc_now",
]
