"""Persistence for harvested listings."""

from .store import (
    LISTING_TTL_SECS,
    KeyValueStore,
    RedisStore,
    SaveOutcome,
    forget_listing,
    load_listing,
    save_if_new,
)

__all__ = [
    "LISTING_TTL_SECS",
    "KeyValueStore",
    "RedisStore",
    "SaveOutcome",
    "forget_listing",
    "load_listing",
    "save_if_new",
]
