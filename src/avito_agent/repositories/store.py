from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Protocol

import redis

from avito_agent.config import RedisConfig
from avito_agent.errors import InvalidListing, PersistFailure
from avito_agent.models import Listing


logger = logging.getLogger(__name__)

LISTING_TTL_SECS = 24 * 60 * 60


class KeyValueStore(Protocol):
    def exists(self, key: str) -> bool: ...

    def set(self, key: str, value: str, ttl: int) -> None: ...

    def get(self, key: str) -> Optional[str]: ...

    def delete(self, key: str) -> None: ...


class RedisStore:
    """Key-value store backed by Redis, with per-key expiry."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_config(cls, config: RedisConfig) -> "RedisStore":
        if config.url:
            client = redis.Redis.from_url(config.url, decode_responses=True)
        else:
            client = redis.Redis(
                host=config.host,
                port=config.port,
                password=config.password,
                db=config.db,
                decode_responses=True,
            )
        return cls(client)

    def ping(self) -> None:
        """Raise ``redis.RedisError`` if the server is unreachable."""
        self._redis.ping()
        logger.info("Successfully connected to Redis")

    def exists(self, key: str) -> bool:
        try:
            return int(self._redis.exists(key)) > 0
        except redis.RedisError as exc:
            raise PersistFailure(f"exists {key}: {exc}") from exc

    def set(self, key: str, value: str, ttl: int) -> None:
        try:
            self._redis.set(key, value, ex=ttl)
        except redis.RedisError as exc:
            raise PersistFailure(f"set {key}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            val = self._redis.get(key)
        except redis.RedisError as exc:
            raise PersistFailure(f"get {key}: {exc}") from exc
        return val.decode("utf-8") if isinstance(val, (bytes, bytearray)) else val

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except redis.RedisError as exc:
            raise PersistFailure(f"delete {key}: {exc}") from exc

    def close(self) -> None:
        self._redis.close()


class SaveOutcome(Enum):
    SAVED = "saved"
    ALREADY_EXISTS = "already_exists"


def save_if_new(
    store: KeyValueStore, listing: Optional[Listing], ttl: int = LISTING_TTL_SECS
) -> SaveOutcome:
    """Persist ``listing`` unless a record with the same id is already stored.

    The existence check and the write are separate round trips, so two
    concurrent writers could both store the same id. The harvester runs as a
    single worker and accepts that.

    Any store fault surfaces as ``PersistFailure``, whatever the backend.
    """
    if listing is None or not listing.id:
        raise InvalidListing("listing is empty or has no id")
    try:
        if store.exists(listing.id):
            return SaveOutcome.ALREADY_EXISTS
        store.set(listing.id, listing.to_json(), ttl)
    except PersistFailure:
        raise
    except Exception as exc:
        raise PersistFailure(f"failed to save listing {listing.id}: {exc}") from exc
    logger.info("Saved listing: %s - %s", listing.title, listing.price)
    return SaveOutcome.SAVED


def load_listing(store: KeyValueStore, listing_id: str) -> Optional[Listing]:
    try:
        raw = store.get(listing_id)
    except PersistFailure:
        raise
    except Exception as exc:
        raise PersistFailure(f"failed to read listing {listing_id}: {exc}") from exc
    if raw is None:
        return None
    return Listing.from_json(raw)


def forget_listing(store: KeyValueStore, listing_id: str) -> None:
    try:
        store.delete(listing_id)
    except PersistFailure:
        raise
    except Exception as exc:
        raise PersistFailure(f"failed to delete listing {listing_id}: {exc}") from exc
