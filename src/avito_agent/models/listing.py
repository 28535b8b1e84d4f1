"""Data models for harvested listings."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


PRICE_NOT_SPECIFIED = "Price not specified"


def derive_listing_id(
    url: str,
    title: str,
    price: str = PRICE_NOT_SPECIFIED,
    location: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """Stable store key for a listing.

    Prefer the absolute URL with slashes flattened; when no URL could be
    resolved fall back to a short content hash so that the same card seen on
    a later sweep maps to the same key.
    """
    if url:
        return "listing_" + url.replace("/", "_")
    basis = f"{title}|{price}|{location or ''}|{(description or '')[:64]}"
    return "listing_" + hashlib.sha1(basis.encode("utf-8")).hexdigest()[:16]


class Listing(BaseModel):
    """Represents a single apartment ad harvested from the search results."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    price: str = PRICE_NOT_SPECIFIED
    url: str = ""
    location: Optional[str] = None
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> "Listing":
        return cls.model_validate_json(data)
