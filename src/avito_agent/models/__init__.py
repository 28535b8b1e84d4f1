"""Data models for the avito harvester."""

from .listing import PRICE_NOT_SPECIFIED, Listing, derive_listing_id

__all__ = ["Listing", "PRICE_NOT_SPECIFIED", "derive_listing_id"]
