"""Exception types raised by the acquisition engine."""

from __future__ import annotations


class AgentError(Exception):
    """Base class for harvester errors."""


class FetchFailure(AgentError):
    """The renderer could not load or query a page. Retryable."""

    def __init__(self, url: str, cause: BaseException | None = None) -> None:
        self.url = url
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"failed to fetch {url}{detail}")


class ExtractionFailure(AgentError):
    """A single listing element could not be turned into a ``Listing``."""


class MissingTitle(ExtractionFailure):
    def __init__(self) -> None:
        super().__init__("title not found")


class InvalidListing(AgentError):
    """Malformed input handed to the persist step."""


class PersistFailure(AgentError):
    """The store rejected a read or write."""
