"""Error taxonomy shared by the fetch, extract and aggregate stages."""

from __future__ import annotations

from typing import Iterable


class AggregatorError(Exception):
    """Base class for all pipeline errors."""


class NetworkError(AggregatorError):
    """Connection failure or timeout for a single attempt."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Network error for {url}: {reason}")
        self.url = url
        self.reason = reason


class HttpStatusError(AggregatorError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"Unexpected status {status_code} for {url}")
        self.url = url
        self.status_code = status_code
        self.reason = f"HTTP {status_code}"


class FetchError(AggregatorError):
    """Raised once every attempt for a URL has failed."""

    def __init__(self, url: str, reason: str, attempts: int, delays: Iterable[float] = ()) -> None:
        super().__init__(f"Fetch failed after {attempts} attempts: {url} ({reason})")
        self.url = url
        self.reason = reason
        self.attempts = attempts
        self.delays = tuple(delays)


class ExtractionEmpty(AggregatorError):
    """No extraction strategy produced a record; the page layout likely changed."""

    code = "extraction_empty"

    def __init__(self, source: str) -> None:
        super().__init__(
            f"No records extracted from {source}; the page structure may have changed"
        )
        self.source = source


class PartialSourceFailure(AggregatorError):
    """Some sources failed during an aggregation while others succeeded."""

    def __init__(self, failed: Iterable[str], succeeded: Iterable[str]) -> None:
        self.failed = list(failed)
        self.succeeded = list(succeeded)
        super().__init__(
            f"{len(self.failed)} of {len(self.failed) + len(self.succeeded)} sources failed: "
            + ", ".join(self.failed)
        )


class UnknownSourceError(AggregatorError, KeyError):
    """Requested source name is not configured."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown source: {self.name}"


__all__ = [
    "AggregatorError",
    "ExtractionEmpty",
    "FetchError",
    "HttpStatusError",
    "NetworkError",
    "PartialSourceFailure",
    "UnknownSourceError",
]
