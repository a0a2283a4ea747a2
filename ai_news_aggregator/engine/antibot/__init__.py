"""Request strategy chain: identity rotation, browser headers, retry and backoff."""

from .chain import AntiBotChain, FetchAttempt, RequestDirective, Strategy
from .strategies import (
    BROWSER_HEADERS,
    BackoffStrategy,
    BrowserHeadersStrategy,
    IdentityStrategy,
    RetryStrategy,
    TimeoutStrategy,
    build_chain,
)

__all__ = [
    "BROWSER_HEADERS",
    "AntiBotChain",
    "BackoffStrategy",
    "BrowserHeadersStrategy",
    "FetchAttempt",
    "IdentityStrategy",
    "RequestDirective",
    "RetryStrategy",
    "Strategy",
    "TimeoutStrategy",
    "build_chain",
]
