"""Concrete request strategies used by the chain."""

from __future__ import annotations

import random

import httpx

from ...config import FetchSettings
from ...infra import IdentityPool
from .chain import AntiBotChain, FetchAttempt, RequestDirective, Strategy

BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "cross-site",
    "Sec-Fetch-User": "?1",
}


class RetryStrategy(Strategy):
    """Expose the attempt ceiling to the fetch loop."""

    def __init__(self, max_attempts: int) -> None:
        self.max_attempts = max(1, max_attempts)

    def before_request(self, attempt: FetchAttempt, directive: RequestDirective) -> None:
        attempt.max_attempts = self.max_attempts

    def after_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        return

    def after_failure(self, attempt: FetchAttempt, response: httpx.Response | None, error: Exception | None) -> None:
        attempt.attempt += 1


class IdentityStrategy(Strategy):
    """Pick a fresh user agent and referer for every attempt."""

    def __init__(self, pool: IdentityPool, rng: random.Random) -> None:
        self.pool = pool
        self.rng = rng

    def before_request(self, attempt: FetchAttempt, directive: RequestDirective) -> None:
        identity = self.pool.pick(self.rng)
        directive.headers["User-Agent"] = identity.user_agent
        directive.headers["Referer"] = identity.referer

    def after_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        return

    def after_failure(self, attempt: FetchAttempt, response: httpx.Response | None, error: Exception | None) -> None:
        return


class BrowserHeadersStrategy(Strategy):
    """Send the header bundle a desktop browser would send."""

    def __init__(self, headers: dict[str, str] | None = None) -> None:
        self.headers = dict(BROWSER_HEADERS if headers is None else headers)

    def before_request(self, attempt: FetchAttempt, directive: RequestDirective) -> None:
        for name, value in self.headers.items():
            directive.headers.setdefault(name, value)

    def after_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        return

    def after_failure(self, attempt: FetchAttempt, response: httpx.Response | None, error: Exception | None) -> None:
        return


class TimeoutStrategy(Strategy):
    """Bound every attempt so a hung upstream only costs one retry."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout

    def before_request(self, attempt: FetchAttempt, directive: RequestDirective) -> None:
        directive.timeout = self.timeout

    def after_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        return

    def after_failure(self, attempt: FetchAttempt, response: httpx.Response | None, error: Exception | None) -> None:
        return


class BackoffStrategy(Strategy):
    """Exponential, jittered wait ahead of every retry."""

    def __init__(
        self,
        base_delay: float,
        jitter_ratio: float,
        max_delay: float,
        rng: random.Random,
    ) -> None:
        self.base_delay = base_delay
        self.jitter_ratio = jitter_ratio
        self.max_delay = max_delay
        self.rng = rng

    def compute_delay(self, failed_attempts: int) -> float:
        raw = self.base_delay * (2 ** (failed_attempts - 1))
        jitter = self.rng.uniform(-self.jitter_ratio, self.jitter_ratio)
        return min(max(0.0, raw * (1 + jitter)), self.max_delay)

    def before_request(self, attempt: FetchAttempt, directive: RequestDirective) -> None:
        failed = attempt.attempt - 1
        if failed < 1:
            return
        directive.delay = self.compute_delay(failed)

    def after_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        return

    def after_failure(self, attempt: FetchAttempt, response: httpx.Response | None, error: Exception | None) -> None:
        return


def build_chain(
    url: str,
    settings: FetchSettings,
    pool: IdentityPool,
    rng: random.Random,
) -> tuple[FetchAttempt, AntiBotChain]:
    """Utility to build a ready-to-use chain from config."""

    attempt = FetchAttempt(url=url, max_attempts=settings.max_attempts)
    strategies: list[Strategy] = [
        RetryStrategy(settings.max_attempts),
        IdentityStrategy(pool, rng),
        BrowserHeadersStrategy(),
        TimeoutStrategy(settings.request_timeout),
        BackoffStrategy(settings.base_delay, settings.jitter_ratio, settings.max_delay, rng),
    ]
    return attempt, AntiBotChain(strategies)


__all__ = [
    "BROWSER_HEADERS",
    "BackoffStrategy",
    "BrowserHeadersStrategy",
    "IdentityStrategy",
    "RetryStrategy",
    "TimeoutStrategy",
    "build_chain",
]
