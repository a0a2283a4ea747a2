"""HTTP fetching with identity rotation and retry/backoff."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict

import httpx
import structlog

from ..config import FetchSettings
from ..errors import FetchError, HttpStatusError, NetworkError
from ..infra import IdentityPool
from .antibot import strategies
from .antibot.chain import AntiBotChain, FetchAttempt


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    attempts: int = 1
    elapsed_backoff: float = 0.0
    delays: tuple[float, ...] = ()
    raw: httpx.Response | None = field(repr=False, default=None)


class Fetcher:
    """Run GET requests through the strategy chain until one succeeds or attempts run out."""

    def __init__(
        self,
        settings: FetchSettings | None = None,
        identity_pool: IdentityPool | None = None,
        logger: structlog.BoundLogger | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or FetchSettings()
        self.identity_pool = identity_pool or IdentityPool(
            self.settings.user_agents, self.settings.referers
        )
        self.logger = logger or structlog.get_logger("ai_news_aggregator.fetcher")
        self._sleep = sleep
        self._client = httpx.Client(
            follow_redirects=True,
            timeout=self.settings.request_timeout,
            transport=transport,
        )

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch(self, url: str, *, seed: int | None = None) -> FetchResponse:
        attempt, chain = self._build_chain(url, random.Random(seed))
        while True:
            directive = chain.prepare(attempt)
            if directive.delay:
                self.logger.info(
                    "fetch_backoff",
                    url=url,
                    attempt=attempt.attempt,
                    delay=round(directive.delay, 3),
                )
                self._sleep(directive.delay)
                attempt.record_delay(directive.delay)

            response: httpx.Response | None = None
            try:
                response = self._client.get(
                    url,
                    headers=directive.headers,
                    timeout=directive.timeout,
                )
                if not response.is_success:
                    raise HttpStatusError(url, response.status_code)
            except httpx.TimeoutException as exc:
                error: Exception = NetworkError(url, f"timeout: {exc}")
            except httpx.RequestError as exc:
                error = NetworkError(url, str(exc) or exc.__class__.__name__)
            except HttpStatusError as exc:
                error = exc
            else:
                chain.notify_success(attempt, response)
                self.logger.debug("fetch_success", url=url, attempt=attempt.attempt)
                return FetchResponse(
                    url=str(response.url),
                    status_code=response.status_code,
                    text=response.text,
                    headers=dict(response.headers),
                    attempts=attempt.attempts_made,
                    elapsed_backoff=attempt.elapsed_backoff,
                    delays=tuple(attempt.delays),
                    raw=response,
                )

            self.logger.warning(
                "fetch_error",
                url=url,
                attempt=attempt.attempt,
                max_attempts=attempt.max_attempts,
                error=str(error),
            )
            chain.notify_failure(attempt, response, error)
            if not chain.should_retry(attempt):
                break

        reason = getattr(attempt.last_error, "reason", str(attempt.last_error))
        raise FetchError(
            url, reason, attempt.attempts_made, delays=attempt.delays
        ) from attempt.last_error

    # ------------------------------------------------------------------
    def _build_chain(self, url: str, rng: random.Random) -> tuple[FetchAttempt, AntiBotChain]:
        return strategies.build_chain(url, self.settings, self.identity_pool, rng)


__all__ = ["FetchResponse", "Fetcher"]
