"""Strategy chain adapting each outgoing request attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Protocol

import httpx


@dataclass
class RequestDirective:
    """Mutable set of options to apply to an outgoing request."""

    headers: dict[str, str] = field(default_factory=dict)
    timeout: float | None = None
    delay: float | None = None


@dataclass
class FetchAttempt:
    """Ephemeral retry state for one fetch call."""

    url: str
    attempt: int = 1
    max_attempts: int = 1
    last_error: Exception | None = None
    last_response: httpx.Response | None = None
    elapsed_backoff: float = 0.0
    delays: list[float] = field(default_factory=list)

    @property
    def attempts_made(self) -> int:
        # ``attempt`` already points at the next try once a failure is recorded.
        return self.attempt - 1 if self.last_error is not None else self.attempt

    def record_delay(self, delay: float) -> None:
        self.delays.append(delay)
        self.elapsed_backoff += delay


class Strategy(Protocol):
    """Strategy behaviour expected by the chain."""

    def before_request(self, attempt: FetchAttempt, directive: RequestDirective) -> None:
        """Mutate directive ahead of an HTTP request."""

    def after_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        """Allow strategy to observe successful response."""

    def after_failure(
        self,
        attempt: FetchAttempt,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        """Allow strategy to react when a request fails."""


class AntiBotChain:
    """Run every strategy, in order, around each attempt of one fetch."""

    def __init__(self, strategies: Iterable[Strategy] = ()) -> None:
        self.strategies: tuple[Strategy, ...] = tuple(strategies)

    def prepare(self, attempt: FetchAttempt) -> RequestDirective:
        directive = RequestDirective()
        for strategy in self.strategies:
            strategy.before_request(attempt, directive)
        return directive

    def notify_success(self, attempt: FetchAttempt, response: httpx.Response) -> None:
        attempt.last_response = response
        attempt.last_error = None
        for strategy in self.strategies:
            strategy.after_success(attempt, response)

    def notify_failure(
        self,
        attempt: FetchAttempt,
        response: httpx.Response | None,
        error: Exception | None,
    ) -> None:
        attempt.last_response = response
        attempt.last_error = error
        for strategy in self.strategies:
            strategy.after_failure(attempt, response, error)

    def should_retry(self, attempt: FetchAttempt) -> bool:
        return attempt.attempt <= attempt.max_attempts


__all__ = ["AntiBotChain", "FetchAttempt", "RequestDirective", "Strategy"]
