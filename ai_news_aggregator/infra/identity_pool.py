"""Browser identity pools used to vary outgoing requests."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True, slots=True)
class Identity:
    """One user agent / referer pairing for a request."""

    user_agent: str
    referer: str


class IdentityPool:
    """Immutable user-agent and referer pools with a pure random selector."""

    def __init__(self, user_agents: Iterable[str], referers: Iterable[str]) -> None:
        self._user_agents: tuple[str, ...] = tuple(ua.strip() for ua in user_agents if ua.strip())
        self._referers: tuple[str, ...] = tuple(ref.strip() for ref in referers if ref.strip())
        if not self._user_agents:
            raise ValueError("IdentityPool requires at least one user agent")
        if not self._referers:
            raise ValueError("IdentityPool requires at least one referer")

    @property
    def user_agents(self) -> tuple[str, ...]:
        return self._user_agents

    @property
    def referers(self) -> tuple[str, ...]:
        return self._referers

    def pick(self, rng: random.Random) -> Identity:
        ua_index = rng.randrange(len(self._user_agents))
        ref_index = rng.randrange(len(self._referers))
        return Identity(user_agent=self._user_agents[ua_index], referer=self._referers[ref_index])

    def __len__(self) -> int:
        return len(self._user_agents)


__all__ = ["Identity", "IdentityPool"]
