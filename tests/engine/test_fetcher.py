from __future__ import annotations

import httpx
import pytest

from ai_news_aggregator.engine import Fetcher
from ai_news_aggregator.engine.antibot import BROWSER_HEADERS
from ai_news_aggregator.engine.antibot.chain import AntiBotChain, RequestDirective
from ai_news_aggregator.errors import FetchError

URL = "https://tools.test/latest/"


def _fetcher(settings, handler, sleeps: list[float]) -> Fetcher:
    return Fetcher(settings, transport=httpx.MockTransport(handler), sleep=sleeps.append)


def _flaky(failures: int, seen: list[httpx.Request], status_code: int = 503):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if len(seen) <= failures:
            return httpx.Response(status_code, text="busy")
        return httpx.Response(200, text="<html>ok</html>")

    return handler


def test_fetcher_success_first_attempt(fetch_settings) -> None:
    seen: list[httpx.Request] = []
    sleeps: list[float] = []
    with _fetcher(fetch_settings(), _flaky(0, seen), sleeps) as fetcher:
        response = fetcher.fetch(URL)

    assert response.status_code == 200
    assert response.text == "<html>ok</html>"
    assert response.attempts == 1
    assert response.elapsed_backoff == 0.0
    assert sleeps == []
    assert len(seen) == 1


def test_fetcher_applies_identity_and_browser_headers(fetch_settings) -> None:
    settings = fetch_settings()
    seen: list[httpx.Request] = []
    with _fetcher(settings, _flaky(0, seen), []) as fetcher:
        fetcher.fetch(URL)

    headers = seen[0].headers
    assert headers["User-Agent"] in settings.user_agents
    assert headers["Referer"] in settings.referers
    for name in ("Accept", "Accept-Language", "Upgrade-Insecure-Requests", "Sec-Fetch-Mode"):
        assert headers[name] == BROWSER_HEADERS[name]


@pytest.mark.parametrize("failures", [0, 1, 2, 3, 4])
def test_fetcher_request_count_is_bounded(fetch_settings, failures: int) -> None:
    seen: list[httpx.Request] = []
    sleeps: list[float] = []
    fetcher = _fetcher(fetch_settings(), _flaky(failures, seen), sleeps)
    try:
        if failures < 3:
            response = fetcher.fetch(URL)
            assert response.attempts == failures + 1
        else:
            with pytest.raises(FetchError) as excinfo:
                fetcher.fetch(URL)
            assert excinfo.value.attempts == 3
            assert excinfo.value.reason == "HTTP 503"
    finally:
        fetcher.close()

    assert len(seen) == min(failures + 1, 3)
    assert len(sleeps) == len(seen) - 1


@pytest.mark.parametrize("seed", range(10))
def test_fetcher_backoff_never_shrinks(fetch_settings, seed: int) -> None:
    settings = fetch_settings(max_attempts=5, base_delay=1.0, jitter_ratio=0.25, max_delay=30.0)
    sleeps: list[float] = []
    fetcher = _fetcher(settings, lambda request: httpx.Response(500), sleeps)
    with pytest.raises(FetchError):
        fetcher.fetch(URL, seed=seed)
    fetcher.close()

    assert len(sleeps) == 4
    assert all(delay > 0 for delay in sleeps)
    assert sleeps == sorted(sleeps)
    assert 0.75 <= sleeps[0] <= 1.25


def test_fetcher_backoff_respects_cap(fetch_settings) -> None:
    settings = fetch_settings(max_attempts=6, base_delay=1.0, max_delay=3.0)
    sleeps: list[float] = []
    fetcher = _fetcher(settings, lambda request: httpx.Response(500), sleeps)
    with pytest.raises(FetchError):
        fetcher.fetch(URL, seed=1)
    fetcher.close()

    assert max(sleeps) <= 3.0
    assert sleeps[-1] == 3.0


def test_fetcher_timeout_consumes_an_attempt(fetch_settings) -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) == 1:
            raise httpx.ReadTimeout("read timed out", request=request)
        return httpx.Response(200, text="late but fine")

    sleeps: list[float] = []
    with _fetcher(fetch_settings(), handler, sleeps) as fetcher:
        response = fetcher.fetch(URL)

    assert response.attempts == 2
    assert response.text == "late but fine"
    assert len(sleeps) == 1
    assert response.elapsed_backoff == pytest.approx(sleeps[0])


def test_fetcher_raises_fetch_error_for_network_failures(fetch_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = _fetcher(fetch_settings(), handler, [])
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)
    fetcher.close()

    error = excinfo.value
    assert error.attempts == 3
    assert error.url == URL
    assert "connection refused" in error.reason
    assert "3 attempts" in str(error)


def test_fetcher_timeout_reason_mentions_timeout(fetch_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("too slow", request=request)

    fetcher = _fetcher(fetch_settings(max_attempts=1), handler, [])
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL)
    fetcher.close()

    assert excinfo.value.attempts == 1
    assert excinfo.value.reason.startswith("timeout")


def test_fetcher_same_seed_same_identities(fetch_settings) -> None:
    settings = fetch_settings(user_agents=[f"UA-{index}" for index in range(20)])

    def agents_for(seed: int) -> list[str]:
        seen: list[httpx.Request] = []
        fetcher = _fetcher(settings, _flaky(5, seen), [])
        with pytest.raises(FetchError):
            fetcher.fetch(URL, seed=seed)
        fetcher.close()
        return [request.headers["User-Agent"] for request in seen]

    assert agents_for(7) == agents_for(7)


def test_fetcher_uses_custom_chain(monkeypatch: pytest.MonkeyPatch, fetch_settings) -> None:
    seen: list[httpx.Request] = []
    fetcher = _fetcher(fetch_settings(), _flaky(0, seen), [])

    class HeaderOnly:
        def before_request(self, attempt, directive: RequestDirective) -> None:
            directive.headers["X-Strategy"] = "enabled"
            directive.timeout = 12

        def after_success(self, attempt, response) -> None:
            return

        def after_failure(self, attempt, response, error) -> None:
            attempt.attempt += 1

    original = fetcher._build_chain

    def build(url, rng):
        attempt, _chain = original(url, rng)
        return attempt, AntiBotChain([HeaderOnly()])

    monkeypatch.setattr(fetcher, "_build_chain", build)
    fetcher.fetch(URL)
    fetcher.close()

    assert seen[0].headers["X-Strategy"] == "enabled"
    assert "Referer" not in seen[0].headers


def test_fetcher_reports_backoff_delays(fetch_settings) -> None:
    sleeps: list[float] = []
    with _fetcher(fetch_settings(), _flaky(2, []), sleeps) as fetcher:
        response = fetcher.fetch(URL, seed=3)
    assert response.delays == tuple(sleeps)
    assert response.elapsed_backoff == pytest.approx(sum(sleeps))

    failing_sleeps: list[float] = []
    fetcher = _fetcher(fetch_settings(), lambda request: httpx.Response(502), failing_sleeps)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch(URL, seed=3)
    fetcher.close()
    assert excinfo.value.delays == tuple(failing_sleeps)
    assert len(excinfo.value.delays) == 2
