from __future__ import annotations

import pytest
from playwright.sync_api import Error as PlaywrightError

from booking_bridge.adapters import browser
from booking_bridge.adapters.browser import PlaywrightSession


class FakeClosable:
    def __init__(self, name: str, calls: list[str], error: Exception | None = None) -> None:
        self.name = name
        self.calls = calls
        self.error = error

    def close(self) -> None:
        self.calls.append(self.name)
        if self.error is not None:
            raise self.error

    def stop(self) -> None:
        self.calls.append(self.name)


class FakeLauncher:
    def __init__(self, calls: list[str]) -> None:
        self.calls = calls
        self.chromium = self
        self.headless = None

    def start(self) -> FakeLauncher:
        return self

    def launch(self, headless: bool) -> FakeLauncher:
        self.headless = headless
        return self

    def new_context(self) -> FakeLauncher:
        return self

    def new_page(self) -> str:
        return "page"

    def close(self) -> None:
        self.calls.append("closed")

    def stop(self) -> None:
        self.calls.append("playwright")


def _session(calls: list[str], *, context_error=None, browser_error=None) -> PlaywrightSession:
    session = PlaywrightSession()
    session._context = FakeClosable("context", calls, context_error)
    session._browser = FakeClosable("browser", calls, browser_error)
    session._playwright = FakeClosable("playwright", calls)
    return session


def test_start_launches_chromium_and_returns_page(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    launcher = FakeLauncher(calls)
    monkeypatch.setattr(browser, "sync_playwright", lambda: launcher)

    session = PlaywrightSession(headless=False)

    assert session.start() == "page"
    assert launcher.headless is False
    session.close()
    assert calls == ["closed", "closed", "playwright"]


def test_close_logs_playwright_errors_and_finishes_teardown() -> None:
    calls: list[str] = []
    session = _session(calls, context_error=PlaywrightError("context gone"), browser_error=PlaywrightError("browser gone"))

    session.close()

    assert calls == ["context", "browser", "playwright"]


def test_unexpected_close_error_still_stops_browser_and_driver() -> None:
    calls: list[str] = []
    session = _session(calls, context_error=RuntimeError("driver pipe closed"))

    with pytest.raises(RuntimeError, match="driver pipe closed"):
        session.close()

    assert calls == ["context", "browser", "playwright"]
    session.close()
    assert calls == ["context", "browser", "playwright"]


def test_close_before_start_is_a_no_op() -> None:
    PlaywrightSession().close()
