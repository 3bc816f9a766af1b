from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from booking_bridge.adapters.field_locator import FieldKind
from booking_bridge.config import APPOINTMENT_TYPE_CODES, PROVIDER_CODES, Settings
from booking_bridge.domain.models import BookingRequest, PracticeConfig


class FakeElement:
    """Stands in for a Playwright locator bound to one form control."""

    def __init__(
        self,
        text: str = "",
        *,
        truncate_digits_to: int | None = None,
        fail_on: tuple[str, ...] = (),
        on_click: Callable[[], None] | None = None,
    ) -> None:
        self.text = text
        self.value = ""
        self.truncate_digits_to = truncate_digits_to
        self.fail_on = set(fail_on)
        self.on_click = on_click
        self.actions: list[tuple] = []

    def _record(self, action: str, *args) -> None:
        self.actions.append((action, *args))
        if action in self.fail_on:
            raise RuntimeError(f"{action} blew up")

    def clear(self, timeout: float | None = None) -> None:
        self._record("clear")
        self.value = ""

    def fill(self, value: str, timeout: float | None = None) -> None:
        self._record("fill", value)
        if self.truncate_digits_to is not None and value.isdigit():
            value = value[: self.truncate_digits_to]
        self.value = value

    def input_value(self, timeout: float | None = None) -> str:
        self._record("input_value")
        return self.value

    def select_option(self, value: str, timeout: float | None = None) -> None:
        self._record("select_option", value)

    def click(self, timeout: float | None = None) -> None:
        self._record("click")
        if self.on_click is not None:
            self.on_click()

    def inner_text(self, timeout: float | None = None) -> str:
        return self.text

    def action_names(self) -> list[str]:
        return [action[0] for action in self.actions]


class FakeCandidates:
    def __init__(self, page: FakePage, selector: str) -> None:
        self.page = page
        self.selector = selector
        self.elements = page.dom.get(selector, [])

    def count(self) -> int:
        return len(self.elements)

    @property
    def first(self) -> FakeElement:
        return self.elements[0]

    def nth(self, index: int) -> FakeElement:
        return self.elements[index]

    def inner_text(self, timeout: float | None = None) -> str:
        if self.selector == "body":
            if self.page.body_error is not None:
                raise self.page.body_error
            return self.page.body_text
        return self.first.inner_text()


class FakePage:
    def __init__(
        self,
        body_text: str = "",
        *,
        dom: dict[str, list[FakeElement]] | None = None,
        goto_error: Exception | None = None,
        body_error: Exception | None = None,
    ) -> None:
        self.body_text = body_text
        self.dom = dom or {}
        self.goto_error = goto_error
        self.body_error = body_error
        self.visited: list[tuple[str, str | None, float | None]] = []
        self.waits: list[int] = []
        self.screenshots: list[str] = []

    def goto(self, url: str, wait_until: str | None = None, timeout: float | None = None) -> None:
        self.visited.append((url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error

    def wait_for_timeout(self, timeout: int) -> None:
        self.waits.append(timeout)

    def locator(self, selector: str) -> FakeCandidates:
        return FakeCandidates(self, selector)

    def screenshot(self, path: str, full_page: bool = False) -> None:
        Path(path).write_bytes(b"png")
        self.screenshots.append(path)


class FakeFieldLocator:
    """Field locator that hands back pre-built fake controls."""

    def __init__(
        self,
        fields: dict[FieldKind, FakeElement] | None = None,
        time_slots: dict[str, FakeElement] | None = None,
    ) -> None:
        self.fields = fields or {}
        self.time_slots = time_slots or {}

    def locate(self, page, kind: FieldKind):
        return self.fields.get(kind)

    def locate_time_slot(self, page, label: str):
        for text, element in self.time_slots.items():
            if label in text:
                return element
        return None


class FakeSession:
    def __init__(self, page: FakePage, *, start_error: Exception | None = None) -> None:
        self.page = page
        self.start_error = start_error
        self.start_calls = 0
        self.close_calls = 0

    def start(self) -> FakePage:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        return self.page

    def close(self) -> None:
        self.close_calls += 1


def build_form(page: FakePage, *, confirmation_text: str = "Thank you! Your confirmation #ABC-123", **phone_kwargs):
    """A fully populated fake booking form whose submit button swaps in ``confirmation_text``."""

    def _echo() -> None:
        page.body_text = confirmation_text

    fields = {
        FieldKind.APPOINTMENT_TYPE: FakeElement(),
        FieldKind.FIRST_NAME: FakeElement(),
        FieldKind.LAST_NAME: FakeElement(),
        FieldKind.PHONE: FakeElement(**phone_kwargs),
        FieldKind.EMAIL: FakeElement(),
        FieldKind.DATE: FakeElement(),
        FieldKind.SUBMIT: FakeElement(on_click=_echo),
    }
    time_slots = {
        "9:30 AM 09:30": FakeElement(text="09:30"),
        "10:00 AM 10:00": FakeElement(text="10:00"),
    }
    return FakeFieldLocator(fields, time_slots)


@pytest.fixture
def practice() -> PracticeConfig:
    return PracticeConfig(
        practice_token="5391",
        booking_url_template="https://booking.example.test/?P={practice_token}",
        appointment_type_codes=APPOINTMENT_TYPE_CODES,
        provider_codes={**PROVIDER_CODES, "dr-lee": "17"},
    )


@pytest.fixture
def settings(practice: PracticeConfig) -> Settings:
    return Settings(
        practice=practice,
        availability_url="https://booking.example.test/api/availability",
        booking_strategy="form",
        headless=True,
        max_browser_sessions=2,
        session_queue_timeout_s=0.05,
        navigation_timeout_ms=30_000,
        submit_settle_ms=0,
        screenshots_dir=None,
        strict_verification=False,
        twilio_account_sid="AC123",
        twilio_auth_token="secret",
        twilio_phone_number="+14809064274",
        booking_link="https://booking.example.test/?P=5391",
        practice_name="Smile Dental Studio",
        practice_callback_phone="(480) 906-4274",
        server_host="127.0.0.1",
        server_port=3000,
        cors_origins=["*"],
    )


@pytest.fixture
def booking_request() -> BookingRequest:
    return BookingRequest(
        first_name="Test",
        last_name="Patient",
        phone="4805551234",
        date="2026-02-24",
        time="10:00",
        appointment_type="emergency-exam",
        email="test@example.com",
    )
