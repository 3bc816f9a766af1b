"""Booking strategies: browser automation of the practice form, or SMS hand-off."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Protocol

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from booking_bridge.adapters.booking_form_ui import BookingFormAdapterUI, FormNavigationError
from booking_bridge.adapters.browser import PlaywrightSession
from booking_bridge.adapters.field_locator import FieldLocator
from booking_bridge.config import Settings
from booking_bridge.domain.models import BookingOutcome, BookingRequest, PracticeConfig
from booking_bridge.services.classifier import classify_page
from booking_bridge.utils.logging import get_structured_logger, log_booking_event
from booking_bridge.utils.phone import format_phone, normalize_phone

logger = logging.getLogger(__name__)

WORKFLOW_STEP = "form_booking"


class InvalidBookingRequest(ValueError):
    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class BookingCapacityError(RuntimeError):
    """Raised when no browser session frees up within the queue timeout."""


class BrowserSession(Protocol):
    def start(self) -> Page:
        ...

    def close(self) -> None:
        ...


class BookingStrategy(Protocol):
    name: str

    def book(self, request: BookingRequest, *, request_id: str = "") -> BookingOutcome:
        ...


class SessionGate:
    """Caps concurrent browser sessions; callers queue up to ``acquire_timeout_s``."""

    def __init__(self, max_sessions: int = 3, acquire_timeout_s: float = 30.0) -> None:
        self.max_sessions = max_sessions
        self.acquire_timeout_s = acquire_timeout_s
        self._semaphore = threading.BoundedSemaphore(max_sessions)

    @contextmanager
    def slot(self) -> Iterator[None]:
        if not self._semaphore.acquire(timeout=self.acquire_timeout_s):
            raise BookingCapacityError(
                f"All {self.max_sessions} booking sessions are busy; try again shortly"
            )
        try:
            yield
        finally:
            self._semaphore.release()


class FormBookingStrategy:
    """Complete a booking by driving the practice's web form in a headless browser."""

    name = "form"

    def __init__(
        self,
        practice: PracticeConfig,
        *,
        session_factory: Callable[[], BrowserSession] | None = None,
        locator: FieldLocator | None = None,
        gate: SessionGate | None = None,
        screenshots_dir: Path | str | None = None,
        navigation_timeout_ms: int = 30_000,
        settle_ms: int = 2_000,
    ) -> None:
        self.practice = practice
        self.session_factory = session_factory or PlaywrightSession
        self.locator = locator
        self.gate = gate or SessionGate()
        self.screenshots_dir = screenshots_dir
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_ms = settle_ms
        self.events = get_structured_logger()

    def book(self, request: BookingRequest, *, request_id: str = "") -> BookingOutcome:
        missing = request.missing_fields()
        if missing:
            raise InvalidBookingRequest(missing)

        with self.gate.slot():
            return self._run(request, request_id)

    def _event(self, request: BookingRequest, request_id: str, status: str, message: str, **kwargs) -> None:
        log_booking_event(
            self.events,
            workflow_step=WORKFLOW_STEP,
            patient_name=request.full_name,
            request_id=request_id,
            status=status,
            message=message,
            **kwargs,
        )

    def _run(self, request: BookingRequest, request_id: str) -> BookingOutcome:
        session = self.session_factory()
        form: BookingFormAdapterUI | None = None
        try:
            try:
                page = session.start()
            except Exception as exc:  # any launch fault ends the attempt
                self._event(request, request_id, "failed", "Browser launch failed", error_code="LAUNCH_FAILED", error_message=str(exc))
                return BookingOutcome.failure(f"Could not start browser session: {exc}")

            form = BookingFormAdapterUI(
                page,
                self.practice,
                self.locator,
                screenshots_dir=self.screenshots_dir,
                navigation_timeout_ms=self.navigation_timeout_ms,
                settle_ms=self.settle_ms,
            )
            form.open_form()
            self._event(request, request_id, "attempted", "Booking form loaded")

            if not form.select_appointment_type(request.appointment_type):
                logger.debug("Appointment type field not present; skipped")
            form.fill_identity(request.first_name, request.last_name)

            canonical = normalize_phone(request.phone)
            phone_entry = form.fill_phone(canonical, format_phone(canonical))
            logger.debug("Phone entry result: %s", phone_entry.value)

            form.fill_email(request.email)
            form.fill_date(request.date)
            if not form.select_time_slot(request.time):
                logger.info("No time slot matched %r; continuing without a selection", request.time)
            if not form.submit():
                logger.warning("No submit control found on booking form")

            outcome = classify_page(form.read_page_text())
            self._event(request, request_id, outcome.status.value, outcome.message)
            return outcome
        except FormNavigationError as exc:
            self._event(request, request_id, "failed", "Booking form unreachable", error_code="NAVIGATION_FAILED", error_message=str(exc))
            return BookingOutcome.failure(str(exc))
        except Exception as exc:  # page faults become a failed outcome, never an unhandled error
            logger.exception("Booking attempt %s raised", request_id or "-")
            self._capture_screenshot(form, "booking_error")
            self._event(request, request_id, "failed", "Booking raised exception", error_code=type(exc).__name__.upper(), error_message=str(exc))
            return BookingOutcome.failure(f"Booking error: {exc}")
        finally:
            self._close_session(session)

    @staticmethod
    def _capture_screenshot(form: BookingFormAdapterUI | None, action: str) -> None:
        if form is None:
            return
        try:
            path = form.capture_failure_screenshot(action)
        except (PlaywrightError, OSError) as exc:
            logger.warning("Failure screenshot could not be captured: %s", exc)
            return
        if path is not None:
            logger.info("Saved failure screenshot to %s", path)

    @staticmethod
    def _close_session(session: BrowserSession) -> None:
        try:
            session.close()
        except Exception:  # teardown faults are logged, never raised
            logger.exception("Browser session teardown failed")


def build_booking_strategy(settings: Settings) -> BookingStrategy:
    """Pick the booking strategy named by ``settings.booking_strategy``."""
    if settings.booking_strategy == "sms":
        from booking_bridge.services.sms import build_sms_strategy

        return build_sms_strategy(settings)

    return FormBookingStrategy(
        settings.practice,
        session_factory=lambda: PlaywrightSession(headless=settings.headless),
        gate=SessionGate(settings.max_browser_sessions, settings.session_queue_timeout_s),
        screenshots_dir=settings.screenshots_dir,
        navigation_timeout_ms=settings.navigation_timeout_ms,
        settle_ms=settings.submit_settle_ms,
    )
