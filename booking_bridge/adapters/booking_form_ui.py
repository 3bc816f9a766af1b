from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page

from booking_bridge.adapters.field_locator import FieldKind, FieldLocator, appointnow_locator
from booking_bridge.domain.models import PracticeConfig

logger = logging.getLogger(__name__)


class FormNavigationError(RuntimeError):
    """Raised when the booking form cannot be reached."""


class PhoneEntry(str, Enum):
    SKIPPED = "skipped"
    ENTERED = "entered"
    REFORMATTED = "reformatted"


class BookingFormAdapterUI:
    """UI adapter for a practice's patient-facing booking form via Playwright."""

    def __init__(
        self,
        page: Page,
        practice: PracticeConfig,
        locator: FieldLocator | None = None,
        *,
        screenshots_dir: Path | str | None = None,
        navigation_timeout_ms: int = 30_000,
        settle_ms: int = 2_000,
    ) -> None:
        self.page = page
        self.practice = practice
        self.locator = locator or appointnow_locator()
        self.screenshots_dir = Path(screenshots_dir) / "booking_form" if screenshots_dir else None
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_ms = settle_ms

    def capture_failure_screenshot(self, action: str) -> Path | None:
        if self.screenshots_dir is None:
            return None
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshots_dir / f"{int(time.time() * 1000)}_{action}.png"
        self.page.screenshot(path=str(path), full_page=True)
        return path

    def open_form(self) -> None:
        url = self.practice.booking_url
        try:
            self.page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
        except PlaywrightError as exc:
            raise FormNavigationError(f"Could not load booking form: {exc}") from exc

    def select_appointment_type(self, type_key: str | None) -> bool:
        field = self.locator.locate(self.page, FieldKind.APPOINTMENT_TYPE)
        if field is None:
            return False
        field.select_option(self.practice.appointment_type_code(type_key))
        return True

    def _fill_optional(self, kind: FieldKind, value: str | None) -> bool:
        if not value:
            return False
        field = self.locator.locate(self.page, kind)
        if field is None:
            return False
        field.fill(value)
        return True

    def fill_identity(self, first_name: str, last_name: str) -> tuple[bool, bool]:
        return (
            self._fill_optional(FieldKind.FIRST_NAME, first_name),
            self._fill_optional(FieldKind.LAST_NAME, last_name),
        )

    def fill_phone(self, canonical: str, formatted: str) -> PhoneEntry:
        """Enter the phone and re-enter it formatted once if the form truncated it.

        Some booking widgets apply an input mask that drops digits from a bare
        10-digit string; the punctuated form survives the mask.
        """
        field = self.locator.locate(self.page, FieldKind.PHONE)
        if field is None:
            return PhoneEntry.SKIPPED

        field.clear()
        field.fill(canonical)
        entered = field.input_value()
        if len(entered) >= len(canonical):
            return PhoneEntry.ENTERED

        logger.info("Phone field read back %s of %s digits; retrying formatted", len(entered), len(canonical))
        field.clear()
        field.fill(formatted)
        return PhoneEntry.REFORMATTED

    def fill_email(self, email: str | None) -> bool:
        return self._fill_optional(FieldKind.EMAIL, email)

    def fill_date(self, date: str) -> bool:
        return self._fill_optional(FieldKind.DATE, date)

    def select_time_slot(self, time_label: str) -> bool:
        slot = self.locator.locate_time_slot(self.page, time_label)
        if slot is None:
            return False
        slot.click(timeout=10_000)
        return True

    def submit(self) -> bool:
        button = self.locator.locate(self.page, FieldKind.SUBMIT)
        if button is None:
            return False
        button.click(timeout=10_000)
        return True

    def read_page_text(self) -> str:
        self.page.wait_for_timeout(self.settle_ms)
        return self.page.locator("body").inner_text(timeout=10_000)
