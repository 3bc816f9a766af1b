"""Selector knowledge for third-party booking forms.

The booking engine only asks for a logical field; which CSS shapes map to that
field on a given platform lives here.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol

from playwright.sync_api import Locator, Page


class FieldKind(str, Enum):
    APPOINTMENT_TYPE = "appointment_type"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    PHONE = "phone"
    EMAIL = "email"
    DATE = "date"
    SUBMIT = "submit"


class FieldLocator(Protocol):
    def locate(self, page: Page, kind: FieldKind) -> Locator | None:
        ...

    def locate_time_slot(self, page: Page, label: str) -> Locator | None:
        ...


# Ordered by confidence: named attribute, id, then placeholder substring.
APPOINTNOW_FIELD_SELECTORS: Mapping[FieldKind, tuple[str, ...]] = MappingProxyType(
    {
        FieldKind.APPOINTMENT_TYPE: (
            "select[name='appointmentType']",
            "#appointmentType",
            "select[name*='type' i]",
        ),
        FieldKind.FIRST_NAME: (
            "input[name='firstName']",
            "#firstName",
            "input[placeholder*='first' i]",
        ),
        FieldKind.LAST_NAME: (
            "input[name='lastName']",
            "#lastName",
            "input[placeholder*='last' i]",
        ),
        FieldKind.PHONE: (
            "input[name='phone']",
            "#phone",
            "input[type='tel']",
            "input[placeholder*='phone' i]",
        ),
        FieldKind.EMAIL: (
            "input[name='email']",
            "#email",
            "input[type='email']",
            "input[placeholder*='email' i]",
        ),
        FieldKind.DATE: (
            "input[name='date']",
            "#date",
            "input[type='date']",
            "input[placeholder*='date' i]",
        ),
        FieldKind.SUBMIT: (
            "button[type='submit']",
            "input[type='submit']",
            "button:has-text('Book')",
            "button:has-text('Submit')",
        ),
    }
)

APPOINTNOW_TIME_SLOT_SELECTORS: tuple[str, ...] = (
    ".time-slot",
    "[class*='timeslot' i]",
    "[class*='time-slot' i]",
    "[role='option']",
)


class SelectorPatternLocator:
    """Field locator driven by ordered CSS selector lists; first match wins."""

    def __init__(
        self,
        field_selectors: Mapping[FieldKind, tuple[str, ...]] = APPOINTNOW_FIELD_SELECTORS,
        time_slot_selectors: tuple[str, ...] = APPOINTNOW_TIME_SLOT_SELECTORS,
    ) -> None:
        self.field_selectors = field_selectors
        self.time_slot_selectors = time_slot_selectors

    def locate(self, page: Page, kind: FieldKind) -> Locator | None:
        for selector in self.field_selectors.get(kind, ()):
            candidates = page.locator(selector)
            if candidates.count():
                return candidates.first
        return None

    def locate_time_slot(self, page: Page, label: str) -> Locator | None:
        for selector in self.time_slot_selectors:
            candidates = page.locator(selector)
            for index in range(candidates.count()):
                candidate = candidates.nth(index)
                if label in (candidate.inner_text() or ""):
                    return candidate
        return None


def appointnow_locator() -> SelectorPatternLocator:
    return SelectorPatternLocator(APPOINTNOW_FIELD_SELECTORS, APPOINTNOW_TIME_SLOT_SELECTORS)
