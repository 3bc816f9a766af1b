"""Availability lookups against the booking platform, with a local fallback.

A failed lookup never fails the caller: the voice agent still gets a list of
plausible slots, flagged via ``SlotListing.is_fallback`` so that anything
downstream can tell real availability from the generated list.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from booking_bridge.domain.models import PracticeConfig, SlotListing, TimeSlot

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 10.0

# Half-hour slots between 09:00 and 16:00 with the 12:00-14:00 midday gap removed.
FALLBACK_SLOT_TIMES: tuple[str, ...] = (
    "09:00",
    "09:30",
    "10:00",
    "10:30",
    "11:00",
    "11:30",
    "14:00",
    "14:30",
    "15:00",
    "15:30",
)


def fallback_slots(date: str) -> list[TimeSlot]:
    """Deterministic slot list derived from the date alone."""
    return [TimeSlot(slot_id=f"{date}-{label.replace(':', '')}", time=label, available=True) for label in FALLBACK_SLOT_TIMES]


TRUTHY_FLAGS = frozenset({"true", "1", "yes"})
FALSY_FLAGS = frozenset({"false", "0", "no"})


def _parse_available(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        flag = value.strip().lower()
        if flag in TRUTHY_FLAGS:
            return True
        if flag in FALSY_FLAGS:
            return False
    raise ValueError(f"Unrecognized slot availability flag: {value!r}")


def _parse_slot(item: Any, date: str) -> TimeSlot:
    if not isinstance(item, dict):
        raise ValueError(f"Slot entry must be an object, got {type(item).__name__}")
    label = item.get("time") or item.get("label") or item.get("startTime")
    if not label:
        raise ValueError("Slot entry is missing a time label")
    slot_id = item.get("id") or item.get("slotId") or f"{date}-{str(label).replace(':', '')}"
    available = item.get("available", item.get("isAvailable", True))
    return TimeSlot(slot_id=str(slot_id), time=str(label), available=_parse_available(available))


def parse_slots(payload: Any, date: str) -> list[TimeSlot]:
    items = payload.get("slots") if isinstance(payload, dict) else payload
    if not isinstance(items, list):
        raise ValueError("Availability payload must be a list of slots")
    return [_parse_slot(item, date) for item in items]


class SlotFetcher:
    """Fetch bookable slots for a practice from the remote availability endpoint."""

    def __init__(
        self,
        practice: PracticeConfig,
        endpoint_url: str,
        *,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self.practice = practice
        self.endpoint_url = endpoint_url
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def fetch_slots(self, date: str, appointment_type_code: str, provider_code: str = "") -> SlotListing:
        params = {
            "practiceId": self.practice.practice_token,
            "date": date,
            "appointmentType": appointment_type_code,
        }
        if provider_code:
            params["provider"] = provider_code

        try:
            response = self._client.get(self.endpoint_url, params=params)
            response.raise_for_status()
            slots = parse_slots(response.json(), date)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Availability lookup failed for %s (%s: %s); serving fallback slots",
                date,
                type(exc).__name__,
                exc,
            )
            return SlotListing(date=date, slots=fallback_slots(date), is_fallback=True)

        logger.info("Fetched %s slots for %s", len(slots), date)
        return SlotListing(date=date, slots=slots)
