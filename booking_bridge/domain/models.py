from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Mapping

DEFAULT_APPOINTMENT_TYPE = "emergency-exam"
DIAGNOSTIC_LIMIT = 500


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNVERIFIED = "unverified"


@dataclass(slots=True)
class BookingRequest:
    first_name: str
    last_name: str
    phone: str
    date: str
    time: str
    appointment_type: str = DEFAULT_APPOINTMENT_TYPE
    email: str | None = None
    provider: str | None = None

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("first_name", "last_name", "phone", "date", "time")

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not str(getattr(self, name) or "").strip()]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(slots=True, frozen=True)
class TimeSlot:
    slot_id: str
    time: str
    available: bool = True


@dataclass(slots=True)
class SlotListing:
    date: str
    slots: list[TimeSlot] = field(default_factory=list)
    is_fallback: bool = False

    @property
    def source(self) -> str:
        return "fallback" if self.is_fallback else "remote"

    def available_times(self) -> list[str]:
        return [slot.time for slot in self.slots if slot.available]


@dataclass(slots=True)
class BookingOutcome:
    status: OutcomeStatus
    message: str
    confirmation_token: str | None = None
    raw_diagnostic: str = ""

    @property
    def success(self) -> bool:
        return self.is_success()

    def is_success(self, *, allow_unverified: bool = True) -> bool:
        """Unverified submissions count as success unless the caller opts out."""
        if self.status is OutcomeStatus.UNVERIFIED:
            return allow_unverified
        return self.status is OutcomeStatus.SUCCESS

    @classmethod
    def failure(cls, message: str, raw_diagnostic: str = "") -> BookingOutcome:
        return cls(status=OutcomeStatus.FAILURE, message=message, raw_diagnostic=raw_diagnostic[:DIAGNOSTIC_LIMIT])


@dataclass(slots=True, frozen=True)
class PracticeConfig:
    """Immutable per-practice settings handed to the booking and availability services."""

    practice_token: str
    booking_url_template: str
    appointment_type_codes: Mapping[str, str] = field(default_factory=dict)
    provider_codes: Mapping[str, str] = field(default_factory=dict)
    default_appointment_type_code: str = "1"
    default_provider_code: str = ""

    def __post_init__(self) -> None:
        # Frozen dataclass: swap the lookup tables for read-only views.
        object.__setattr__(self, "appointment_type_codes", MappingProxyType(dict(self.appointment_type_codes)))
        object.__setattr__(self, "provider_codes", MappingProxyType(dict(self.provider_codes)))

    @property
    def booking_url(self) -> str:
        return self.booking_url_template.format(practice_token=self.practice_token)

    def appointment_type_code(self, key: str | None) -> str:
        return self.appointment_type_codes.get((key or "").strip().lower(), self.default_appointment_type_code)

    def provider_code(self, key: str | None) -> str:
        return self.provider_codes.get((key or "").strip().lower(), self.default_provider_code)
