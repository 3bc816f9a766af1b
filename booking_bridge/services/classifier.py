"""Classify the booking form's post-submit page text into an outcome."""

from __future__ import annotations

import re

from booking_bridge.domain.models import DIAGNOSTIC_LIMIT, BookingOutcome, OutcomeStatus

POSITIVE_TOKENS = ("confirmation", "confirmed", "success")
NEGATIVE_TOKENS = ("error", "failed")

# Tokens count only at a word start, so "unsuccessful" is not a success.
POSITIVE_PATTERN = re.compile(r"(?<![a-z])(?:" + "|".join(POSITIVE_TOKENS) + ")", re.IGNORECASE)
NEGATIVE_PATTERN = re.compile(r"(?<![a-z])(?:" + "|".join(NEGATIVE_TOKENS) + ")", re.IGNORECASE)

SUCCESS_MESSAGE = "Appointment booked successfully"
FAILURE_MESSAGE = "Booking failed - the form reported a validation error"
UNVERIFIED_MESSAGE = "Booking submitted - please verify manually"

# Label, optional "number"/"no"/"code", optional # or :, then a code holding at least one digit.
CONFIRMATION_PATTERN = re.compile(
    r"(?:confirmation|conf\s*#|reference)\s*(?:number|no\.?|code)?\s*[#:]?\s*"
    r"(?P<token>(?=[A-Z0-9-]*\d)[A-Z0-9][A-Z0-9-]*)",
    re.IGNORECASE,
)


def extract_confirmation_token(page_text: str) -> str | None:
    match = CONFIRMATION_PATTERN.search(page_text)
    if match is None:
        return None
    return match.group("token")


def classify_page(page_text: str) -> BookingOutcome:
    """Positive signals win over negative ones; silence is Unverified, not failure."""
    text = page_text or ""
    diagnostic = text[:DIAGNOSTIC_LIMIT]

    if POSITIVE_PATTERN.search(text):
        return BookingOutcome(
            status=OutcomeStatus.SUCCESS,
            message=SUCCESS_MESSAGE,
            confirmation_token=extract_confirmation_token(text),
            raw_diagnostic=diagnostic,
        )

    if NEGATIVE_PATTERN.search(text):
        return BookingOutcome(status=OutcomeStatus.FAILURE, message=FAILURE_MESSAGE, raw_diagnostic=diagnostic)

    return BookingOutcome(status=OutcomeStatus.UNVERIFIED, message=UNVERIFIED_MESSAGE, raw_diagnostic=diagnostic)
