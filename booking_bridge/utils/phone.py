from __future__ import annotations

import re

CANONICAL_LENGTH = 10


def normalize_phone(raw: str | None) -> str:
    """Return the 10-digit domestic form of a free-form phone number.

    Rules:
    - strip everything that is not a digit
    - 11 digits with a leading 1 drops the country code
    - 10+ digits keeps the rightmost 10
    - shorter input passes through unpadded for the caller to detect
    """
    digits = re.sub(r"\D", "", raw or "")
    if len(digits) == CANONICAL_LENGTH + 1 and digits.startswith("1"):
        return digits[1:]
    if len(digits) >= CANONICAL_LENGTH:
        return digits[-CANONICAL_LENGTH:]
    return digits


def format_phone(raw: str | None) -> str:
    """Render as (AAA) BBB-CCCC, or hand back the input untouched."""
    canonical = normalize_phone(raw)
    if len(canonical) != CANONICAL_LENGTH:
        return raw or ""
    return f"({canonical[:3]}) {canonical[3:6]}-{canonical[6:]}"


def to_e164(raw: str | None) -> str | None:
    """Return an E.164 number for SMS delivery, else None.

    Input with a leading + keeps its own country code; anything else is
    treated as a domestic number and gets +1.
    """
    if not raw or not raw.strip():
        return None

    cleaned = raw.strip()
    if cleaned.startswith("+"):
        normalized = "+" + re.sub(r"\D", "", cleaned)
    else:
        canonical = normalize_phone(cleaned)
        if len(canonical) != CANONICAL_LENGTH:
            return None
        normalized = f"+1{canonical}"

    if not re.fullmatch(r"\+[1-9]\d{7,14}", normalized):
        return None
    return normalized
