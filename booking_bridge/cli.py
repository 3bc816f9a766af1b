"""Top-level booking bridge command line interface."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from datetime import date as Date
from typing import Sequence

from booking_bridge.config import load_settings
from booking_bridge.domain.models import DEFAULT_APPOINTMENT_TYPE, BookingRequest
from booking_bridge.services.availability import SlotFetcher
from booking_bridge.services.booking import build_booking_strategy
from booking_bridge.utils.logging import configure_logging
from booking_bridge.utils.phone import format_phone, normalize_phone


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="booking-bridge", description="Dental booking bridge CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service")
    serve_parser.add_argument("--host", help="Bind address (default: SERVER_HOST or 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default: PORT or 3000)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve_parser.set_defaults(handler=_handle_serve)

    book_parser = subparsers.add_parser("book", help="Run a single booking attempt and print the outcome")
    book_parser.add_argument("--first-name", required=True)
    book_parser.add_argument("--last-name", required=True)
    book_parser.add_argument("--phone", required=True)
    book_parser.add_argument("--date", required=True, type=Date.fromisoformat, help="Appointment date in YYYY-MM-DD format")
    book_parser.add_argument("--time", required=True, help="Time label as shown on the form, e.g. 10:00")
    book_parser.add_argument("--email")
    book_parser.add_argument("--appointment-type", default=DEFAULT_APPOINTMENT_TYPE)
    book_parser.add_argument("--provider")
    book_parser.set_defaults(handler=_handle_book)

    slots_parser = subparsers.add_parser("slots", help="Print available slots for a date")
    slots_parser.add_argument("--date", required=True, type=Date.fromisoformat, help="Target date in YYYY-MM-DD format")
    slots_parser.add_argument("--appointment-type", default=DEFAULT_APPOINTMENT_TYPE)
    slots_parser.add_argument("--provider")
    slots_parser.set_defaults(handler=_handle_slots)

    phone_parser = subparsers.add_parser("format-phone", help="Show canonical and display forms of a phone number")
    phone_parser.add_argument("phone")
    phone_parser.set_defaults(handler=_handle_format_phone)

    return parser


def _handle_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "booking_bridge.server:app",
        host=args.host or settings.server_host,
        port=args.port or settings.server_port,
        reload=args.reload,
    )
    return 0


def _handle_book(args: argparse.Namespace) -> int:
    settings = load_settings()
    strategy = build_booking_strategy(settings)
    request = BookingRequest(
        first_name=args.first_name,
        last_name=args.last_name,
        phone=args.phone,
        date=args.date.isoformat(),
        time=args.time,
        appointment_type=args.appointment_type,
        email=args.email,
        provider=args.provider,
    )
    missing = request.missing_fields()
    if missing:
        flags = [f"--{name.replace('_', '-')}" for name in missing]
        print(json.dumps({"error": "Missing required fields", "missing": flags}, indent=2))
        return 2

    outcome = strategy.book(request, request_id="cli")
    success = outcome.is_success(allow_unverified=not settings.strict_verification)
    print(
        json.dumps(
            {
                "strategy": strategy.name,
                "success": success,
                "status": outcome.status.value,
                "confirmationNumber": outcome.confirmation_token,
                "message": outcome.message,
                "rawDiagnostic": outcome.raw_diagnostic,
            },
            indent=2,
        )
    )
    return 0 if success else 1


def _handle_slots(args: argparse.Namespace) -> int:
    settings = load_settings()
    fetcher = SlotFetcher(settings.practice, settings.availability_url)
    try:
        listing = fetcher.fetch_slots(
            args.date.isoformat(),
            settings.practice.appointment_type_code(args.appointment_type),
            settings.practice.provider_code(args.provider),
        )
    finally:
        fetcher.close()
    print(json.dumps({"source": listing.source, **asdict(listing)}, indent=2))
    return 0


def _handle_format_phone(args: argparse.Namespace) -> int:
    print(json.dumps({"formatted": format_phone(args.phone), "normalized": normalize_phone(args.phone)}))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    return args.handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
