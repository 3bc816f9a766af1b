from __future__ import annotations

import json

import pytest

from booking_bridge import cli
from booking_bridge.domain.models import BookingOutcome, OutcomeStatus, SlotListing, TimeSlot


class FakeStrategy:
    name = "form"

    def __init__(self, outcome: BookingOutcome) -> None:
        self.outcome = outcome
        self.requests = []

    def book(self, request, *, request_id: str = "") -> BookingOutcome:
        self.requests.append(request)
        return self.outcome


@pytest.fixture(autouse=True)
def fixed_settings(monkeypatch: pytest.MonkeyPatch, settings) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: settings)


def test_book_prints_outcome_and_exits_zero(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    strategy = FakeStrategy(BookingOutcome(OutcomeStatus.SUCCESS, "Appointment booked successfully", "ABC-123"))
    monkeypatch.setattr(cli, "build_booking_strategy", lambda _settings: strategy)

    code = cli.main(
        [
            "book",
            "--first-name",
            "Test",
            "--last-name",
            "Patient",
            "--phone",
            "4805551234",
            "--date",
            "2026-02-24",
            "--time",
            "10:00",
        ]
    )

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["confirmationNumber"] == "ABC-123"
    assert payload["status"] == "success"
    assert strategy.requests[0].appointment_type == "emergency-exam"
    assert strategy.requests[0].date == "2026-02-24"


def test_book_failure_exits_one(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    strategy = FakeStrategy(BookingOutcome.failure("Could not load booking form: timeout"))
    monkeypatch.setattr(cli, "build_booking_strategy", lambda _settings: strategy)

    code = cli.main(
        ["book", "--first-name", "A", "--last-name", "B", "--phone", "4805551234", "--date", "2026-02-24", "--time", "10:00"]
    )

    assert code == 1
    assert json.loads(capsys.readouterr().out)["success"] is False


def test_book_reports_blank_required_fields(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    strategy = FakeStrategy(BookingOutcome(OutcomeStatus.SUCCESS, "Appointment booked successfully"))
    monkeypatch.setattr(cli, "build_booking_strategy", lambda _settings: strategy)

    code = cli.main(
        ["book", "--first-name", "", "--last-name", "B", "--phone", "4805551234", "--date", "2026-02-24", "--time", "10:00"]
    )

    assert code == 2
    assert json.loads(capsys.readouterr().out) == {"error": "Missing required fields", "missing": ["--first-name"]}
    assert strategy.requests == []


def test_book_rejects_malformed_date() -> None:
    with pytest.raises(SystemExit):
        cli.main(["book", "--first-name", "A", "--last-name", "B", "--phone", "1", "--date", "24/02/2026", "--time", "10:00"])


def test_slots_prints_listing(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    calls = {}

    class FakeFetcher:
        def __init__(self, practice, endpoint_url) -> None:
            calls["endpoint"] = endpoint_url

        def fetch_slots(self, date, appointment_type_code, provider_code=""):
            calls["args"] = (date, appointment_type_code, provider_code)
            return SlotListing(date=date, slots=[TimeSlot("x", "09:00")], is_fallback=True)

        def close(self) -> None:
            calls["closed"] = True

    monkeypatch.setattr(cli, "SlotFetcher", FakeFetcher)

    code = cli.main(["slots", "--date", "2026-02-23", "--provider", "dr-lee"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["source"] == "fallback"
    assert payload["slots"] == [{"slot_id": "x", "time": "09:00", "available": True}]
    assert calls["args"] == ("2026-02-23", "2", "17")
    assert calls["closed"] is True


def test_format_phone_command(capsys) -> None:
    assert cli.main(["format-phone", "1-480-555-1234"]) == 0
    assert json.loads(capsys.readouterr().out) == {"formatted": "(480) 555-1234", "normalized": "4805551234"}


def test_serve_runs_uvicorn(monkeypatch: pytest.MonkeyPatch) -> None:
    import uvicorn

    called = {}
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: called.update(app=app, **kwargs))

    assert cli.main(["serve", "--port", "8080"]) == 0
    assert called == {"app": "booking_bridge.server:app", "host": "127.0.0.1", "port": 8080, "reload": False}
