"""SMS hand-off: text the patient a link so they finish booking themselves."""

from __future__ import annotations

import logging

import httpx

from booking_bridge.config import Settings
from booking_bridge.domain.models import BookingOutcome, BookingRequest, OutcomeStatus
from booking_bridge.utils.logging import get_structured_logger, log_booking_event
from booking_bridge.utils.phone import to_e164

logger = logging.getLogger(__name__)

TWILIO_BASE_URL = "https://api.twilio.com"
REQUEST_TIMEOUT_SECONDS = 15.0
WORKFLOW_STEP = "sms_handoff"

MESSAGE_TEMPLATE = (
    "Hi {patient_name}! Thanks for calling {practice_name}. "
    "Book your {appointment_type} here: {booking_link} "
    "- or call us back at {callback_phone}. See you soon!"
)


class SmsDeliveryError(Exception):
    """Raised when Twilio rejects a message or is not configured."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class TwilioSmsClient:
    """Minimal Twilio Messages API client."""

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str,
        *,
        base_url: str = TWILIO_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.from_number = from_number
        self._configured = bool(account_sid and auth_token)
        self._client = httpx.Client(
            base_url=base_url,
            auth=(account_sid or "", auth_token or ""),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def send(self, to: str, body: str) -> str:
        """Send ``body`` to ``to`` and return the Twilio message SID."""
        if not self._configured:
            raise SmsDeliveryError("Twilio credentials are not configured")

        response = self._client.post(
            f"/2010-04-01/Accounts/{self.account_sid}/Messages.json",
            data={"To": to, "From": self.from_number, "Body": body},
        )
        if response.status_code >= 400:
            try:
                error_payload = response.json()
            except ValueError:
                error_payload = None
            detail = (error_payload.get("message") if isinstance(error_payload, dict) else None) or response.text
            raise SmsDeliveryError(f"Twilio error {response.status_code}: {detail}", status_code=response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise SmsDeliveryError(
                f"Twilio returned an unreadable response ({response.status_code})", status_code=response.status_code
            ) from exc
        if not isinstance(payload, dict):
            raise SmsDeliveryError("Twilio returned an unexpected response shape", status_code=response.status_code)
        return str(payload.get("sid", ""))


class SmsLinkStrategy:
    """Booking strategy that sends the practice's booking link instead of booking."""

    name = "sms"

    def __init__(
        self,
        client: TwilioSmsClient,
        *,
        booking_link: str,
        practice_name: str,
        callback_phone: str,
    ) -> None:
        self.client = client
        self.booking_link = booking_link
        self.practice_name = practice_name
        self.callback_phone = callback_phone
        self.events = get_structured_logger()

    def render_message(self, patient_name: str, appointment_type: str | None) -> str:
        return MESSAGE_TEMPLATE.format(
            patient_name=patient_name,
            practice_name=self.practice_name,
            appointment_type=appointment_type or "appointment",
            booking_link=self.booking_link,
            callback_phone=self.callback_phone,
        )

    def send_link(
        self,
        patient_name: str,
        phone: str,
        appointment_type: str | None = None,
        *,
        request_id: str = "",
    ) -> BookingOutcome:
        destination = to_e164(phone)
        if destination is None:
            return BookingOutcome.failure(f"Failed to send SMS: invalid phone number {phone!r}")

        try:
            sid = self.client.send(destination, self.render_message(patient_name, appointment_type))
        except (SmsDeliveryError, httpx.HTTPError) as exc:
            log_booking_event(
                self.events,
                workflow_step=WORKFLOW_STEP,
                patient_name=patient_name,
                request_id=request_id,
                status="failed",
                message="Booking link SMS failed",
                error_code=type(exc).__name__.upper(),
                error_message=str(exc),
            )
            return BookingOutcome.failure(f"Failed to send SMS: {exc}")

        log_booking_event(
            self.events,
            workflow_step=WORKFLOW_STEP,
            patient_name=patient_name,
            request_id=request_id,
            status="sent",
            message="Booking link SMS sent",
        )
        return BookingOutcome(
            status=OutcomeStatus.SUCCESS,
            message=f"Booking link sent to {destination}",
            raw_diagnostic=f"sid={sid}",
        )

    def book(self, request: BookingRequest, *, request_id: str = "") -> BookingOutcome:
        return self.send_link(
            request.first_name or request.full_name or "Patient",
            request.phone,
            request.appointment_type,
            request_id=request_id,
        )


def build_sms_strategy(settings: Settings) -> SmsLinkStrategy:
    client = TwilioSmsClient(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_phone_number,
    )
    return SmsLinkStrategy(
        client,
        booking_link=settings.booking_link,
        practice_name=settings.practice_name,
        callback_phone=settings.practice_callback_phone,
    )
