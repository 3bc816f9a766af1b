"""HTTP endpoints called by the voice agent."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from booking_bridge.api.deps import BridgeServices, get_services
from booking_bridge.api.schemas import (
    AppointmentSummary,
    AvailabilityRequest,
    AvailabilityResponse,
    BookAppointmentRequest,
    BookAppointmentResponse,
    CollectedPatient,
    FormatPhoneRequest,
    FormatPhoneResponse,
    HealthResponse,
    InsuranceInfo,
    LinkPatient,
    MissingFieldsResponse,
    PatientSummary,
    RetellWebhookRequest,
    RetellWebhookResponse,
    SendBookingLinkRequest,
    SendBookingLinkResponse,
)
from booking_bridge.domain.models import DEFAULT_APPOINTMENT_TYPE, BookingRequest
from booking_bridge.services.booking import BookingCapacityError
from booking_bridge.utils.phone import format_phone, normalize_phone, to_e164

logger = logging.getLogger(__name__)

router = APIRouter()


def _request_id(http_request: Request) -> str:
    return getattr(http_request.state, "request_id", "")


def _missing_fields(required: list[str], missing: list[str]) -> JSONResponse:
    payload = MissingFieldsResponse(required=required, missing=missing)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload.model_dump())


@router.get("/health", response_model=HealthResponse)
async def health_check(http_request: Request):
    services = getattr(http_request.app.state, "services", None)
    return HealthResponse(
        mode=services.booking.name if services is not None else "starting",
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.post("/check-availability", response_model=AvailabilityResponse)
async def check_availability(body: AvailabilityRequest, services: BridgeServices = Depends(get_services)):
    """List available times for a date; falls back to generated slots when the platform is unreachable."""
    practice = services.settings.practice
    date = body.date or datetime.now(timezone.utc).date().isoformat()
    appointment_type = body.appointment_type or DEFAULT_APPOINTMENT_TYPE

    listing = await asyncio.to_thread(
        services.slots.fetch_slots,
        date,
        practice.appointment_type_code(appointment_type),
        practice.provider_code(body.provider),
    )
    times = listing.available_times()
    return AvailabilityResponse(
        date=date,
        appointment_type=appointment_type,
        slots=times,
        count=len(times),
        source=listing.source,
    )


@router.post("/book-appointment", response_model=BookAppointmentResponse, response_model_exclude_none=True)
async def book_appointment(
    body: BookAppointmentRequest,
    http_request: Request,
    services: BridgeServices = Depends(get_services),
):
    """Book through the configured strategy.

    Every attempt that reaches the strategy answers 200 with a structured
    outcome; only missing input (400), exhausted browser capacity (503) and
    unexpected faults (500) answer otherwise.
    """
    request_id = _request_id(http_request)
    booking_request = BookingRequest(
        first_name=body.first_name.strip(),
        last_name=body.last_name.strip(),
        phone=body.phone.strip(),
        date=body.date.strip(),
        time=body.time.strip(),
        appointment_type=body.appointment_type or DEFAULT_APPOINTMENT_TYPE,
        email=(body.email or "").strip() or None,
        provider=body.provider,
    )
    missing = booking_request.missing_fields()
    if missing:
        return _missing_fields(
            [to_camel(name) for name in BookingRequest.REQUIRED_FIELDS],
            [to_camel(name) for name in missing],
        )

    try:
        outcome = await asyncio.to_thread(services.booking.book, booking_request, request_id=request_id)
    except BookingCapacityError as exc:
        logger.warning("[%s] Booking rejected: %s", request_id, exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("[%s] Booking request failed", request_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return BookAppointmentResponse(
        success=outcome.is_success(allow_unverified=not services.settings.strict_verification),
        status=outcome.status.value,
        confirmation_number=outcome.confirmation_token,
        message=outcome.message,
        patient=PatientSummary(
            name=booking_request.full_name,
            phone=format_phone(booking_request.phone),
            appointment=AppointmentSummary(
                date=booking_request.date,
                time=booking_request.time,
                type=booking_request.appointment_type,
            ),
        ),
    )


@router.post("/format-phone", response_model=FormatPhoneResponse)
async def format_phone_number(body: FormatPhoneRequest):
    return FormatPhoneResponse(formatted=format_phone(body.phone), normalized=normalize_phone(body.phone))


@router.post("/send-booking-link", response_model=SendBookingLinkResponse)
async def send_booking_link(
    body: SendBookingLinkRequest,
    http_request: Request,
    services: BridgeServices = Depends(get_services),
):
    """Text the patient the practice booking link."""
    patient_name = body.patient_name.strip()
    phone = body.phone.strip()
    if not patient_name or not phone:
        missing = [name for name, value in (("patientName", patient_name), ("phone", phone)) if not value]
        return _missing_fields(["patientName", "phone"], missing)

    appointment_type = body.appointment_type or "dental appointment"
    try:
        outcome = await asyncio.to_thread(
            services.sms.send_link,
            patient_name,
            phone,
            appointment_type,
            request_id=_request_id(http_request),
        )
    except Exception as exc:
        logger.exception("Booking link request failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return SendBookingLinkResponse(
        success=outcome.success,
        message=outcome.message,
        patient=LinkPatient(name=patient_name, phone=to_e164(phone) or phone, appointment_type=appointment_type),
    )


@router.post("/retell-webhook", response_model=RetellWebhookResponse)
async def retell_webhook(
    body: RetellWebhookRequest,
    http_request: Request,
    services: BridgeServices = Depends(get_services),
):
    """Accept the voice agent's collected patient fields and text them the booking link."""
    phone = (body.phone or "").strip()
    if not phone:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Phone number required"})

    name = body.patient_name or f"{body.first_name or ''} {body.last_name or ''}".strip() or "Patient"
    appointment_type = body.appointment_type or "dental appointment"
    patient = CollectedPatient(
        name=name,
        phone=to_e164(phone) or phone,
        email=body.email,
        date_of_birth=body.date_of_birth,
        appointment_type=appointment_type,
        insurance=InsuranceInfo(
            name=body.insurance_name,
            subscriber_name=body.insurance_subscriber_name,
            subscriber_id=body.insurance_subscriber_id,
            group_number=body.insurance_group_number,
        )
        if body.insurance_name
        else None,
        preferred_date=body.preferred_date,
        preferred_time=body.preferred_time,
        provider_preference=body.provider_preference,
    )

    try:
        outcome = await asyncio.to_thread(
            services.sms.send_link,
            name,
            phone,
            appointment_type,
            request_id=_request_id(http_request),
        )
    except Exception as exc:
        logger.exception("Retell webhook failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    return RetellWebhookResponse(success=outcome.success, message=outcome.message, patient=patient)
