"""Pydantic schemas for the voice-agent facing endpoints.

Request and response bodies use camelCase on the wire, except for the
Retell webhook which posts the agent's snake_case collected fields.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AvailabilityRequest(CamelModel):
    date: str | None = None
    appointment_type: str | None = None
    provider: str | None = None


class AvailabilityResponse(CamelModel):
    date: str
    appointment_type: str
    slots: list[str]
    count: int
    source: str = Field(..., description="'remote' for live availability, 'fallback' for generated slots")


class BookAppointmentRequest(CamelModel):
    # Required fields default to "" so the route can answer 400 with the full list.
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    email: str | None = None
    date: str = ""
    time: str = ""
    appointment_type: str | None = None
    provider: str | None = None


class AppointmentSummary(CamelModel):
    date: str
    time: str
    type: str


class PatientSummary(CamelModel):
    name: str
    phone: str
    appointment: AppointmentSummary


class BookAppointmentResponse(CamelModel):
    success: bool
    status: str
    confirmation_number: str | None = None
    message: str
    patient: PatientSummary


class MissingFieldsResponse(BaseModel):
    error: str = "Missing required fields"
    required: list[str]
    missing: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    mode: str
    timestamp: str


class FormatPhoneRequest(BaseModel):
    phone: str = ""


class FormatPhoneResponse(BaseModel):
    formatted: str
    normalized: str


class SendBookingLinkRequest(CamelModel):
    patient_name: str = ""
    phone: str = ""
    appointment_type: str | None = None


class LinkPatient(CamelModel):
    name: str
    phone: str
    appointment_type: str


class SendBookingLinkResponse(CamelModel):
    success: bool
    message: str
    patient: LinkPatient


class RetellWebhookRequest(BaseModel):
    patient_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    email: str | None = None
    date_of_birth: str | None = None
    appointment_type: str | None = None
    insurance_name: str | None = None
    insurance_subscriber_name: str | None = None
    insurance_subscriber_id: str | None = None
    insurance_group_number: str | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None
    provider_preference: str | None = None


class InsuranceInfo(BaseModel):
    name: str
    subscriber_name: str | None = None
    subscriber_id: str | None = None
    group_number: str | None = None


class CollectedPatient(BaseModel):
    name: str
    phone: str
    email: str | None = None
    date_of_birth: str | None = None
    appointment_type: str
    insurance: InsuranceInfo | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None
    provider_preference: str | None = None


class RetellWebhookResponse(BaseModel):
    action: str = "sms_sent"
    success: bool
    message: str
    patient: CollectedPatient
