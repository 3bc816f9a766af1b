from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from booking_bridge.config import Settings
from booking_bridge.services.availability import SlotFetcher
from booking_bridge.services.booking import BookingStrategy, build_booking_strategy
from booking_bridge.services.sms import SmsLinkStrategy, build_sms_strategy


@dataclass(slots=True)
class BridgeServices:
    settings: Settings
    booking: BookingStrategy
    slots: SlotFetcher
    sms: SmsLinkStrategy


def build_services(settings: Settings) -> BridgeServices:
    return BridgeServices(
        settings=settings,
        booking=build_booking_strategy(settings),
        slots=SlotFetcher(settings.practice, settings.availability_url),
        sms=build_sms_strategy(settings),
    )


def get_services(request: Request) -> BridgeServices:
    """Return the services attached to app state during lifespan start-up."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The booking service is still starting up. Please try again in a moment.",
        )
    return services
