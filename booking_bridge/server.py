"""FastAPI application for the dental booking bridge.

Run with:
    python -m booking_bridge.cli serve
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from booking_bridge.api.deps import build_services
from booking_bridge.api.routes import router
from booking_bridge.config import load_settings
from booking_bridge.utils.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

settings = load_settings()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Build the booking, availability and SMS services once per process."""
    services = build_services(settings)
    application.state.services = services
    logger.info("Booking bridge ready (strategy=%s)", services.booking.name)
    yield
    services.slots.close()
    services.sms.client.close()


app = FastAPI(
    title="Dental Booking Bridge",
    description="Availability, booking and booking-link endpoints for a dental voice agent.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Tag each request with an ``X-Request-ID`` for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(router)
