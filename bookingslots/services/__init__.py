"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_request import BookingRequest, ClientDetails, build_booking_request
from .booking_service import BookingClientProtocol, BookingConfirmation, BookingService

__all__ = [
    "BookingClientProtocol",
    "BookingConfirmation",
    "BookingRequest",
    "BookingService",
    "ClientDetails",
    "build_booking_request",
]
