"""
Adapters layer - External integrations (public booking REST API).
"""

from .booking_api_client import BookingApiClient
from .mock_booking_client import MockBookingClient

__all__ = ["BookingApiClient", "MockBookingClient"]
