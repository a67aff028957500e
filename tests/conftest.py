"""
Shared fixtures.
"""

import pytest


@pytest.fixture
def availability_payload():
    """Availability payload as returned by the public API."""
    return {
        "_id": "avail-1",
        "userId": "user-1",
        "title": "Consulta inicial",
        "duration": 30,
        "timezone": "Europe/Madrid",
        "bufferBefore": 0,
        "bufferAfter": 0,
        "maxDaysInAdvance": 30,
        "minNoticeHours": 0,
        "maxDailyBookings": None,
        "maxWeeklyBookings": None,
        "isActive": True,
        "requireApproval": False,
        "publicUrl": "consulta-inicial",
        "timeSlots": [
            {"day": 2, "startTime": "09:00", "endTime": "10:00", "isActive": True},
        ],
        "excludedDates": [
            {"date": "2024-01-09T00:00:00.000+01:00", "reason": "Festivo"},
        ],
        "bookings": [
            {"startTime": "2024-01-02T08:00:00.000Z", "endTime": "2024-01-02T08:30:00.000Z", "status": "confirmed"},
        ],
        "requiredFields": {
            "name": True,
            "email": True,
            "phone": True,
            "company": False,
            "address": False,
            "notes": False,
        },
        "customFields": [
            {"name": "Asunto", "required": True, "type": "select", "options": ["Despido", "Otro"]},
            {"name": "Privacidad", "required": True, "type": "checkbox", "options": []},
            {"name": "Referencia", "required": False, "type": "text", "options": []},
        ],
    }
