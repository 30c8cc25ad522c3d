"""
Mechanic Availability Module (``workshop_modules.availability``).

Mechanics request working intervals; admins approve or reject them; the
approved ones yield monthly hours per mechanic.
"""

from workshop_modules.availability.models import (
    Availability,
    AvailabilityStatus,
    DayHours,
    MechanicHours,
    net_minutes,
)

__all__ = ["Availability", "AvailabilityStatus", "DayHours", "MechanicHours", "net_minutes"]
