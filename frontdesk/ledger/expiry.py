"""
Stay-Expiry Calculator

A room stay is paid in rolling 24 hour windows. The window restarts from the
latest chargeable event (check-in, or the instant the last extension was
booked for), so missed checks never compound into extra validity.
"""
from datetime import datetime, timedelta
from enum import Enum
from typing import Mapping, Optional

from frontdesk.config.settings import settings
from frontdesk.utils.helpers import as_utc


class Urgency(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    OVERDUE = "overdue"


def reference_instant(booking: Mapping) -> datetime:
    last_extension = booking.get("last_extension_at")
    if last_extension is not None:
        return as_utc(last_extension)
    return as_utc(booking["checked_in_at"])


def valid_until(booking: Mapping, window_hours: Optional[int] = None) -> datetime:
    # House stays are booked for a number of days up front
    if booking.get("kind") == "house" and booking.get("check_out_date") is not None:
        return as_utc(booking["check_out_date"])
    hours = settings.STAY_WINDOW_HOURS if window_hours is None else window_hours
    return reference_instant(booking) + timedelta(hours=hours)


def next_extension_instant(booking: Mapping, days: int = 1) -> datetime:
    """Extensions are stamped one calendar day after the current reference, not at 'now'"""
    return reference_instant(booking) + timedelta(days=days)


def urgency(until: datetime, now: datetime, warning_hours: Optional[int] = None) -> Urgency:
    hours = settings.EXPIRY_WARNING_HOURS if warning_hours is None else warning_hours
    remaining = as_utc(until) - as_utc(now)
    if remaining < timedelta(0):
        return Urgency.OVERDUE
    if remaining < timedelta(hours=hours):
        return Urgency.WARNING
    return Urgency.NORMAL


def is_expired(booking: Mapping, now: datetime) -> bool:
    return as_utc(now) >= valid_until(booking)


def stay_status(booking: Mapping, now: datetime) -> dict:
    until = valid_until(booking)
    remaining = until - as_utc(now)
    return {
        "valid_until": until,
        "urgency": urgency(until, now).value,
        "hours_remaining": round(remaining.total_seconds() / 3600, 2),
    }
