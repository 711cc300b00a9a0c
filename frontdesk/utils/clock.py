"""
Clock abstraction so expiry checks and timestamps can be driven by tests
"""
from datetime import datetime, timezone


class Clock:
    """Source of the current instant. Always returns timezone-aware UTC."""

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency, overridden in tests with a manual clock"""
    return system_clock
