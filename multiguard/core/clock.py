"""
Clock capability.

Lockout expiry, TOTP verification and the working-hours rule all read
"now" through a Clock so tests can pin time.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Current time as a timezone-aware UTC datetime."""
        ...

    def local_hour(self) -> int:
        """Current hour (0-23) in the server's local time zone."""
        ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def local_hour(self) -> int:
        return datetime.now().astimezone().hour


class FixedClock:
    """
    Virtual clock pinned to a given instant.

    The instant is interpreted as the server's local time for
    local_hour(), so FixedClock(datetime(2024, 1, 1, 9, tzinfo=...))
    reports hour 9 regardless of the host time zone.
    """

    def __init__(self, instant: Optional[datetime] = None):
        instant = instant or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def local_hour(self) -> int:
        return self._instant.hour

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a timedelta expressed as kwargs."""
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant


_system_clock = SystemClock()


def get_clock() -> Clock:
    """Get the process clock."""
    return _system_clock
