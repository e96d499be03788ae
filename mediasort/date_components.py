"""
Calendar date components used for folder paths, file names and filename checks.
"""

import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Optional


# YYYY-MM-DD optionally followed by --HH-MM
FILENAME_DATE_PATTERN = re.compile(r"(\d{4})-(\d{2})-(\d{2})(?:--(\d{2})-(\d{2}))?")

DEFAULT_TIME_COMPONENT = "00"


@dataclass(frozen=True)
class DateComponents:
    """Zero-padded year/month/day/hour/minute strings."""
    year: str
    month: str
    day: str
    hour: str = DEFAULT_TIME_COMPONENT
    minute: str = DEFAULT_TIME_COMPONENT

    def __str__(self) -> str:
        return f"{self.year}-{self.month}-{self.day} {self.hour}:{self.minute}"


class DateComponentsBuilder:
    """Builds DateComponents from instants or file names and compares them.

    The timezone is the calendar used to split aware instants into
    components. ``None`` means the system local timezone.
    """

    def __init__(self, timezone: Optional[tzinfo] = None):
        self.timezone = timezone

    def from_instant(self, instant: datetime) -> DateComponents:
        """Split an instant into fully populated components."""
        if instant.tzinfo is not None:
            # astimezone(None) converts to the system local timezone
            instant = instant.astimezone(self.timezone)

        return DateComponents(
            year=str(instant.year),
            month=f"{instant.month:02d}",
            day=f"{instant.day:02d}",
            hour=f"{instant.hour:02d}",
            minute=f"{instant.minute:02d}",
        )

    @staticmethod
    def from_filename(name: str) -> Optional[DateComponents]:
        """Extract components from the leftmost YYYY-MM-DD[--HH-MM] in a name."""
        match = FILENAME_DATE_PATTERN.search(name)
        if not match:
            return None

        year, month, day, hour, minute = match.groups()
        return DateComponents(
            year=year,
            month=month,
            day=day,
            hour=hour or DEFAULT_TIME_COMPONENT,
            minute=minute or DEFAULT_TIME_COMPONENT,
        )

    @staticmethod
    def matches(lhs: DateComponents, rhs: DateComponents, include_time: bool = True) -> bool:
        """Compare two component sets.

        The date must match exactly. Hour and minute are each compared only
        when neither side holds the default "00", which stands for an
        unknown time.
        """
        if (lhs.year, lhs.month, lhs.day) != (rhs.year, rhs.month, rhs.day):
            return False

        if not include_time:
            return True

        if _known(lhs.hour) and _known(rhs.hour) and lhs.hour != rhs.hour:
            return False

        if _known(lhs.minute) and _known(rhs.minute) and lhs.minute != rhs.minute:
            return False

        return True


def _known(component: str) -> bool:
    return component != DEFAULT_TIME_COMPONENT
