"""Time-of-day buckets for emotional time patterns."""

from datetime import datetime
from enum import StrEnum


class TimeOfDay(StrEnum):
    """Circadian bucket of an experience."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_datetime(cls, moment: datetime) -> "TimeOfDay":
        """
        Bucket a moment by its hour.

        morning [05, 12), afternoon [12, 17), evening [17, 21), night otherwise.
        """
        hour = moment.hour
        if 5 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 17:
            return cls.AFTERNOON
        if 17 <= hour < 21:
            return cls.EVENING
        return cls.NIGHT
