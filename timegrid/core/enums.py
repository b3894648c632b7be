from enum import Enum
from typing import List


class InstitutionType(str, Enum):
    SCHOOL = "school"
    COLLEGE = "college"


class DayOfWeek(str, Enum):
    """Canonical day names. Short forms (Mon, Tue) belong to the presentation layer."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class WeekStructure(str, Enum):
    MON_FRI = "Mon-Fri"
    MON_SAT = "Mon-Sat"

    def days(self) -> List[str]:
        ordered = [d.value for d in DayOfWeek]
        return ordered[:5] if self is WeekStructure.MON_FRI else ordered[:6]


class TimetableStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    # Prior published version replaced by a newer publish; kept for history only
    SUPERSEDED = "SUPERSEDED"


DAY_ORDER = {d.value: i for i, d in enumerate(DayOfWeek)}
