from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from timegrid.core.enums import WeekStructure


# ----- Period assignments -----
class PeriodAssignmentOut(BaseModel):
    period: int
    subject_id: UUID
    teacher_id: UUID

    class Config:
        from_attributes = True


# ----- Timetable -----
class TimetableSave(BaseModel):
    """Complete desired state of the class draft. The whole periods map is replaced; no partial merge."""

    # Shape and ranges are checked by the service so every payload error is a 400
    periods: Dict[str, Any] = Field(
        default_factory=dict,
        description='Day name -> [{"period", "subject_id", "teacher_id"}, ...], e.g. {"Monday": [...]}',
    )
    week_structure: Optional[WeekStructure] = None
    academic_year: Optional[str] = Field(None, description="e.g. 2025-2026; defaults to the current year")
    version: Optional[int] = Field(
        None, ge=1, description="Draft version last read; a stale value is rejected with 409"
    )


class TimetableResponse(BaseModel):
    id: Optional[UUID] = None
    class_id: UUID
    academic_year: str
    week_structure: str
    periods: Dict[str, List[PeriodAssignmentOut]] = Field(default_factory=dict)
    is_published: bool = False
    # True only for the synthesized timetable of a class that has never been saved
    is_empty: bool = False
    version: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None


class TimetableSummary(BaseModel):
    """Row of the institution-wide listing used for conflict/availability precomputation."""

    id: UUID
    class_id: UUID
    class_name: str
    academic_year: str
    is_published: bool
    periods: Dict[str, List[PeriodAssignmentOut]] = Field(default_factory=dict)


class PublishResponse(BaseModel):
    message: str
    timetable: TimetableResponse


# ----- Conflicts -----
class TeacherDoubleBooking(BaseModel):
    type: Literal["teacher_double_booking"] = "teacher_double_booking"
    day: str
    period: int
    teacher_id: UUID
    conflicting_class_id: UUID
    conflicting_class_name: str
    message: str


class TeacherMaxPeriods(BaseModel):
    type: Literal["teacher_max_periods"] = "teacher_max_periods"
    day: str
    teacher_id: UUID
    periods: int
    max: int
    message: str


class ConflictReport(BaseModel):
    conflicts: List[TeacherDoubleBooking] = Field(default_factory=list)
    warnings: List[TeacherMaxPeriods] = Field(default_factory=list)


# ----- Availability -----
class ConflictDetail(BaseModel):
    """The placement that makes a teacher unavailable, for user-facing rejection messages."""

    class_id: UUID
    class_name: str
    day: str
    period: int
    teacher_id: UUID
    subject_id: UUID
    is_published: bool


class AvailabilityResponse(BaseModel):
    available: bool
    conflict: Optional[ConflictDetail] = None


class TeacherPlacement(BaseModel):
    class_id: UUID
    class_name: str
    is_published: bool
    day: str
    period: int
    subject_id: UUID


class TeacherScheduleResponse(BaseModel):
    teacher_id: UUID
    academic_year: str
    placements: List[TeacherPlacement] = Field(default_factory=list)
