"""
Conflict detection over an institution snapshot.

Hard conflicts: a teacher placed at the same (day, period) in another class's
timetable, draft or published. Soft warnings: a teacher given more periods on
one day of the inspected timetable than their max_periods_per_day.
Nothing else is computed here (no rooms, no subject weekly targets).
"""

from collections import Counter
from typing import List, Mapping, Optional, Set, Tuple
from uuid import UUID

from timegrid.core.config import settings

from .schemas import ConflictReport, TeacherDoubleBooking, TeacherMaxPeriods
from .snapshot import TeacherInfo, TimetableSnapshot, TimetableView

SlotKey = Tuple[str, int, UUID]


def _slot_keys(view: TimetableView) -> Set[SlotKey]:
    return {(a.day, a.period, a.teacher_id) for a in view.assignments}


def _teacher_label(teachers: Mapping[UUID, TeacherInfo], teacher_id: UUID) -> str:
    info = teachers.get(teacher_id)
    return info.name if info and info.name else "Teacher"


def max_periods_for(
    teachers: Mapping[UUID, TeacherInfo], teacher_id: UUID, default: Optional[int] = None
) -> int:
    if default is None:
        default = settings.default_max_periods_per_day
    info = teachers.get(teacher_id)
    return (info.max_periods_per_day if info else None) or default


def find_double_bookings(
    inspected: TimetableView,
    snapshot: TimetableSnapshot,
    teachers: Mapping[UUID, TeacherInfo],
) -> List[TeacherDoubleBooking]:
    """One record per (assignment, other timetable) clash; A vs B and A vs C give two records."""
    others = [(view, _slot_keys(view)) for view in snapshot.others(inspected.class_id)]
    conflicts: List[TeacherDoubleBooking] = []
    for a in inspected.assignments:
        key = (a.day, a.period, a.teacher_id)
        for view, keys in others:
            if key not in keys:
                continue
            conflicts.append(
                TeacherDoubleBooking(
                    day=a.day,
                    period=a.period,
                    teacher_id=a.teacher_id,
                    conflicting_class_id=view.class_id,
                    conflicting_class_name=view.class_name,
                    message=(
                        f"{_teacher_label(teachers, a.teacher_id)} is already assigned to "
                        f"{view.class_name} at {a.day} Period {a.period}"
                    ),
                )
            )
    return conflicts


def find_daily_overloads(
    inspected: TimetableView,
    teachers: Mapping[UUID, TeacherInfo],
    default_max: Optional[int] = None,
) -> List[TeacherMaxPeriods]:
    counts: Counter = Counter((a.day, a.teacher_id) for a in inspected.assignments)
    warnings: List[TeacherMaxPeriods] = []
    # Iterate in timetable order so output is stable across runs
    seen: Set[Tuple[str, UUID]] = set()
    for a in inspected.assignments:
        pair = (a.day, a.teacher_id)
        if pair in seen:
            continue
        seen.add(pair)
        count = counts[pair]
        limit = max_periods_for(teachers, a.teacher_id, default_max)
        if count > limit:
            warnings.append(
                TeacherMaxPeriods(
                    day=a.day,
                    teacher_id=a.teacher_id,
                    periods=count,
                    max=limit,
                    message=(
                        f"{_teacher_label(teachers, a.teacher_id)} exceeds maximum periods per day "
                        f"on {a.day} ({count}/{limit})"
                    ),
                )
            )
    return warnings


def detect_conflicts(
    inspected: TimetableView,
    snapshot: TimetableSnapshot,
    teachers: Optional[Mapping[UUID, TeacherInfo]] = None,
    default_max: Optional[int] = None,
) -> ConflictReport:
    """Pure and total over well-formed input. Conflicts are returned, never raised.

    `inspected` is usually the class draft as stored in `snapshot`, but may be a
    candidate built with TimetableView.with_placement; every timetable of the
    same class is left out of the comparison.
    """
    teachers = teachers or {}
    return ConflictReport(
        conflicts=find_double_bookings(inspected, snapshot, teachers),
        warnings=find_daily_overloads(inspected, teachers, default_max),
    )
