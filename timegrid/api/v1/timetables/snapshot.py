"""
Immutable, in-memory view of every live timetable (drafts and published) of one
institution for one academic year. Built once from the store and handed to the
conflict detector and the availability oracle; never patched in place.
"""

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, Optional, Tuple, Union
from uuid import UUID

from timegrid.core.enums import DAY_ORDER, DayOfWeek


def day_key(day: Union[str, DayOfWeek]) -> str:
    """Canonical full day name. DayOfWeek members hash differently from their values."""
    return day.value if isinstance(day, DayOfWeek) else day


@dataclass(frozen=True)
class PeriodAssignment:
    day: str
    period: int
    teacher_id: UUID
    subject_id: UUID

    @property
    def slot(self) -> Tuple[str, int]:
        return (self.day, self.period)

    def sort_key(self) -> Tuple[int, int]:
        return (DAY_ORDER.get(self.day, len(DAY_ORDER)), self.period)


@dataclass(frozen=True)
class TeacherInfo:
    id: UUID
    name: str
    max_periods_per_day: Optional[int] = None


@dataclass(frozen=True)
class TimetableView:
    class_id: UUID
    class_name: str
    is_published: bool
    assignments: Tuple[PeriodAssignment, ...] = ()
    timetable_id: Optional[UUID] = None

    @classmethod
    def from_model(cls, timetable, class_name: str) -> "TimetableView":
        rows = tuple(
            sorted(
                (
                    PeriodAssignment(
                        day=p.day, period=p.period, teacher_id=p.teacher_id, subject_id=p.subject_id
                    )
                    for p in timetable.periods
                ),
                key=PeriodAssignment.sort_key,
            )
        )
        return cls(
            class_id=timetable.class_id,
            class_name=class_name,
            is_published=timetable.is_published,
            assignments=rows,
            timetable_id=timetable.id,
        )

    def with_assignments(self, assignments: Iterable[PeriodAssignment]) -> "TimetableView":
        """Candidate copy of this timetable, e.g. the draft as it would look after a placement."""
        return replace(self, assignments=tuple(sorted(assignments, key=PeriodAssignment.sort_key)))

    def with_placement(self, assignment: PeriodAssignment) -> "TimetableView":
        """Copy with the slot of `assignment` overwritten (a slot holds at most one assignment)."""
        kept = [a for a in self.assignments if a.slot != assignment.slot]
        return self.with_assignments(kept + [assignment])


@dataclass(frozen=True)
class TimetableSnapshot:
    tenant_id: UUID
    academic_year: str
    timetables: Tuple[TimetableView, ...] = field(default_factory=tuple)

    def draft_for(self, class_id: UUID) -> Optional[TimetableView]:
        for view in self.timetables:
            if view.class_id == class_id and not view.is_published:
                return view
        return None

    def others(self, excluding_class_id: Optional[UUID]) -> Iterator[TimetableView]:
        """Every timetable (draft and published) that belongs to a different class."""
        for view in self.timetables:
            if excluding_class_id is not None and view.class_id == excluding_class_id:
                continue
            yield view
