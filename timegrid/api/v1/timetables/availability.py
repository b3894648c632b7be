"""
Availability oracle: single-slot "is this teacher free?" point queries used while
a scheduler drags an assignment, before anything is written.

The oracle indexes one TimetableSnapshot by (teacher, day, period) so a query
does not rescan every class. It agrees with conflicts.detect_conflicts: a slot
reported unavailable is exactly a slot that would produce a
teacher_double_booking in the excluded class's draft.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional, Tuple, Union
from uuid import UUID

from timegrid.core.config import settings
from timegrid.core.enums import DayOfWeek

from .schemas import ConflictDetail, TeacherPlacement
from .snapshot import PeriodAssignment, TimetableSnapshot, TimetableView, day_key

logger = logging.getLogger(__name__)

SlotIndex = Dict[Tuple[UUID, str, int], List[Tuple[TimetableView, PeriodAssignment]]]


class AvailabilityOracle:
    """Read-only, side-effect-free queries over one snapshot."""

    def __init__(self, snapshot: TimetableSnapshot) -> None:
        self.snapshot = snapshot
        self._slots: SlotIndex = defaultdict(list)
        self._by_teacher: Dict[UUID, List[Tuple[TimetableView, PeriodAssignment]]] = defaultdict(list)
        for view in snapshot.timetables:
            for a in view.assignments:
                self._slots[(a.teacher_id, a.day, a.period)].append((view, a))
                self._by_teacher[a.teacher_id].append((view, a))

    def explain_conflict(
        self,
        teacher_id: UUID,
        day: Union[str, DayOfWeek],
        period: int,
        excluding_class_id: Optional[UUID] = None,
    ) -> Optional[ConflictDetail]:
        """First placement of the teacher at (day, period) in another class, or None."""
        for view, a in self._slots.get((teacher_id, day_key(day), period), ()):
            if excluding_class_id is not None and view.class_id == excluding_class_id:
                continue
            return ConflictDetail(
                class_id=view.class_id,
                class_name=view.class_name,
                day=a.day,
                period=a.period,
                teacher_id=a.teacher_id,
                subject_id=a.subject_id,
                is_published=view.is_published,
            )
        return None

    def is_available(
        self,
        teacher_id: UUID,
        day: Union[str, DayOfWeek],
        period: int,
        excluding_class_id: Optional[UUID] = None,
    ) -> bool:
        return self.explain_conflict(teacher_id, day, period, excluding_class_id) is None

    def teacher_assignments(self, teacher_id: UUID) -> List[TeacherPlacement]:
        """Every placement of the teacher across all classes, in week order."""
        rows = sorted(self._by_teacher.get(teacher_id, ()), key=lambda va: (va[1].sort_key(), va[0].class_name))
        return [
            TeacherPlacement(
                class_id=view.class_id,
                class_name=view.class_name,
                is_published=view.is_published,
                day=a.day,
                period=a.period,
                subject_id=a.subject_id,
            )
            for view, a in rows
        ]


class SnapshotCache:
    """
    Oracles keyed by (tenant_id, academic_year). Entries are replaced wholesale:
    every save/publish calls invalidate() and the next reader rebuilds from the store.

    Readers take generation() before reading the store and hand it back to put().
    An invalidation in between bumps the tenant generation, so the snapshot read
    before the write is returned to that reader but never cached.
    """

    def __init__(self, ttl_seconds: Optional[float] = None) -> None:
        self._ttl = ttl_seconds
        self._entries: Dict[Tuple[UUID, str], Tuple[float, AvailabilityOracle]] = {}
        self._generations: Dict[UUID, int] = defaultdict(int)

    @property
    def ttl(self) -> float:
        return self._ttl if self._ttl is not None else settings.snapshot_ttl_seconds

    def generation(self, tenant_id: UUID) -> int:
        return self._generations[tenant_id]

    def get(self, tenant_id: UUID, academic_year: str) -> Optional[AvailabilityOracle]:
        entry = self._entries.get((tenant_id, academic_year))
        if entry is None:
            return None
        built_at, oracle = entry
        if self.ttl > 0 and time.monotonic() - built_at > self.ttl:
            self._entries.pop((tenant_id, academic_year), None)
            return None
        return oracle

    def put(self, snapshot: TimetableSnapshot, generation: Optional[int] = None) -> AvailabilityOracle:
        oracle = AvailabilityOracle(snapshot)
        if generation is not None and generation != self._generations[snapshot.tenant_id]:
            logger.debug(
                "Discarded timetable snapshot for tenant %s (%s): invalidated while reading",
                snapshot.tenant_id,
                snapshot.academic_year,
            )
            return oracle
        self._entries[(snapshot.tenant_id, snapshot.academic_year)] = (time.monotonic(), oracle)
        return oracle

    def invalidate(self, tenant_id: UUID, academic_year: str) -> None:
        self._generations[tenant_id] += 1
        if self._entries.pop((tenant_id, academic_year), None) is not None:
            logger.debug("Invalidated timetable snapshot for tenant %s (%s)", tenant_id, academic_year)

    def invalidate_tenant(self, tenant_id: UUID) -> None:
        """Drop every academic year of the tenant, e.g. after a teacher is removed everywhere."""
        self._generations[tenant_id] += 1
        for key in [k for k in self._entries if k[0] == tenant_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()


snapshot_cache = SnapshotCache()
