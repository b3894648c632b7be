"""Timetable store: one draft and at most one published timetable per class per academic year.

Every read is tenant-filtered. Saves replace the whole draft assignment set in a
single transaction; concurrent saves to the same draft are last-write-wins unless
the caller sends the draft version it last read.
"""

import logging
import re
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timegrid.core.enums import DayOfWeek, TimetableStatus, WeekStructure
from timegrid.core.exceptions import (
    AuthorizationGap,
    NotFoundError,
    ServiceError,
    StaleVersionError,
    ValidationError,
)
from timegrid.core.models import (
    InstitutionSettings,
    SchoolClass,
    SchoolSubject,
    Teacher,
    Timetable,
    TimetablePeriod,
)

from . import lifecycle
from .availability import AvailabilityOracle, snapshot_cache
from .conflicts import detect_conflicts
from .lifecycle import LifecycleAction
from .schemas import (
    AvailabilityResponse,
    ConflictReport,
    PeriodAssignmentOut,
    TeacherScheduleResponse,
    TimetableResponse,
    TimetableSave,
    TimetableSummary,
)
from .snapshot import PeriodAssignment, TeacherInfo, TimetableSnapshot, TimetableView

logger = logging.getLogger(__name__)

ACADEMIC_YEAR_RE = re.compile(r"^(\d{4})-(\d{4})$")
LIVE_STATUSES = (TimetableStatus.DRAFT.value, TimetableStatus.PUBLISHED.value)
VALID_DAYS = {d.value for d in DayOfWeek}


# ----- Helpers -----


def current_academic_year(now: Optional[datetime] = None) -> str:
    """Academic year key derived from wall-clock time, e.g. 2025 -> "2025-2026"."""
    year = (now or datetime.now()).year
    return f"{year}-{year + 1}"


def resolve_academic_year(value: Optional[str]) -> str:
    if value is None or not value.strip():
        return current_academic_year()
    m = ACADEMIC_YEAR_RE.match(value.strip())
    if not m or int(m.group(2)) != int(m.group(1)) + 1:
        raise ValidationError("academic_year must look like 2025-2026")
    return value.strip()


def _require_tenant(tenant_id: Optional[UUID]) -> UUID:
    if tenant_id is None:
        raise AuthorizationGap()
    return tenant_id


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _as_uuid(value: Any, label: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}: {value!r}")


def normalize_periods(
    periods: Any,
    working_days: Sequence[str],
    periods_per_day: Optional[int] = None,
) -> List[PeriodAssignment]:
    """Validate a day -> list-of-assignment payload and flatten it.

    Rejects unknown or non-working days, non-positive period numbers, numbers past
    the configured periods_per_day and two assignments in one (day, period) slot.
    """
    if not isinstance(periods, Mapping):
        raise ValidationError("Invalid periods structure: expected an object keyed by day name")
    allowed = set(working_days)
    seen: Set[Tuple[str, int]] = set()
    out: List[PeriodAssignment] = []
    for day, items in periods.items():
        day = getattr(day, "value", day)
        if day not in VALID_DAYS:
            raise ValidationError(f"Invalid day name: {day!r}")
        if day not in allowed:
            raise ValidationError(f"{day} is not a working day for this institution")
        if not isinstance(items, (list, tuple)):
            raise ValidationError(f"Invalid periods structure: {day} must be a list")
        for item in items:
            period = _field(item, "period")
            if not isinstance(period, int) or isinstance(period, bool) or period < 1:
                raise ValidationError(f"Invalid period number {period!r} on {day}: must be a positive integer")
            if periods_per_day is not None and period > periods_per_day:
                raise ValidationError(
                    f"Invalid period number {period} on {day}: institution has {periods_per_day} periods per day"
                )
            if (day, period) in seen:
                raise ValidationError(f"{day} Period {period} is assigned more than once")
            seen.add((day, period))
            out.append(
                PeriodAssignment(
                    day=day,
                    period=period,
                    teacher_id=_as_uuid(_field(item, "teacher_id"), "teacher_id"),
                    subject_id=_as_uuid(_field(item, "subject_id"), "subject_id"),
                )
            )
    out.sort(key=PeriodAssignment.sort_key)
    return out


def _periods_out(timetable: Timetable) -> Dict[str, List[PeriodAssignmentOut]]:
    return {
        day: [PeriodAssignmentOut(**row) for row in rows]
        for day, rows in timetable.periods_by_day().items()
    }


def _to_response(t: Timetable) -> TimetableResponse:
    return TimetableResponse(
        id=t.id,
        class_id=t.class_id,
        academic_year=t.academic_year,
        week_structure=t.week_structure,
        periods=_periods_out(t),
        is_published=t.is_published,
        is_empty=False,
        version=t.version,
        created_at=t.created_at,
        updated_at=t.updated_at,
        published_at=t.published_at,
    )


def _empty_response(class_id: UUID, academic_year: str) -> TimetableResponse:
    return TimetableResponse(
        class_id=class_id,
        academic_year=academic_year,
        week_structure=WeekStructure.MON_FRI.value,
        periods={},
        is_published=False,
        is_empty=True,
    )


async def _get_class(db: AsyncSession, tenant_id: UUID, class_id: UUID) -> SchoolClass:
    result = await db.execute(
        select(SchoolClass).where(
            SchoolClass.id == class_id,
            SchoolClass.tenant_id == tenant_id,
        )
    )
    cl = result.scalar_one_or_none()
    if not cl:
        raise NotFoundError("Class not found")
    return cl


async def _get_record(
    db: AsyncSession,
    tenant_id: UUID,
    class_id: UUID,
    academic_year: str,
    status_: TimetableStatus,
) -> Optional[Timetable]:
    result = await db.execute(
        select(Timetable).where(
            Timetable.tenant_id == tenant_id,
            Timetable.class_id == class_id,
            Timetable.academic_year == academic_year,
            Timetable.status == status_.value,
        )
    )
    return result.scalar_one_or_none()


async def _working_calendar(
    db: AsyncSession, tenant_id: UUID, week_structure: WeekStructure
) -> Tuple[List[str], Optional[int]]:
    """Working days configured for the institution, else the days of the week structure."""
    result = await db.execute(select(InstitutionSettings).where(InstitutionSettings.tenant_id == tenant_id))
    cfg = result.scalar_one_or_none()
    if cfg and cfg.working_days:
        return list(cfg.working_days), cfg.periods_per_day
    return week_structure.days(), (cfg.periods_per_day if cfg else None)


async def _check_registry_refs(
    db: AsyncSession, tenant_id: UUID, assignments: Sequence[PeriodAssignment]
) -> None:
    teacher_ids = {a.teacher_id for a in assignments}
    subject_ids = {a.subject_id for a in assignments}
    if teacher_ids:
        found = await db.execute(
            select(Teacher.id).where(Teacher.tenant_id == tenant_id, Teacher.id.in_(teacher_ids))
        )
        missing = teacher_ids - set(found.scalars().all())
        if missing:
            raise ValidationError(f"Unknown teacher for this institution: {sorted(map(str, missing))[0]}")
    if subject_ids:
        found = await db.execute(
            select(SchoolSubject.id).where(SchoolSubject.tenant_id == tenant_id, SchoolSubject.id.in_(subject_ids))
        )
        missing = subject_ids - set(found.scalars().all())
        if missing:
            raise ValidationError(f"Unknown subject for this institution: {sorted(map(str, missing))[0]}")


async def _teacher_infos(db: AsyncSession, tenant_id: UUID) -> Dict[UUID, TeacherInfo]:
    result = await db.execute(select(Teacher).where(Teacher.tenant_id == tenant_id))
    return {
        t.id: TeacherInfo(id=t.id, name=t.name, max_periods_per_day=t.max_periods_per_day)
        for t in result.scalars().all()
    }


async def _live_timetables(
    db: AsyncSession, tenant_id: UUID, academic_year: str
) -> List[Tuple[Timetable, str]]:
    result = await db.execute(
        select(Timetable, SchoolClass.name)
        .join(SchoolClass, SchoolClass.id == Timetable.class_id)
        .where(
            Timetable.tenant_id == tenant_id,
            Timetable.academic_year == academic_year,
            Timetable.status.in_(LIVE_STATUSES),
        )
        .order_by(SchoolClass.name, Timetable.status)
    )
    return [(t, name) for t, name in result.all()]


async def _stage_draft(
    db: AsyncSession,
    tenant_id: UUID,
    class_id: UUID,
    academic_year: str,
    week_structure: WeekStructure,
    assignments: Sequence[PeriodAssignment],
    draft: Optional[Timetable],
    created_by: Optional[UUID] = None,
) -> Timetable:
    """Write the assignment set into `draft`, or into a new draft row when None. Does not commit."""
    rows = [
        TimetablePeriod(day=a.day, period=a.period, teacher_id=a.teacher_id, subject_id=a.subject_id)
        for a in assignments
    ]
    if draft is None:
        draft = Timetable(
            tenant_id=tenant_id,
            class_id=class_id,
            academic_year=academic_year,
            week_structure=week_structure.value,
            status=TimetableStatus.DRAFT.value,
            version=1,
            created_by=created_by,
        )
        draft.periods = rows
        db.add(draft)
        return draft
    # Old slot rows must be gone before new rows hit the (timetable, day, period) unique key
    draft.periods.clear()
    await db.flush()
    draft.periods.extend(rows)
    draft.week_structure = week_structure.value
    draft.version = draft.version + 1
    draft.updated_at = datetime.utcnow()
    return draft


async def _commit(db: AsyncSession, conflict_message: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError(conflict_message, status.HTTP_409_CONFLICT)


# ----- Store operations -----


async def load_timetable(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    class_id: UUID,
    academic_year: Optional[str] = None,
) -> TimetableResponse:
    """Draft if present, else published, else a synthesized empty timetable (not persisted)."""
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    await _get_class(db, tenant_id, class_id)
    timetable = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.DRAFT)
    if not timetable:
        timetable = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.PUBLISHED)
    if not timetable:
        return _empty_response(class_id, academic_year)
    return _to_response(timetable)


async def load_published_timetable(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    class_id: UUID,
    academic_year: Optional[str] = None,
) -> Optional[TimetableResponse]:
    """The live version students and teachers see, ignoring any pending draft."""
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    await _get_class(db, tenant_id, class_id)
    timetable = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.PUBLISHED)
    return _to_response(timetable) if timetable else None


async def save_timetable(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    class_id: UUID,
    payload: TimetableSave,
    created_by: Optional[UUID] = None,
) -> TimetableResponse:
    """Upsert the class draft with the complete desired periods map."""
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(payload.academic_year)
    await _get_class(db, tenant_id, class_id)

    draft = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.DRAFT)
    published = None
    if draft is None:
        published = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.PUBLISHED)
    state = lifecycle.class_state(draft is not None, published is not None)
    lifecycle.transition(state, LifecycleAction.EDIT)

    base = draft or published
    if payload.week_structure is not None:
        week_structure = WeekStructure(payload.week_structure)
    elif base is not None:
        week_structure = WeekStructure(base.week_structure)
    else:
        week_structure = WeekStructure.MON_FRI

    working_days, periods_per_day = await _working_calendar(db, tenant_id, week_structure)
    try:
        assignments = normalize_periods(payload.periods, working_days, periods_per_day)
        await _check_registry_refs(db, tenant_id, assignments)
    except ValidationError as e:
        logger.warning("Rejected timetable save for class %s (%s): %s", class_id, academic_year, e.message)
        raise

    if draft is not None and payload.version is not None and payload.version != draft.version:
        raise StaleVersionError(
            f"Timetable draft was modified by another session (version {draft.version}, sent {payload.version})"
        )

    draft = await _stage_draft(
        db,
        tenant_id,
        class_id,
        academic_year,
        week_structure,
        assignments,
        None if lifecycle.creates_new_draft(state) else draft,
        created_by=created_by,
    )
    await _commit(db, "Timetable draft was created by another session; reload and retry")
    await db.refresh(draft)
    snapshot_cache.invalidate(tenant_id, academic_year)
    logger.info(
        "Saved timetable draft for class %s (%s): %d assignments, version %d",
        class_id,
        academic_year,
        len(assignments),
        draft.version,
    )
    return _to_response(draft)


async def publish_timetable(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    class_id: UUID,
    academic_year: Optional[str] = None,
) -> TimetableResponse:
    """Promote the draft. A prior published version becomes SUPERSEDED; no draft remains."""
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    await _get_class(db, tenant_id, class_id)

    draft = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.DRAFT)
    published = await _get_record(db, tenant_id, class_id, academic_year, TimetableStatus.PUBLISHED)
    lifecycle.transition(
        lifecycle.class_state(draft is not None, published is not None),
        LifecycleAction.PUBLISH,
    )

    if published is not None:
        published.status = TimetableStatus.SUPERSEDED.value
        # Flush before promoting so the one-published index never sees two rows
        await db.flush()
    draft.status = TimetableStatus.PUBLISHED.value
    draft.published_at = datetime.utcnow()
    await _commit(db, "Timetable publish conflicted with another session")
    await db.refresh(draft)
    snapshot_cache.invalidate(tenant_id, academic_year)
    logger.info(
        "Published timetable %s for class %s (%s)%s",
        draft.id,
        class_id,
        academic_year,
        f", superseding {published.id}" if published is not None else "",
    )
    return _to_response(draft)


async def list_all_timetables(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    academic_year: Optional[str] = None,
) -> List[TimetableSummary]:
    """All drafts and published timetables of every class in the institution for the year."""
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    return [
        TimetableSummary(
            id=t.id,
            class_id=t.class_id,
            class_name=name,
            academic_year=t.academic_year,
            is_published=t.is_published,
            periods=_periods_out(t),
        )
        for t, name in await _live_timetables(db, tenant_id, academic_year)
    ]


async def build_snapshot(db: AsyncSession, tenant_id: UUID, academic_year: str) -> TimetableSnapshot:
    """Single coarse read of every live timetable; the scan itself never touches the DB."""
    rows = await _live_timetables(db, tenant_id, academic_year)
    return TimetableSnapshot(
        tenant_id=tenant_id,
        academic_year=academic_year,
        timetables=tuple(TimetableView.from_model(t, name) for t, name in rows),
    )


async def get_oracle(db: AsyncSession, tenant_id: UUID, academic_year: str) -> AvailabilityOracle:
    oracle = snapshot_cache.get(tenant_id, academic_year)
    if oracle is None:
        generation = snapshot_cache.generation(tenant_id)
        snapshot = await build_snapshot(db, tenant_id, academic_year)
        oracle = snapshot_cache.put(snapshot, generation)
    return oracle


# ----- Conflict detection & availability -----


async def get_timetable_conflicts(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    class_id: UUID,
    academic_year: Optional[str] = None,
) -> ConflictReport:
    """Conflicts of the class draft against every other class; empty when there is no draft."""
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    await _get_class(db, tenant_id, class_id)
    oracle = await get_oracle(db, tenant_id, academic_year)
    inspected = oracle.snapshot.draft_for(class_id)
    if inspected is None:
        return ConflictReport()
    teachers = await _teacher_infos(db, tenant_id)
    return detect_conflicts(inspected, oracle.snapshot, teachers)


async def check_availability(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    teacher_id: UUID,
    day: str,
    period: int,
    excluding_class_id: Optional[UUID] = None,
    academic_year: Optional[str] = None,
) -> AvailabilityResponse:
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    oracle = await get_oracle(db, tenant_id, academic_year)
    detail = oracle.explain_conflict(teacher_id, day, period, excluding_class_id)
    return AvailabilityResponse(available=detail is None, conflict=detail)


async def get_teacher_schedule(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    teacher_id: UUID,
    academic_year: Optional[str] = None,
) -> TeacherScheduleResponse:
    tenant_id = _require_tenant(tenant_id)
    academic_year = resolve_academic_year(academic_year)
    teacher = await db.get(Teacher, teacher_id)
    if not teacher or teacher.tenant_id != tenant_id:
        raise NotFoundError("Teacher not found")
    oracle = await get_oracle(db, tenant_id, academic_year)
    return TeacherScheduleResponse(
        teacher_id=teacher_id,
        academic_year=academic_year,
        placements=oracle.teacher_assignments(teacher_id),
    )


# ----- Maintenance -----


async def remove_teacher_from_timetables(
    db: AsyncSession,
    tenant_id: UUID,
    teacher_id: UUID,
    commit: bool = True,
) -> int:
    """Write a draft without the teacher for every class/year whose current timetable uses them.

    Drafts are rewritten; a published timetable without a draft gets a new draft,
    so the published snapshot itself stays untouched. The rewrite only drops
    assignments, so kept rows are not re-validated against the current working
    days. Every class is written in one transaction; with commit=False the caller
    owns the commit (and the snapshot invalidation that must follow it).
    Returns the number of drafts written.
    """
    result = await db.execute(
        select(Timetable).where(
            Timetable.tenant_id == tenant_id,
            Timetable.status.in_(LIVE_STATUSES),
        )
    )
    grouped: Dict[Tuple[UUID, str], Dict[str, Timetable]] = defaultdict(dict)
    for t in result.scalars().all():
        grouped[(t.class_id, t.academic_year)][t.status] = t

    staged = 0
    for (class_id, academic_year), records in grouped.items():
        draft = records.get(TimetableStatus.DRAFT.value)
        source = draft or records.get(TimetableStatus.PUBLISHED.value)
        if not any(p.teacher_id == teacher_id for p in source.periods):
            continue
        kept = [
            PeriodAssignment(day=p.day, period=p.period, teacher_id=p.teacher_id, subject_id=p.subject_id)
            for p in source.periods
            if p.teacher_id != teacher_id
        ]
        await _stage_draft(
            db, tenant_id, class_id, academic_year, WeekStructure(source.week_structure), kept, draft
        )
        staged += 1

    if not staged:
        return 0
    await db.flush()
    if commit:
        await _commit(db, "Timetable drafts changed in another session; retry the teacher removal")
        snapshot_cache.invalidate_tenant(tenant_id)
    logger.info("Removed teacher %s from %d timetable draft(s)", teacher_id, staged)
    return staged
