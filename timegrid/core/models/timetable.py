"""Timetable (source of truth). One record per class / academic year / lifecycle status.

At most one DRAFT and one PUBLISHED record exist per (tenant, class, academic_year);
superseded versions are retained for history. Assignments live in timetable_periods,
one row per (day, period) slot.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from timegrid.core.enums import DAY_ORDER, TimetableStatus, WeekStructure
from timegrid.db.session import Base


def _status_filter(status: TimetableStatus):
    return text(f"status = '{status.value}'")


class Timetable(Base):
    __tablename__ = "timetables"
    __table_args__ = (
        Index(
            "uq_timetable_one_draft",
            "tenant_id",
            "class_id",
            "academic_year",
            unique=True,
            postgresql_where=_status_filter(TimetableStatus.DRAFT),
            sqlite_where=_status_filter(TimetableStatus.DRAFT),
        ),
        Index(
            "uq_timetable_one_published",
            "tenant_id",
            "class_id",
            "academic_year",
            unique=True,
            postgresql_where=_status_filter(TimetableStatus.PUBLISHED),
            sqlite_where=_status_filter(TimetableStatus.PUBLISHED),
        ),
        Index("ix_timetable_tenant_year", "tenant_id", "academic_year"),
        {"schema": "school"},
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("core.tenants.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("core.classes.id", ondelete="CASCADE"), nullable=False)
    academic_year = Column(String(9), nullable=False)  # e.g. "2025-2026"
    week_structure = Column(String(10), nullable=False, default=WeekStructure.MON_FRI.value)
    status = Column(String(20), nullable=False, default=TimetableStatus.DRAFT.value)
    # Incremented on every save of the draft; used for opt-in stale-write detection
    version = Column(Integer, nullable=False, default=1)
    created_by = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    published_at = Column(DateTime(timezone=True), nullable=True)

    school_class = relationship("SchoolClass", back_populates="timetables")
    periods = relationship(
        "TimetablePeriod",
        back_populates="timetable",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TimetablePeriod.period",
    )

    @property
    def is_published(self) -> bool:
        return self.status == TimetableStatus.PUBLISHED.value

    def periods_by_day(self) -> dict:
        """Persisted shape: {"Monday": [{"period", "subject_id", "teacher_id"}, ...], ...}."""
        out: dict = {}
        rows = sorted(self.periods, key=lambda p: (DAY_ORDER.get(p.day, 99), p.period))
        for p in rows:
            out.setdefault(p.day, []).append(
                {"period": p.period, "subject_id": p.subject_id, "teacher_id": p.teacher_id}
            )
        return out


class TimetablePeriod(Base):
    """A single period assignment. No identity outside its timetable."""

    __tablename__ = "timetable_periods"
    __table_args__ = (
        UniqueConstraint("timetable_id", "day", "period", name="uq_timetable_period_slot"),
        {"schema": "school"},
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timetable_id = Column(
        Uuid(as_uuid=True), ForeignKey("school.timetables.id", ondelete="CASCADE"), nullable=False
    )
    day = Column(String(10), nullable=False)  # full name, e.g. "Monday"
    period = Column(Integer, nullable=False)  # non-break period number, >= 1
    # Registry ids without FK: superseded history may keep ids of since-deleted teachers
    teacher_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), nullable=False)

    timetable = relationship("Timetable", back_populates="periods")
