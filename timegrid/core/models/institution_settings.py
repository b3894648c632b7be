"""Working-day calendar and period grid configured during institution setup. Read-only for the timetable engine."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from timegrid.core.enums import InstitutionType, WeekStructure
from timegrid.db.session import Base


class InstitutionSettings(Base):
    __tablename__ = "institution_settings"
    __table_args__ = {"schema": "core"}

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(
        Uuid(as_uuid=True), ForeignKey("core.tenants.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    institution_type = Column(String(20), nullable=False, default=InstitutionType.SCHOOL.value)
    # Full day names, e.g. ["Monday", ..., "Friday"]; empty means Mon-Fri
    working_days = Column(JSON, nullable=False, default=lambda: WeekStructure.MON_FRI.days())
    # Number of non-break periods per day; None = no upper bound on period numbers
    periods_per_day = Column(Integer, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="settings")
