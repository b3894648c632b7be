"""Tenant-scoped classes (e.g. 10-A, BSc CS Year 1). Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from timegrid.core.enums import InstitutionType
from timegrid.db.session import Base


class SchoolClass(Base):
    """Tenant-scoped class master. institution_type is a presentation tag; it does not change conflict rules."""

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", "section", name="uq_class_tenant_name_section"),
        {"schema": "core"},
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("core.tenants.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=True)
    section = Column(String(50), nullable=True)
    institution_type = Column(String(20), nullable=False, default=InstitutionType.SCHOOL.value)
    capacity = Column(Integer, nullable=False, default=40)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", backref="school_classes")
    timetables = relationship(
        "Timetable",
        back_populates="school_class",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
