"""School/college subject. periods_per_week is a display target only."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from timegrid.db.session import Base


class SchoolSubject(Base):
    __tablename__ = "subjects"
    __table_args__ = {"schema": "school"}

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid(as_uuid=True), ForeignKey("core.tenants.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=True)
    color = Column(String(20), nullable=False, default="#3b82f6")
    periods_per_week = Column(Integer, nullable=False, default=4)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", backref="school_subjects")
