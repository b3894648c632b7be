import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from timegrid.db.session import Base


class Tenant(Base):
    """
    Institution (tenancy boundary). Every class, teacher, subject and timetable
    row carries tenant_id and every query is filtered by it.
    Created at onboarding, never merged or split.
    """

    __tablename__ = "tenants"
    __table_args__ = {"schema": "core"}

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    settings = relationship(
        "InstitutionSettings", back_populates="tenant", uselist=False, cascade="all, delete-orphan"
    )
