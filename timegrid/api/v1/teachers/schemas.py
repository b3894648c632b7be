from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr


class TeacherResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    email: Optional[EmailStr] = None
    department: Optional[str] = None
    max_periods_per_day: int
    created_at: datetime

    class Config:
        from_attributes = True


class TeacherDeleteResponse(BaseModel):
    success: bool
    timetables_updated: int
