from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated caller, built from token claims.
    tenant_id is the institution scope every timetable query is filtered by.
    """

    id: UUID
    tenant_id: Optional[UUID] = None
    role: str
