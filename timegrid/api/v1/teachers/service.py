"""Teacher registry reads plus deletion. Deleting a teacher first strips them from current timetables."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from timegrid.core.config import settings
from timegrid.core.exceptions import AuthorizationGap
from timegrid.core.models import Teacher

from timegrid.api.v1.timetables import service as timetable_service
from timegrid.api.v1.timetables.availability import snapshot_cache

from .schemas import TeacherDeleteResponse, TeacherResponse

logger = logging.getLogger(__name__)


def _to_response(t: Teacher) -> TeacherResponse:
    return TeacherResponse(
        id=t.id,
        tenant_id=t.tenant_id,
        name=t.name,
        email=t.email,
        department=t.department,
        max_periods_per_day=t.max_periods_per_day or settings.default_max_periods_per_day,
        created_at=t.created_at,
    )


async def list_teachers(db: AsyncSession, tenant_id: Optional[UUID]) -> List[TeacherResponse]:
    if tenant_id is None:
        raise AuthorizationGap("You must be part of an institution to manage teachers")
    result = await db.execute(select(Teacher).where(Teacher.tenant_id == tenant_id).order_by(Teacher.name))
    return [_to_response(t) for t in result.scalars().all()]


async def delete_teacher(
    db: AsyncSession,
    tenant_id: Optional[UUID],
    teacher_id: UUID,
) -> Optional[TeacherDeleteResponse]:
    if tenant_id is None:
        raise AuthorizationGap("You must be part of an institution to manage teachers")
    result = await db.execute(
        select(Teacher).where(
            Teacher.id == teacher_id,
            Teacher.tenant_id == tenant_id,
        )
    )
    obj = result.scalar_one_or_none()
    if not obj:
        return None
    # Draft rewrites and the delete land in one commit
    updated = await timetable_service.remove_teacher_from_timetables(db, tenant_id, teacher_id, commit=False)
    await db.delete(obj)
    await db.commit()
    snapshot_cache.invalidate_tenant(tenant_id)
    logger.info("Deleted teacher %s (tenant %s); %d timetable draft(s) rewritten", teacher_id, tenant_id, updated)
    return TeacherDeleteResponse(success=True, timetables_updated=updated)
