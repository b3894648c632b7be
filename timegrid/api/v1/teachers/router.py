from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from timegrid.auth.dependencies import get_current_user
from timegrid.auth.rbac import SCHEDULER_ROLES, require_roles
from timegrid.auth.schemas import CurrentUser
from timegrid.core.exceptions import ServiceError
from timegrid.db.session import get_db

from .schemas import TeacherDeleteResponse, TeacherResponse
from . import service

router = APIRouter(prefix="/api/v1/teachers", tags=["teachers"])


@router.get(
    "",
    response_model=List[TeacherResponse],
    dependencies=[Depends(require_roles(*SCHEDULER_ROLES))],
)
async def list_teachers(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.list_teachers(db, current_user.tenant_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{teacher_id}",
    response_model=TeacherDeleteResponse,
    dependencies=[Depends(require_roles("SUPER_ADMIN", "ADMIN"))],
)
async def delete_teacher(
    teacher_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        result = await service.delete_teacher(db, current_user.tenant_id, teacher_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not result:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Teacher not found")
    return result
