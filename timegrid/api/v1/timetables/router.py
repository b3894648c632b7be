"""Timetable builder API. Admins and schedulers only; every call is scoped to the caller's institution."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from timegrid.auth.dependencies import get_current_user
from timegrid.auth.rbac import SCHEDULER_ROLES, require_roles
from timegrid.auth.schemas import CurrentUser
from timegrid.core.enums import DayOfWeek
from timegrid.core.exceptions import ServiceError
from timegrid.db.session import get_db

from .schemas import (
    AvailabilityResponse,
    ConflictReport,
    PublishResponse,
    TeacherScheduleResponse,
    TimetableResponse,
    TimetableSave,
    TimetableSummary,
)
from . import service

router = APIRouter(prefix="/api/v1/timetables", tags=["timetables"])

_schedulers_only = [Depends(require_roles(*SCHEDULER_ROLES))]


@router.get(
    "",
    response_model=List[TimetableSummary],
    dependencies=_schedulers_only,
)
async def list_all_timetables(
    academic_year: Optional[str] = Query(None, description="e.g. 2025-2026; defaults to the current year"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.list_all_timetables(db, current_user.tenant_id, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/availability",
    response_model=AvailabilityResponse,
    dependencies=_schedulers_only,
)
async def check_availability(
    teacher_id: UUID,
    day: DayOfWeek,
    period: int = Query(..., ge=1),
    excluding_class_id: Optional[UUID] = Query(None, description="Class being edited; its own slots never conflict"),
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.check_availability(
            db,
            current_user.tenant_id,
            teacher_id,
            day,
            period,
            excluding_class_id=excluding_class_id,
            academic_year=academic_year,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/teachers/{teacher_id}/schedule",
    response_model=TeacherScheduleResponse,
    dependencies=_schedulers_only,
)
async def get_teacher_schedule(
    teacher_id: UUID,
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.get_teacher_schedule(db, current_user.tenant_id, teacher_id, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{class_id}",
    response_model=TimetableResponse,
    dependencies=_schedulers_only,
)
async def get_timetable(
    class_id: UUID,
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.load_timetable(db, current_user.tenant_id, class_id, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{class_id}/published",
    response_model=TimetableResponse,
    dependencies=_schedulers_only,
)
async def get_published_timetable(
    class_id: UUID,
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        obj = await service.load_published_timetable(db, current_user.tenant_id, class_id, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No published timetable for this class")
    return obj


@router.put(
    "/{class_id}",
    response_model=TimetableResponse,
    dependencies=_schedulers_only,
)
async def save_timetable(
    class_id: UUID,
    payload: TimetableSave,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.save_timetable(db, current_user.tenant_id, class_id, payload, created_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# POST kept alongside PUT for builder clients that create drafts with POST
router.add_api_route(
    "/{class_id}",
    save_timetable,
    methods=["POST"],
    response_model=TimetableResponse,
    dependencies=_schedulers_only,
)


@router.post(
    "/{class_id}/publish",
    response_model=PublishResponse,
    dependencies=_schedulers_only,
)
async def publish_timetable(
    class_id: UUID,
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        timetable = await service.publish_timetable(db, current_user.tenant_id, class_id, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return PublishResponse(message="Timetable published successfully", timetable=timetable)


@router.get(
    "/{class_id}/conflicts",
    response_model=ConflictReport,
    dependencies=_schedulers_only,
)
async def get_timetable_conflicts(
    class_id: UUID,
    academic_year: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return await service.get_timetable_conflicts(db, current_user.tenant_id, class_id, academic_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
