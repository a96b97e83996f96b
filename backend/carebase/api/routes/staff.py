"""
Staff API routes.

Endpoints:
    GET  /staff/directory               — Filtered, paginated directory with stats and lookups
    POST /staff                         — Add a staff member
    GET  /staff/{id}                    — Staff profile
    PUT  /staff/{id}                    — Edit a staff member
    POST /staff/{id}/toggle-status      — Activate / deactivate (not for members on leave)
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel

from carebase.api.middleware.audit import log_audit
from carebase.config import get_settings
from carebase.db.client import SqlTableClient
from carebase.db.postgres import get_db_client
from carebase.services.staff_directory import (
    PAGE_SIZE_OPTIONS,
    StaffDirectory,
    StaffRow,
    StaffStatusError,
)
from carebase.services.staff_service import ALL, StaffFilters, StaffMember, StaffService

router = APIRouter()
settings = get_settings()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class ActionItemResponse(BaseModel):
    action: str
    label: str
    tone: str


class StaffRowResponse(BaseModel):
    staff: StaffMember
    name: str
    role: str
    department: str
    email: str
    phone: Optional[str] = None
    joining_date: Optional[str] = None
    status_label: str
    status_tone: str
    actions: list[ActionItemResponse]


class PaginationResponse(BaseModel):
    current_page: int
    page_size: int
    total_count: int
    total_pages: int
    start: int
    end: int
    has_previous: bool
    has_next: bool
    summary: str
    page_label: str
    page_size_options: list[int]


class StaffStatsResponse(BaseModel):
    total: int
    active: int
    inactive: int
    on_leave: int


class EmptyMessage(BaseModel):
    title: str
    hint: str


class StaffDirectoryResponse(BaseModel):
    rows: list[StaffRowResponse]
    empty_message: Optional[EmptyMessage] = None
    pagination: PaginationResponse
    stats: StaffStatsResponse
    departments: list[str]
    roles: list[str]


class ToastResponse(BaseModel):
    title: str
    description: str
    variant: str


class StatusToggleResponse(BaseModel):
    staff: StaffMember
    toast: ToastResponse


def _row_response(row: StaffRow) -> StaffRowResponse:
    return StaffRowResponse(
        staff=row.staff,
        name=row.name,
        role=row.role,
        department=row.department,
        email=row.email,
        phone=row.phone,
        joining_date=row.joining_date,
        status_label=row.badge.label,
        status_tone=row.badge.tone,
        actions=[
            ActionItemResponse(action=item.action.value, label=item.label, tone=item.tone)
            for item in row.actions
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/staff/directory", response_model=StaffDirectoryResponse)
async def staff_directory(
    search: str = Query("", description="Search by name, email, role or department"),
    department: str = Query(ALL),
    role: str = Query(ALL),
    status_filter: str = Query(ALL, alias="status"),
    page: int = Query(0, ge=0),
    page_size: int = Query(settings.STAFF_DEFAULT_PAGE_SIZE),
    client: SqlTableClient = Depends(get_db_client),
):
    if page_size not in PAGE_SIZE_OPTIONS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"page_size must be one of {list(PAGE_SIZE_OPTIONS)}",
        )

    service = StaffService(client)
    directory = StaffDirectory(
        service,
        StaffFilters(search=search, department=department, role=role, status=status_filter),
        page=page,
        page_size=page_size,
    )
    await directory.load()
    stats = await directory.stats()
    pagination = directory.pagination
    empty = directory.empty_message

    return StaffDirectoryResponse(
        rows=[_row_response(row) for row in directory.rows],
        empty_message=EmptyMessage(title=empty[0], hint=empty[1]) if empty else None,
        pagination=PaginationResponse(
            current_page=pagination.current_page,
            page_size=pagination.page_size,
            total_count=pagination.total_count,
            total_pages=pagination.total_pages,
            start=pagination.start,
            end=pagination.end,
            has_previous=pagination.has_previous,
            has_next=pagination.has_next,
            summary=pagination.summary,
            page_label=pagination.page_label,
            page_size_options=list(PAGE_SIZE_OPTIONS),
        ),
        stats=StaffStatsResponse(
            total=stats.total,
            active=stats.active,
            inactive=stats.inactive,
            on_leave=stats.on_leave,
        ),
        departments=await service.departments(),
        roles=await service.roles(),
    )


@router.post("/staff", response_model=StaffMember, status_code=status.HTTP_201_CREATED)
async def create_staff(
    payload: StaffMember,
    request: Request,
    client: SqlTableClient = Depends(get_db_client),
):
    staff = await StaffService(client).create(payload)
    await log_audit(
        client,
        action="create",
        resource="staff",
        resource_id=staff.id,
        details=f"Staff member added to {staff.department}",
        request=request,
    )
    return staff


@router.get("/staff/{staff_id}", response_model=StaffMember)
async def get_staff(
    staff_id: UUID,
    client: SqlTableClient = Depends(get_db_client),
):
    staff = await StaffService(client).get(staff_id)
    if staff is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff member not found",
        )
    return staff


@router.put("/staff/{staff_id}", response_model=StaffMember)
async def update_staff(
    staff_id: UUID,
    payload: StaffMember,
    request: Request,
    client: SqlTableClient = Depends(get_db_client),
):
    # The path parameter is authoritative
    staff = payload.model_copy(update={"id": staff_id})
    updated = await StaffService(client).update(staff)
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff member not found",
        )

    await log_audit(
        client,
        action="update",
        resource="staff",
        resource_id=staff_id,
        details="Staff details updated",
        request=request,
    )
    return updated


@router.post("/staff/{staff_id}/toggle-status", response_model=StatusToggleResponse)
async def toggle_staff_status(
    staff_id: UUID,
    request: Request,
    client: SqlTableClient = Depends(get_db_client),
):
    """Flip a staff member between active and inactive."""
    service = StaffService(client)
    staff = await service.get(staff_id)
    if staff is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff member not found",
        )

    directory = StaffDirectory(service)
    try:
        directory.request_toggle(staff)
    except StaffStatusError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    toast = await directory.confirm_toggle()
    if toast is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff member not found",
        )

    await log_audit(
        client,
        action="update",
        resource="staff",
        resource_id=staff_id,
        details=toast.title,
        request=request,
    )
    return StatusToggleResponse(
        staff=directory.selected,
        toast=ToastResponse(title=toast.title, description=toast.description, variant=toast.variant),
    )
