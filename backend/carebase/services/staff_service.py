"""
Staff service — the data source behind the staff directory.

``StaffDataSource`` is the capability the directory depends on (fetch a
filtered page, stats, lookup lists, update, create).  ``StaffService`` is
the database-backed implementation; tests and other front-ends can supply
their own.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from carebase.db.client import SqlTableClient
from carebase.models.staff import StaffStatus

logger = logging.getLogger(__name__)

ALL = "all"
STAFF_SEARCH_COLUMNS = ("first_name", "last_name", "email", "role", "department")
EDITABLE_COLUMNS = ("first_name", "last_name", "role", "department", "email", "phone", "joining_date", "status")


class StaffMember(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[uuid.UUID] = None
    first_name: str
    last_name: str
    role: str
    department: str
    email: str
    phone: Optional[str] = None
    joining_date: Optional[date] = None
    status: StaffStatus = StaffStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass
class StaffFilters:
    search: str = ""
    department: str = ALL
    role: str = ALL
    status: str = ALL


@dataclass
class StaffPage:
    items: list[StaffMember]
    total_count: int


@dataclass
class StaffStats:
    total: int = 0
    active: int = 0
    inactive: int = 0
    on_leave: int = 0


class StaffDataSource(Protocol):
    async def fetch(self, filters: StaffFilters, page: int, page_size: int) -> StaffPage: ...

    async def stats(self) -> StaffStats: ...

    async def departments(self) -> list[str]: ...

    async def roles(self) -> list[str]: ...

    async def update(self, staff: StaffMember) -> Optional[StaffMember]: ...

    async def create(self, staff: StaffMember) -> StaffMember: ...


def _row_to_staff(row: dict[str, Any]) -> StaffMember:
    return StaffMember(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        role=row["role"],
        department=row["department"],
        email=row["email"],
        phone=row.get("phone"),
        joining_date=row.get("joining_date"),
        status=StaffStatus(row["status"]),
    )


def _staff_to_row(staff: StaffMember) -> dict[str, Any]:
    row = staff.model_dump(include=set(EDITABLE_COLUMNS))
    row["status"] = staff.status.value
    return row


class StaffService:
    """``StaffDataSource`` backed by the ``staff`` table."""

    def __init__(self, client: SqlTableClient):
        self._client = client

    async def fetch(self, filters: StaffFilters, page: int, page_size: int) -> StaffPage:
        query = (
            self._client.table("staff")
            .select(count="exact")
            .order("last_name")
            .order("first_name")
        )
        if filters.search:
            query = query.ilike_any(STAFF_SEARCH_COLUMNS, f"%{filters.search.strip()}%")
        if filters.department and filters.department != ALL:
            query = query.eq("department", filters.department)
        if filters.role and filters.role != ALL:
            query = query.eq("role", filters.role)
        if filters.status and filters.status != ALL:
            query = query.eq("status", filters.status)
        start = page * page_size
        query = query.range(start, start + page_size - 1)

        result = await query.execute()
        if result.error:
            raise result.error
        return StaffPage(
            items=[_row_to_staff(row) for row in result.data or []],
            total_count=result.count or 0,
        )

    async def get(self, staff_id: uuid.UUID | str) -> Optional[StaffMember]:
        result = await self._client.table("staff").select().eq("id", staff_id).limit(1).execute()
        if result.error:
            raise result.error
        return _row_to_staff(result.data[0]) if result.data else None

    async def stats(self) -> StaffStats:
        result = await self._client.table("staff").select("status").execute()
        if result.error:
            raise result.error
        counts = Counter(row["status"] for row in result.data or [])
        return StaffStats(
            total=sum(counts.values()),
            active=counts[StaffStatus.ACTIVE.value],
            inactive=counts[StaffStatus.INACTIVE.value],
            on_leave=counts[StaffStatus.ON_LEAVE.value],
        )

    async def departments(self) -> list[str]:
        return await self._distinct("department")

    async def roles(self) -> list[str]:
        return await self._distinct("role")

    async def _distinct(self, column: str) -> list[str]:
        result = await self._client.table("staff").select(column).execute()
        if result.error:
            raise result.error
        return sorted({row[column] for row in result.data or [] if row[column]})

    async def update(self, staff: StaffMember) -> Optional[StaffMember]:
        if staff.id is None:
            raise ValueError("Cannot update a staff member without an id")
        result = await (
            self._client.table("staff")
            .update(_staff_to_row(staff))
            .eq("id", staff.id)
            .select()
            .execute()
        )
        if result.error:
            raise result.error
        if not result.data:
            return None
        logger.info("Updated staff %s (status=%s)", staff.id, staff.status.value)
        return _row_to_staff(result.data[0])

    async def create(self, staff: StaffMember) -> StaffMember:
        row = _staff_to_row(staff)
        if staff.id is not None:
            row["id"] = staff.id
        result = await self._client.table("staff").insert(row).select().execute()
        if result.error:
            raise result.error
        created = _row_to_staff(result.data[0])
        logger.info("Created staff %s (%s, %s)", created.id, created.role, created.department)
        return created
