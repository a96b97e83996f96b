"""
Staff directory — view model for the paginated staff table.

The directory holds no authoritative data.  It asks a ``StaffDataSource``
for the current page, turns members into display rows, tracks which member
is selected and which panel is open, and forwards every change back to the
data source before reloading.

The status toggle is binary: ``active`` <-> ``inactive``.  Members on leave
are shown but never offered the toggle.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from carebase.models.staff import StaffStatus
from carebase.services.staff_service import (
    StaffDataSource,
    StaffFilters,
    StaffMember,
    StaffStats,
)

logger = logging.getLogger(__name__)

PAGE_SIZE_OPTIONS = (5, 10, 20, 50)
DEFAULT_PAGE_SIZE = 10

EMPTY_TITLE = "No staff members found"
EMPTY_HINT = "Try adjusting your search or filters"


class StaffStatusError(ValueError):
    """Raised when the active/inactive toggle is used on any other status."""


class Panel(str, enum.Enum):
    PROFILE = "profile"
    EDIT = "edit"
    CONFIRM_TOGGLE = "confirm_toggle"


class RowAction(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"
    TOGGLE_STATUS = "toggle_status"


@dataclass(frozen=True)
class StatusBadge:
    label: str
    tone: str


_BADGES = {
    StaffStatus.ACTIVE.value: StatusBadge("Active", "green"),
    StaffStatus.INACTIVE.value: StatusBadge("Inactive", "red"),
    StaffStatus.ON_LEAVE.value: StatusBadge("On Leave", "amber"),
}


def status_badge(status: str) -> StatusBadge:
    return _BADGES.get(str(status).lower(), StatusBadge(str(status), "neutral"))


def toggled_status(status: StaffStatus) -> StaffStatus:
    if status == StaffStatus.ACTIVE:
        return StaffStatus.INACTIVE
    if status == StaffStatus.INACTIVE:
        return StaffStatus.ACTIVE
    raise StaffStatusError(f"Status {status.value!r} cannot be toggled; only active and inactive can")


@dataclass(frozen=True)
class ActionItem:
    action: RowAction
    label: str
    tone: str = "default"


@dataclass
class StaffRow:
    staff: StaffMember
    name: str
    role: str
    department: str
    email: str
    phone: Optional[str]
    joining_date: Optional[str]
    badge: StatusBadge
    actions: list[ActionItem] = field(default_factory=list)


def build_row(staff: StaffMember) -> StaffRow:
    actions = [
        ActionItem(RowAction.VIEW, "View Profile"),
        ActionItem(RowAction.EDIT, "Edit Staff"),
    ]
    if staff.status == StaffStatus.ACTIVE:
        actions.append(ActionItem(RowAction.TOGGLE_STATUS, "Deactivate", "red"))
    elif staff.status == StaffStatus.INACTIVE:
        actions.append(ActionItem(RowAction.TOGGLE_STATUS, "Activate", "green"))
    return StaffRow(
        staff=staff,
        name=staff.full_name,
        role=staff.role,
        department=staff.department,
        email=staff.email,
        phone=staff.phone,
        joining_date=staff.joining_date.isoformat() if staff.joining_date else None,
        badge=status_badge(staff.status.value),
        actions=actions,
    )


@dataclass(frozen=True)
class PaginationView:
    """Pagination arithmetic; ``current_page`` is 0-based, labels are 1-based."""

    current_page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(self.total_count / self.page_size))

    @property
    def start(self) -> int:
        if self.total_count == 0 or self.current_page * self.page_size >= self.total_count:
            return 0
        return self.current_page * self.page_size + 1

    @property
    def end(self) -> int:
        if self.start == 0:
            return 0
        return min((self.current_page + 1) * self.page_size, self.total_count)

    @property
    def has_previous(self) -> bool:
        return self.current_page > 0

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages - 1

    @property
    def summary(self) -> str:
        return f"Showing {self.start} to {self.end} of {self.total_count} staff members"

    @property
    def page_label(self) -> str:
        return f"Page {self.current_page + 1} of {self.total_pages}"


@dataclass(frozen=True)
class ConfirmationDialog:
    title: str
    description: str
    confirm_label: str
    tone: str


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str


class StaffDirectory:
    """Directory state for one set of filters."""

    def __init__(
        self,
        source: StaffDataSource,
        filters: Optional[StaffFilters] = None,
        *,
        page: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Page size must be one of {PAGE_SIZE_OPTIONS}")
        self.source = source
        self.filters = filters or StaffFilters()
        self.current_page = max(0, page)
        self.page_size = page_size
        self.staff: list[StaffMember] = []
        self.total_count = 0
        self.selected: Optional[StaffMember] = None
        self.open_panel: Optional[Panel] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self) -> None:
        page = await self.source.fetch(self.filters, self.current_page, self.page_size)
        self.staff = page.items
        self.total_count = page.total_count

    async def stats(self) -> StaffStats:
        return await self.source.stats()

    @property
    def rows(self) -> list[StaffRow]:
        return [build_row(member) for member in self.staff]

    @property
    def empty_message(self) -> Optional[tuple[str, str]]:
        if self.staff:
            return None
        return EMPTY_TITLE, EMPTY_HINT

    @property
    def pagination(self) -> PaginationView:
        return PaginationView(self.current_page, self.page_size, self.total_count)

    async def change_page(self, page: int) -> None:
        if page < 0 or page >= self.pagination.total_pages:
            logger.debug("Ignoring page %d outside 0..%d", page, self.pagination.total_pages - 1)
            return
        self.current_page = page
        await self.load()

    async def change_page_size(self, page_size: int) -> None:
        if page_size not in PAGE_SIZE_OPTIONS:
            raise ValueError(f"Page size must be one of {PAGE_SIZE_OPTIONS}")
        self.page_size = page_size
        self.current_page = 0
        await self.load()

    # ------------------------------------------------------------------
    # Row actions
    # ------------------------------------------------------------------

    def view(self, staff: StaffMember) -> None:
        self.selected = staff
        self.open_panel = Panel.PROFILE

    def edit(self, staff: StaffMember) -> None:
        self.selected = staff
        self.open_panel = Panel.EDIT

    def request_toggle(self, staff: StaffMember) -> ConfirmationDialog:
        toggled_status(staff.status)
        self.selected = staff
        self.open_panel = Panel.CONFIRM_TOGGLE
        return self.confirmation_dialog()

    def close(self) -> None:
        self.open_panel = None

    def confirmation_dialog(self) -> Optional[ConfirmationDialog]:
        staff = self.selected
        if staff is None:
            return None
        if staff.status == StaffStatus.ACTIVE:
            return ConfirmationDialog(
                title="Deactivate Staff",
                description=(
                    f"This will deactivate {staff.full_name}'s account. "
                    "They will no longer be able to access the system."
                ),
                confirm_label="Deactivate",
                tone="destructive",
            )
        return ConfirmationDialog(
            title="Activate Staff",
            description=(
                f"This will activate {staff.full_name}'s account. "
                "They will be able to access the system again."
            ),
            confirm_label="Activate",
            tone="green",
        )

    async def confirm_toggle(self) -> Optional[Toast]:
        """Flip the selected member's status through the data source.

        Returns ``None`` when nothing is selected or the member no longer
        exists in the source.
        """
        staff = self.selected
        if staff is None:
            return None

        new_status = toggled_status(staff.status)
        updated = await self.source.update(staff.model_copy(update={"status": new_status}))
        self.open_panel = None
        if updated is None:
            logger.warning("Staff %s disappeared before its status could change", staff.id)
            self.selected = None
            await self.load()
            return None
        self.selected = updated
        await self.load()

        activated = new_status == StaffStatus.ACTIVE
        verb = "activated" if activated else "deactivated"
        return Toast(
            title=f"Staff {'Activated' if activated else 'Deactivated'}",
            description=f"{staff.full_name} has been {verb}.",
            variant="default" if activated else "destructive",
        )

    async def submit_edit(self, staff: StaffMember) -> Optional[StaffMember]:
        updated = await self.source.update(staff)
        self.open_panel = None
        await self.load()
        return updated

    async def submit_new(self, staff: StaffMember) -> StaffMember:
        created = await self.source.create(staff)
        await self.load()
        return created
