"""
Patient service — registration, update, delete and read paths.

All public functions take the table client as their first argument so the
caller decides which database (or test double) they run against.  The
mutation functions are the error boundary: database failures come back as a
``PatientOperationResult`` with ``success=False`` instead of an exception.

Registration is a best-effort sequence, not a transaction.  Once the patient
row is inserted it stays, whatever happens while seeding its first medical
record; the seeding outcome is reported in ``seed_record``.
"""

from __future__ import annotations

import enum
import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Optional

from carebase.config import get_settings
from carebase.db.client import DatabaseError, SqlTableClient
from carebase.services.patient_mapping import (
    Patient,
    PatientFormValues,
    build_seed_medical_record,
    map_db_patient_to_patient,
    map_form_to_db_patient,
    map_patient_to_db_patient,
)

logger = logging.getLogger(__name__)

PATIENT_SEARCH_COLUMNS = ("first_name", "last_name", "email", "phone")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class SeedRecordStatus(str, enum.Enum):
    CREATED = "created"
    SKIPPED_NO_STAFF = "skipped_no_staff"
    FAILED = "failed"


@dataclass
class SeedRecordOutcome:
    status: SeedRecordStatus
    record: Optional[dict[str, Any]] = None
    reason: Optional[str] = None


@dataclass
class PatientOperationResult:
    success: bool
    data: Any = None
    error: Optional[DatabaseError] = None
    seed_record: Optional[SeedRecordOutcome] = None


@dataclass
class PatientPage:
    items: list[Patient]
    total_count: int


StaffSelector = Callable[[SqlTableClient], Awaitable[Optional[Any]]]


# ---------------------------------------------------------------------------
# Staff selection
# ---------------------------------------------------------------------------

async def first_available_staff(client: SqlTableClient) -> Optional[Any]:
    """Return the id of whichever staff row the database yields first.

    Stand-in for the clinician actually registering the patient; no ordering
    is implied.
    """
    result = await client.table("staff").select("id").limit(1).execute()
    if result.error:
        raise result.error
    if result.data:
        return result.data[0]["id"]
    return None


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

async def create_patient(
    client: SqlTableClient,
    form: PatientFormValues,
    *,
    staff_selector: StaffSelector = first_available_staff,
    today: Optional[date] = None,
) -> PatientOperationResult:
    """Insert a patient and try to seed their first medical record."""
    db_patient = map_form_to_db_patient(form, get_settings().DEFAULT_PATIENT_STATUS)
    try:
        result = await client.table("patients").insert(db_patient).select().execute()
        if result.error:
            raise result.error
    except DatabaseError as exc:
        logger.exception("Error creating patient %s %s", form.first_name, form.last_name)
        return PatientOperationResult(success=False, error=exc)

    data = result.data or []
    if not data:
        seed = SeedRecordOutcome(SeedRecordStatus.FAILED, reason="patient insert returned no rows")
        logger.warning("Patient insert returned no rows; skipping initial medical record")
        return PatientOperationResult(success=True, data=data, seed_record=seed)

    patient_id = data[0]["id"]
    seed = await _seed_medical_record(client, form, patient_id, staff_selector, today or date.today())
    logger.info("Created patient %s (initial record: %s)", patient_id, seed.status.value)
    return PatientOperationResult(success=True, data=data, seed_record=seed)


async def _seed_medical_record(
    client: SqlTableClient,
    form: PatientFormValues,
    patient_id: Any,
    staff_selector: StaffSelector,
    record_date: date,
) -> SeedRecordOutcome:
    try:
        staff_id = await staff_selector(client)
    except DatabaseError as exc:
        logger.warning("Error fetching staff for medical record of patient %s: %s", patient_id, exc)
        return SeedRecordOutcome(SeedRecordStatus.FAILED, reason=str(exc))

    if staff_id is None:
        logger.info("No staff on record; patient %s registered without an initial medical record", patient_id)
        return SeedRecordOutcome(SeedRecordStatus.SKIPPED_NO_STAFF)

    record = build_seed_medical_record(form, patient_id, staff_id, record_date)
    result = await client.table("medical_records").insert(record).select().execute()
    if result.error:
        logger.warning("Error creating initial medical record for patient %s: %s", patient_id, result.error)
        return SeedRecordOutcome(SeedRecordStatus.FAILED, reason=str(result.error))

    created = (result.data or [record])[0]
    return SeedRecordOutcome(SeedRecordStatus.CREATED, record=_record_to_dict(created))


async def update_patient(client: SqlTableClient, patient: Patient) -> PatientOperationResult:
    """Write every column of *patient* to the row with the same id."""
    try:
        result = await (
            client.table("patients")
            .update(map_patient_to_db_patient(patient))
            .eq("id", patient.id)
            .select()
            .execute()
        )
        if result.error:
            raise result.error
    except DatabaseError as exc:
        logger.exception("Error updating patient %s", patient.id)
        return PatientOperationResult(success=False, error=exc)

    logger.info("Updated patient %s (%d row(s))", patient.id, len(result.data or []))
    return PatientOperationResult(success=True, data=result.data)


async def delete_patient(client: SqlTableClient, patient_id: uuid.UUID | str) -> PatientOperationResult:
    try:
        result = await client.table("patients").delete().eq("id", patient_id).execute()
        if result.error:
            raise result.error
    except DatabaseError as exc:
        logger.exception("Error deleting patient %s", patient_id)
        return PatientOperationResult(success=False, error=exc)

    logger.info("Deleted patient %s", patient_id)
    return PatientOperationResult(success=True)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_patient(client: SqlTableClient, patient_id: uuid.UUID | str) -> Patient | None:
    """Return a single patient by primary key, or ``None``."""
    result = await client.table("patients").select().eq("id", patient_id).limit(1).execute()
    if result.error:
        raise result.error
    if not result.data:
        return None
    return map_db_patient_to_patient(result.data[0])


async def list_patients(
    client: SqlTableClient,
    *,
    search: str | None = None,
    status: str | None = None,
    page: int = 0,
    page_size: int = 10,
) -> PatientPage:
    """Paginated patient list, newest first.

    *search* is matched case-insensitively against name, email and phone.
    """
    query = client.table("patients").select(count="exact").order("created_at", desc=True)
    if search:
        query = query.ilike_any(PATIENT_SEARCH_COLUMNS, f"%{search}%")
    if status and status != "all":
        query = query.eq("status", status)
    start = page * page_size
    query = query.range(start, start + page_size - 1)

    result = await query.execute()
    if result.error:
        raise result.error
    return PatientPage(
        items=[map_db_patient_to_patient(row) for row in result.data or []],
        total_count=result.count or 0,
    )


# ---------------------------------------------------------------------------
# Medical records
# ---------------------------------------------------------------------------

def _record_to_dict(row: dict[str, Any]) -> dict[str, Any]:
    record = dict(row)
    vitals = record.get("vital_signs")
    if isinstance(vitals, str):
        try:
            record["vital_signs"] = json.loads(vitals)
        except ValueError:
            logger.warning("Unreadable vital signs on medical record %s", record.get("id"))
    return record


async def list_medical_records(client: SqlTableClient, patient_id: uuid.UUID | str) -> list[dict[str, Any]]:
    """Return all medical records for a patient, most recent first."""
    result = await (
        client.table("medical_records")
        .select()
        .eq("patient_id", patient_id)
        .order("record_date", desc=True)
        .order("created_at", desc=True)
        .execute()
    )
    if result.error:
        raise result.error
    return [_record_to_dict(row) for row in result.data or []]
