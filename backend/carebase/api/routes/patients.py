"""
Patient API routes.

Endpoints:
    GET    /patients         — List patients with optional search/status filter
    POST   /patients         — Register a patient (also seeds an initial medical record)
    GET    /patients/{id}    — Get patient by ID
    PUT    /patients/{id}    — Replace a patient's details
    DELETE /patients/{id}    — Delete a patient
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from pydantic import BaseModel

from carebase.api.middleware.audit import log_audit
from carebase.db.client import SqlTableClient
from carebase.db.postgres import get_db_client
from carebase.services import patient_service
from carebase.services.patient_mapping import Patient, PatientFormValues, map_db_patient_to_patient
from carebase.services.patient_service import PatientOperationResult, SeedRecordStatus

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class ErrorBody(BaseModel):
    message: str
    code: Optional[str] = None
    details: Optional[str] = None


class SeedRecordBody(BaseModel):
    status: SeedRecordStatus
    record: Optional[dict[str, Any]] = None
    reason: Optional[str] = None


class PatientOperationResponse(BaseModel):
    success: bool
    data: Optional[list[Patient]] = None
    error: Optional[ErrorBody] = None
    seed_record: Optional[SeedRecordBody] = None


class PatientUpdateRequest(Patient):
    # The path parameter is authoritative
    id: Optional[UUID] = None


class PatientListResponse(BaseModel):
    items: list[Patient]
    total_count: int
    page: int
    page_size: int


def _to_response(result: PatientOperationResult) -> PatientOperationResponse:
    seed = result.seed_record
    return PatientOperationResponse(
        success=result.success,
        data=[map_db_patient_to_patient(row) for row in result.data] if result.data is not None else None,
        error=ErrorBody(**result.error.to_dict()) if result.error else None,
        seed_record=SeedRecordBody(status=seed.status, record=seed.record, reason=seed.reason) if seed else None,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/patients", response_model=PatientListResponse)
async def list_patients(
    search: Optional[str] = Query(None, description="Search by name, email or phone"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by patient status"),
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    client: SqlTableClient = Depends(get_db_client),
):
    result = await patient_service.list_patients(
        client,
        search=search,
        status=status_filter,
        page=page,
        page_size=page_size,
    )
    return PatientListResponse(
        items=result.items,
        total_count=result.total_count,
        page=page,
        page_size=page_size,
    )


@router.post("/patients", response_model=PatientOperationResponse, status_code=status.HTTP_201_CREATED)
async def register_patient(
    payload: PatientFormValues,
    request: Request,
    response: Response,
    client: SqlTableClient = Depends(get_db_client),
):
    """Register a new patient.

    The response is 201 even when the initial medical record could not be
    written; ``seed_record`` says what happened to it.
    """
    result = await patient_service.create_patient(client, payload)
    if not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return _to_response(result)

    patient_id = result.data[0]["id"] if result.data else None
    await log_audit(
        client,
        action="create",
        resource="patient",
        resource_id=patient_id,
        details=f"Patient registered (initial record: {result.seed_record.status.value})",
        request=request,
    )
    return _to_response(result)


@router.get("/patients/{patient_id}", response_model=Patient)
async def get_patient(
    patient_id: UUID,
    request: Request,
    client: SqlTableClient = Depends(get_db_client),
):
    patient = await patient_service.get_patient(client, patient_id)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )

    await log_audit(
        client,
        action="read",
        resource="patient",
        resource_id=patient_id,
        details="Patient record accessed",
        request=request,
    )
    return patient


@router.put("/patients/{patient_id}", response_model=PatientOperationResponse)
async def update_patient(
    patient_id: UUID,
    payload: PatientUpdateRequest,
    request: Request,
    response: Response,
    client: SqlTableClient = Depends(get_db_client),
):
    patient = Patient(**payload.model_dump(exclude={"id"}), id=patient_id)
    result = await patient_service.update_patient(client, patient)
    if not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return _to_response(result)
    if not result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )

    await log_audit(
        client,
        action="update",
        resource="patient",
        resource_id=patient_id,
        details="Patient details updated",
        request=request,
    )
    return _to_response(result)


@router.delete("/patients/{patient_id}", response_model=PatientOperationResponse)
async def delete_patient(
    patient_id: UUID,
    request: Request,
    response: Response,
    client: SqlTableClient = Depends(get_db_client),
):
    result = await patient_service.delete_patient(client, patient_id)
    if not result.success:
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return _to_response(result)

    await log_audit(
        client,
        action="delete",
        resource="patient",
        resource_id=patient_id,
        details="Patient deleted",
        request=request,
    )
    return _to_response(result)
