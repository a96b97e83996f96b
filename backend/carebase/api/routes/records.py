"""
Medical Records API routes.

Endpoints:
    GET  /patients/{id}/records  — Get medical records for a patient
"""

from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from carebase.api.middleware.audit import log_audit
from carebase.db.client import SqlTableClient
from carebase.db.postgres import get_db_client
from carebase.services import patient_service

router = APIRouter()


class MedicalRecordResponse(BaseModel):
    id: UUID
    patient_id: UUID
    staff_id: UUID
    record_date: date
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    notes: Optional[str] = None
    vital_signs: Optional[Any] = None
    created_at: Optional[datetime] = None


class MedicalRecordListResponse(BaseModel):
    records: list[MedicalRecordResponse]
    total: int


@router.get("/patients/{patient_id}/records", response_model=MedicalRecordListResponse)
async def get_patient_records(
    patient_id: UUID,
    request: Request,
    client: SqlTableClient = Depends(get_db_client),
):
    # Verify patient exists
    patient = await patient_service.get_patient(client, patient_id)
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )

    records = await patient_service.list_medical_records(client, patient_id)

    await log_audit(
        client,
        action="read",
        resource="medical_record",
        resource_id=patient_id,
        details=f"Accessed {len(records)} medical records for patient",
        request=request,
    )

    return MedicalRecordListResponse(
        records=[MedicalRecordResponse.model_validate(r) for r in records],
        total=len(records),
    )
