"""
Patient mapping — form values and domain objects to ``patients`` /
``medical_records`` rows and back.

Optional text fields arrive from the registration form as empty strings and
are stored as NULL.  Two groups are gated by flags and are never stored
half-filled:

* ``allergies`` is only kept when ``hasAllergies`` is set;
* the five insurance columns are only kept when ``hasInsurance`` is set.
"""

from __future__ import annotations

import json
import uuid
from datetime import date, datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from carebase.models.patient import BLOOD_TYPES

UNKNOWN_BLOOD_TYPE = "unknown"

INSURANCE_COLUMNS = (
    "insurance_provider",
    "insurance_id",
    "insurance_group_number",
    "policy_holder_name",
    "relationship_to_patient",
)

SEED_VITAL_SIGNS = {"recorded": False, "note": "Vitals not recorded at registration"}


def _check_blood_type(v: Optional[str]) -> Optional[str]:
    if v in (None, "", UNKNOWN_BLOOD_TYPE) or v in BLOOD_TYPES:
        return v
    raise ValueError(f"blood type must be one of {', '.join(BLOOD_TYPES)} or '{UNKNOWN_BLOOD_TYPE}'")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PatientFormValues(_CamelModel):
    """Validated registration form payload."""

    # Required
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str
    address: str
    phone: str
    email: str

    # Optional demographics
    marital_status: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    # Medical history
    blood_type: Optional[str] = None
    has_allergies: bool = False
    allergies: list[str] = []
    current_medications: Optional[str] = None
    past_surgeries: Optional[str] = None
    chronic_conditions: Optional[str] = None

    # Emergency contact
    contact_name: Optional[str] = None
    relationship: Optional[str] = None
    contact_phone: Optional[str] = None

    # Insurance
    has_insurance: bool = False
    insurance_provider: Optional[str] = None
    insurance_id: Optional[str] = None
    group_number: Optional[str] = None
    policy_holder_name: Optional[str] = None
    relationship_to_patient: Optional[str] = None

    status: Optional[str] = None

    @field_validator("blood_type")
    @classmethod
    def check_blood_type(cls, v):
        return _check_blood_type(v)

    @field_validator("allergies", mode="before")
    @classmethod
    def split_allergies(cls, v):
        # Free-text input: "penicillin, latex"
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        if v is None:
            return []
        return v

    @model_validator(mode="after")
    def check_insurance_complete(self):
        if self.has_insurance:
            missing = [
                name
                for name in (
                    "insurance_provider",
                    "insurance_id",
                    "group_number",
                    "policy_holder_name",
                    "relationship_to_patient",
                )
                if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"insurance details incomplete: {', '.join(missing)}")
        return self


class InsuranceInfo(_CamelModel):
    provider: str
    insurance_id: str
    group_number: str
    policy_holder_name: str
    relationship_to_patient: str

    @model_validator(mode="after")
    def check_complete(self):
        # All five or no insurance object at all
        blank = [name for name, value in self if not value.strip()]
        if blank:
            raise ValueError(f"insurance details incomplete: {', '.join(blank)}")
        return self


class Patient(_CamelModel):
    """Patient as the rest of the application sees it."""

    id: uuid.UUID
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str
    address: str
    phone: str
    email: str
    marital_status: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[list[str]] = None
    current_medications: Optional[str] = None
    past_surgeries: Optional[str] = None
    chronic_conditions: Optional[str] = None
    contact_name: Optional[str] = None
    relationship: Optional[str] = None
    contact_phone: Optional[str] = None
    insurance: Optional[InsuranceInfo] = None
    status: str = "Admitted"
    created_at: Optional[datetime] = None

    @field_validator("blood_type")
    @classmethod
    def normalise_blood_type(cls, v):
        v = _check_blood_type(v)
        return None if v in ("", UNKNOWN_BLOOD_TYPE) else v


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    return value or None


def map_form_to_db_patient(form: PatientFormValues, default_status: str = "Admitted") -> dict[str, Any]:
    """Translate registration form values into a ``patients`` row."""
    insured = form.has_insurance
    return {
        # Required
        "first_name": form.first_name,
        "last_name": form.last_name,
        "date_of_birth": form.date_of_birth,
        "gender": form.gender,
        "address": form.address,
        "phone": form.phone,
        "email": form.email,
        # Optional
        "marital_status": _blank_to_none(form.marital_status),
        "city": _blank_to_none(form.city),
        "state": _blank_to_none(form.state),
        "zip_code": _blank_to_none(form.zip_code),
        "blood_type": None if form.blood_type == UNKNOWN_BLOOD_TYPE else _blank_to_none(form.blood_type),
        "allergies": list(form.allergies) if form.has_allergies else None,
        "current_medications": _blank_to_none(form.current_medications),
        "past_surgeries": _blank_to_none(form.past_surgeries),
        "chronic_conditions": _blank_to_none(form.chronic_conditions),
        # Emergency contact
        "emergency_contact_name": _blank_to_none(form.contact_name),
        "emergency_contact_relationship": _blank_to_none(form.relationship),
        "emergency_contact_phone": _blank_to_none(form.contact_phone),
        # Insurance
        "insurance_provider": form.insurance_provider if insured else None,
        "insurance_id": form.insurance_id if insured else None,
        "insurance_group_number": form.group_number if insured else None,
        "policy_holder_name": form.policy_holder_name if insured else None,
        "relationship_to_patient": form.relationship_to_patient if insured else None,
        "status": form.status or default_status,
    }


def map_patient_to_db_patient(patient: Patient) -> dict[str, Any]:
    """Column values for an update; the primary key is left out."""
    insurance = patient.insurance
    return {
        "first_name": patient.first_name,
        "last_name": patient.last_name,
        "date_of_birth": patient.date_of_birth,
        "gender": patient.gender,
        "address": patient.address,
        "phone": patient.phone,
        "email": patient.email,
        "marital_status": _blank_to_none(patient.marital_status),
        "city": _blank_to_none(patient.city),
        "state": _blank_to_none(patient.state),
        "zip_code": _blank_to_none(patient.zip_code),
        "blood_type": _blank_to_none(patient.blood_type),
        "allergies": patient.allergies,
        "current_medications": _blank_to_none(patient.current_medications),
        "past_surgeries": _blank_to_none(patient.past_surgeries),
        "chronic_conditions": _blank_to_none(patient.chronic_conditions),
        "emergency_contact_name": _blank_to_none(patient.contact_name),
        "emergency_contact_relationship": _blank_to_none(patient.relationship),
        "emergency_contact_phone": _blank_to_none(patient.contact_phone),
        "insurance_provider": insurance.provider if insurance else None,
        "insurance_id": insurance.insurance_id if insurance else None,
        "insurance_group_number": insurance.group_number if insurance else None,
        "policy_holder_name": insurance.policy_holder_name if insurance else None,
        "relationship_to_patient": insurance.relationship_to_patient if insurance else None,
        "status": patient.status,
    }


def map_db_patient_to_patient(row: dict[str, Any]) -> Patient:
    insurance = None
    if all(row.get(column) for column in INSURANCE_COLUMNS):
        insurance = InsuranceInfo(
            provider=row.get("insurance_provider"),
            insurance_id=row.get("insurance_id"),
            group_number=row.get("insurance_group_number"),
            policy_holder_name=row.get("policy_holder_name"),
            relationship_to_patient=row.get("relationship_to_patient"),
        )
    return Patient(
        id=row["id"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        date_of_birth=row["date_of_birth"],
        gender=row["gender"],
        address=row["address"],
        phone=row["phone"],
        email=row["email"],
        marital_status=row.get("marital_status"),
        city=row.get("city"),
        state=row.get("state"),
        zip_code=row.get("zip_code"),
        blood_type=row.get("blood_type"),
        allergies=row.get("allergies"),
        current_medications=row.get("current_medications"),
        past_surgeries=row.get("past_surgeries"),
        chronic_conditions=row.get("chronic_conditions"),
        contact_name=row.get("emergency_contact_name"),
        relationship=row.get("emergency_contact_relationship"),
        contact_phone=row.get("emergency_contact_phone"),
        insurance=insurance,
        status=row.get("status") or "Admitted",
        created_at=row.get("created_at"),
    )


def build_seed_medical_record(
    form: PatientFormValues,
    patient_id: uuid.UUID | str,
    staff_id: uuid.UUID | str,
    record_date: date,
) -> dict[str, Any]:
    """The placeholder medical record written alongside a new patient."""
    if form.has_allergies and form.allergies:
        allergy_note = f"Allergies: {', '.join(form.allergies)}"
    else:
        allergy_note = "No known allergies"

    return {
        "patient_id": patient_id,
        "staff_id": staff_id,
        "record_date": record_date,
        "diagnosis": (
            f"Initial diagnosis: {form.chronic_conditions}"
            if form.chronic_conditions
            else "Initial patient registration"
        ),
        "treatment": (
            f"Current medications: {form.current_medications}"
            if form.current_medications
            else "No treatment prescribed at registration"
        ),
        "notes": f"Initial medical record created at patient registration. {allergy_note}",
        "vital_signs": json.dumps(SEED_VITAL_SIGNS),
    }
