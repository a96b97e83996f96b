from carebase.models.patient import Patient
from carebase.models.medical_record import MedicalRecord
from carebase.models.staff import Staff, StaffStatus
from carebase.models.audit_log import AuditLog

__all__ = [
    "Patient",
    "MedicalRecord",
    "Staff",
    "StaffStatus",
    "AuditLog",
]
