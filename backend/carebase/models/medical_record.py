import uuid
from datetime import datetime

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Text, Uuid

from carebase.db.postgres import Base


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_id = Column(Uuid, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    staff_id = Column(Uuid, ForeignKey("staff.id"), nullable=False, index=True)
    record_date = Column(Date, nullable=False)
    diagnosis = Column(Text, nullable=True)
    treatment = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    vital_signs = Column(String, nullable=True)  # serialized JSON document
    created_at = Column(DateTime, default=datetime.utcnow)
