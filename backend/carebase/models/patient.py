import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Date, JSON, Uuid

from carebase.db.postgres import Base

BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Required demographics
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, index=True)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String, nullable=False)
    address = Column(String, nullable=False)
    phone = Column(String, nullable=False, index=True)
    email = Column(String, nullable=False)

    # Optional demographics
    marital_status = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)

    # Medical history
    blood_type = Column(String, nullable=True)  # NULL when unknown
    allergies = Column(JSON, nullable=True)      # ["penicillin", "latex"]; NULL unless declared
    current_medications = Column(String, nullable=True)
    past_surgeries = Column(String, nullable=True)
    chronic_conditions = Column(String, nullable=True)

    # Emergency contact
    emergency_contact_name = Column(String, nullable=True)
    emergency_contact_relationship = Column(String, nullable=True)
    emergency_contact_phone = Column(String, nullable=True)

    # Insurance: all five set or all NULL
    insurance_provider = Column(String, nullable=True)
    insurance_id = Column(String, nullable=True)
    insurance_group_number = Column(String, nullable=True)
    policy_holder_name = Column(String, nullable=True)
    relationship_to_patient = Column(String, nullable=True)

    status = Column(String, nullable=False, default="Admitted")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
