import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, String, Date, DateTime, Uuid

from carebase.db.postgres import Base


class StaffStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on-leave"


class Staff(Base):
    __tablename__ = "staff"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False, index=True)        # "Doctor", "Nurse", ...
    department = Column(String, nullable=False, index=True)  # "Cardiology", ...
    email = Column(String, unique=True, nullable=False)
    phone = Column(String, nullable=True)
    joining_date = Column(Date, nullable=True)
    # Stored as the raw value so "on-leave" survives round trips
    status = Column(String, nullable=False, default=StaffStatus.ACTIVE.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
