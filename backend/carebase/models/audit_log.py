import uuid
from datetime import datetime

from sqlalchemy import Column, String, DateTime, Uuid

from carebase.db.postgres import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action = Column(String, nullable=False)  # "read", "create", "update", "delete"
    resource = Column(String, nullable=False)  # "patient", "medical_record", "staff"
    resource_id = Column(String, nullable=True)
    details = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
