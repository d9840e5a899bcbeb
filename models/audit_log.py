from sqlalchemy import Column, BigInteger, String, Enum, DateTime, Index
from sqlalchemy.dialects.postgresql import JSONB
from datetime import datetime
from models.base import Base, AuditAction

IP_MAX_LENGTH = 64
UA_MAX_LENGTH = 512


class AuditLog(Base):
    """
    Audit trail of ETL runs.

    Purpose:
    - One row per run start, success and failure
    - meta carries the run id, durations and per-source results
    - Runs themselves are not persisted; this table is their only record
    """
    __tablename__ = "audit_log"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    actor_id = Column(String(100), nullable=False, default="system")
    action = Column(
        Enum(AuditAction, name="audit_action", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True
    )
    target = Column(String(100), nullable=True)

    # Request metadata; AuditService truncates values to these lengths
    ip = Column(String(IP_MAX_LENGTH), nullable=True)
    ua = Column(String(UA_MAX_LENGTH), nullable=True)

    meta = Column(JSONB, nullable=True)
    at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("idx_audit_log_action_at", "action", "at"),
    )
