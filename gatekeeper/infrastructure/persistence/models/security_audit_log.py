"""Security audit log database model.

CRITICAL: This table is APPEND-ONLY. The repository exposes no update or
delete operations; rows are an event stream for forensics and anomaly
detection.
"""

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gatekeeper.infrastructure.persistence.base import BaseModel


class SecurityAuditLogModel(BaseModel):
    """Audit event row - IMMUTABLE (never updated or deleted).

    Fields:
        id / created_at: From BaseModel (created_at is the event time)
        user_id: Acting user, NULL for pre-authentication events
        action: SecurityAction value
        resource: Affected resource kind
        ip_address / user_agent / device_fingerprint: Client context
        details: JSON text object, written and read through
            ``serialization.dump_details`` / ``load_details`` only
        success: Outcome of the audited action

    Indexes:
        - ix_security_audit_user_created: (user_id, created_at) for the
          recent-events queries behind suspicious activity detection
    """

    __tablename__ = "security_audit_logs"
    __table_args__ = (
        Index("ix_security_audit_user_created", "user_id", "created_at"),
    )

    # Rows outlive the user (SET NULL)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    action: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    resource: Mapped[str | None] = mapped_column(String(100), nullable=True)

    ip_address: Mapped[str | None] = mapped_column(
        String(45),  # IPv6 max length
        nullable=True,
    )

    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)

    device_fingerprint: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )

    details: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="{}",
    )

    success: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
