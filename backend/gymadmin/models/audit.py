from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class AuditLog(db.Model):
    """
    One row per permitted, executed and answered operation.

    request_data / response_data hold sanitized snapshots only: credential
    material never reaches this table.

    IMMUTABLE: Never update or delete.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_branch_timestamp", "branch_id", "timestamp"),
        db.Index("ix_audit_logs_action", "action"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.String(64), nullable=False, index=True)
    user_email = db.Column(db.String(255), nullable=False)

    action = db.Column(db.String(64), nullable=False)
    resource_type = db.Column(db.String(64), nullable=False)
    resource_id = db.Column(db.String(64), nullable=True)
    branch_id = db.Column(db.String(36), nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)
    success = db.Column(db.Boolean, nullable=False, default=True)
    status_code = db.Column(db.Integer, nullable=True)
    error_message = db.Column(db.Text, nullable=True)

    request_data = db.Column(db.JSON, nullable=True)
    response_data = db.Column(db.JSON, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_email": self.user_email,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "branch_id": self.branch_id,
            "ip_address": self.ip_address,
            "timestamp": to_utc_z(self.timestamp),
            "success": self.success,
            "status_code": self.status_code,
            "request_data": self.request_data,
            "response_data": self.response_data,
        }
