from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ._ids import new_id


class BranchStaff(db.Model):
    """
    Staff credential record.

    pin_hash is a bcrypt hash of the 4-digit PIN. NULL means the staff member
    still has a legacy PIN that was never hashed: the PIN must be reset before
    it can be used for step-up checks. pin_hash is never serialized.
    """
    __tablename__ = "branch_staff"
    __table_args__ = (
        db.Index("ix_branch_staff_branch", "branch_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    branch_id = db.Column(db.String(36), db.ForeignKey("branches.id"), nullable=False)

    first_name = db.Column(db.String(64), nullable=False)
    last_name = db.Column(db.String(64), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)

    role = db.Column(db.String(32), nullable=False, default="associate")
    pin_hash = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_active = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    branch = db.relationship("Branch", backref=db.backref("staff", lazy=True))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "has_pin": self.pin_hash is not None,
            "is_active": self.is_active,
            "last_active": to_utc_z(self.last_active),
        }


class UserProfile(db.Model):
    """
    Profile row for a hosted-platform account, keyed by the platform user id.
    Supplies the role of bearer-token principals.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    auth_user_id = db.Column(db.String(64), nullable=True, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(64), nullable=True)
    last_name = db.Column(db.String(64), nullable=True)
    role = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "auth_user_id": self.auth_user_id,
            "email": self.email,
            "role": self.role,
        }


class StaffSession(db.Model):
    """
    Branch session issued after a staff PIN login.

    The plaintext token is only ever returned to the client; the table stores
    its SHA-256 digest. branch_id is captured at creation and is the branch
    every request made with this session is scoped to.
    """
    __tablename__ = "staff_sessions"
    __table_args__ = (
        db.Index("ix_staff_sessions_expires", "expires_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    staff_id = db.Column(db.String(36), db.ForeignKey("branch_staff.id"), nullable=False, index=True)
    branch_id = db.Column(db.String(36), db.ForeignKey("branches.id"), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(512), nullable=True)

    staff = db.relationship("BranchStaff", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "staff_id": self.staff_id,
            "branch_id": self.branch_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
        }
