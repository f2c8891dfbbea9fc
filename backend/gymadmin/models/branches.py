from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ._ids import new_id


class Branch(db.Model):
    """
    A gym location. Staff and staff sessions are scoped to exactly one branch.
    """
    __tablename__ = "branches"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(128), nullable=False)
    address = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Package(db.Model):
    """
    Membership package. Read-only here: only used to enrich financial audit records.
    """
    __tablename__ = "packages"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(128), nullable=False)
    type = db.Column(db.String(32), nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    duration_months = db.Column(db.Integer, nullable=False, default=1)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_audit_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "price": float(self.price) if self.price is not None else None,
        }
