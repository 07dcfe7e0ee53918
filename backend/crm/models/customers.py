from __future__ import annotations

from ..extensions import db
from crm.time_utils import to_utc_z


class Customer(db.Model):
    """
    Customer master data.

    MULTI-TENANT: Customers are scoped to a store; phone is the store-level
    natural key (walk-in customers are looked up by phone at the counter).

    customer_value drives approvals: edits to HIGH_VALUE customers are
    deferred to a business admin.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("store_id", "phone", name="uq_customers_store_phone"),
        db.Index("ix_customers_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    floor_id = db.Column(db.Integer, db.ForeignKey("floors.id"), nullable=True, index=True)
    assigned_to_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(64), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    pincode = db.Column(db.String(16), nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="ACTIVE")
    customer_value = db.Column(db.String(16), nullable=False, default="REGULAR")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    store = db.relationship("Store", backref=db.backref("customers", lazy=True))
    floor = db.relationship("Floor", backref=db.backref("customers", lazy=True))
    assigned_to = db.relationship("User", foreign_keys=[assigned_to_id])
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "floor_id": self.floor_id,
            "assigned_to_id": self.assigned_to_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "gender": self.gender,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "status": self.status,
            "customer_value": self.customer_value,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
