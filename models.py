from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from date_utils import utcnow, format_datetime_iso, expected_arrival
from status_helpers import STATUS_PENDING, get_need_status_display

db = SQLAlchemy()

# ---------- Role Constants ----------
ROLE_INDIVIDUAL = "individual"
ROLE_WORKER = "worker"
ROLE_ADMIN = "admin"

ALL_ROLES = [ROLE_INDIVIDUAL, ROLE_WORKER, ROLE_ADMIN]

# ---------- Enumerations ----------
NEED_TYPES = ("food", "shelter", "medical", "water", "other")
URGENCY_LEVELS = ("high", "medium", "low")

DISPATCH_DISPATCHED = "dispatched"
DISPATCH_REACHED = "reached"
DISPATCH_CANCELLED = "cancelled"
DISPATCH_STATUSES = (DISPATCH_DISPATCHED, DISPATCH_REACHED, DISPATCH_CANCELLED)

RESOURCE_STATUSES = ("available", "in-transit", "depleted")

# Largest value the integer quantity columns hold
MAX_QUANTITY = 2**31 - 1


organization_member = db.Table(
    "organization_member",
    db.Column("organization_id", db.Integer, db.ForeignKey("organization.id", ondelete="CASCADE"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("user.id", ondelete="CASCADE"), primary_key=True),
)


# ---------- Models ----------
class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(200), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_INDIVIDUAL)  # individual, worker, admin
    organization_id = db.Column(db.Integer, db.ForeignKey("organization.id", use_alter=True, name="fk_user_organization_id"), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    organization = db.relationship("Organization", foreign_keys=[organization_id])
    memberships = db.relationship("Organization", secondary=organization_member, back_populates="members")

    def set_password(self, password):
        """Hash and set the user's password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password against hash"""
        return check_password_hash(self.password_hash, password)

    @property
    def display_name(self):
        return self.name or self.email

    def has_role(self, role_code):
        return self.role == role_code

    def has_any_role(self, *role_codes):
        return self.role in role_codes

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "organizationId": self.organization_id,
            "createdAt": format_datetime_iso(self.created_at),
            "updatedAt": format_datetime_iso(self.updated_at),
        }

    def to_summary(self):
        return {"id": self.id, "email": self.email, "role": self.role}


class Organization(db.Model):
    """Relief organizations whose workers dispatch resources"""
    __tablename__ = "organization"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=False)
    contact_email = db.Column(db.String(200), unique=True, nullable=False)
    contact_phone = db.Column(db.String(50), nullable=True)
    address = db.Column(db.String(300), nullable=True)
    website = db.Column(db.String(300), nullable=True)
    admin_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    admin = db.relationship("User", foreign_keys=[admin_id])
    members = db.relationship("User", secondary=organization_member, order_by="User.id", back_populates="memberships")
    resources = db.relationship("Resource", back_populates="organization", cascade="all, delete-orphan")

    def is_member(self, user):
        return any(member.id == user.id for member in self.members)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "contactEmail": self.contact_email,
            "contactPhone": self.contact_phone,
            "address": self.address,
            "website": self.website,
            "admin": self.admin.to_summary() if self.admin else None,
            "members": [member.to_summary() for member in self.members],
            "createdAt": format_datetime_iso(self.created_at),
            "updatedAt": format_datetime_iso(self.updated_at),
        }


class Need(db.Model):
    """Relief requests reported by individuals, pinned to a location"""
    __tablename__ = "need"
    __table_args__ = (
        db.CheckConstraint("required_quantity >= 1", name="ck_need_required_quantity"),
        db.CheckConstraint("fulfilled_quantity >= 0", name="ck_need_fulfilled_quantity"),
        db.Index("idx_need_status_urgency", "status", "urgency"),
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False, index=True)  # food, shelter, medical, water, other
    description = db.Column(db.String(500), nullable=False)
    urgency = db.Column(db.String(10), nullable=False, default="medium")
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(30), nullable=False, default=STATUS_PENDING, index=True)
    required_quantity = db.Column(db.Integer, nullable=False, default=1)
    fulfilled_quantity = db.Column(db.Integer, nullable=False, default=0)
    created_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)

    # Set when an organization takes the need on in the stock workflow
    assigned_to_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=True)
    eta = db.Column(db.Integer, nullable=True)  # minutes

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    created_by = db.relationship("User", foreign_keys=[created_by_id])
    assigned_to = db.relationship("Organization", foreign_keys=[assigned_to_id])
    dispatches = db.relationship(
        "Dispatch",
        back_populates="need",
        order_by="Dispatch.id",
        cascade="all, delete-orphan"
    )

    def to_dict(self, include_dispatches=False):
        data = {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "urgency": self.urgency,
            "location": {"lat": self.latitude, "lng": self.longitude},
            "status": self.status,
            "statusDisplay": get_need_status_display(self).to_dict(),
            "requiredQuantity": self.required_quantity,
            "fulfilledQuantity": self.fulfilled_quantity,
            "createdBy": self.created_by.to_summary() if self.created_by else None,
            "assignedTo": self.assigned_to_id,
            "eta": self.eta,
            "dispatches": [dispatch.id for dispatch in self.dispatches],
            "createdAt": format_datetime_iso(self.created_at),
            "updatedAt": format_datetime_iso(self.updated_at),
        }
        if include_dispatches:
            data["dispatchDetails"] = [dispatch.to_dict() for dispatch in self.dispatches]
        return data

    def to_summary(self):
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "location": {"lat": self.latitude, "lng": self.longitude},
            "requiredQuantity": self.required_quantity,
            "createdBy": self.created_by.to_summary() if self.created_by else None,
        }


class Dispatch(db.Model):
    """Resources allocated to a need, tracked until they reach it"""
    __tablename__ = "dispatch"
    __table_args__ = (
        db.CheckConstraint("eta >= 1", name="ck_dispatch_eta"),
        db.CheckConstraint("resource_amount >= 1", name="ck_dispatch_resource_amount"),
    )

    id = db.Column(db.Integer, primary_key=True)
    need_id = db.Column(db.Integer, db.ForeignKey("need.id", ondelete="CASCADE"), nullable=False, index=True)
    eta = db.Column(db.Integer, nullable=False)  # minutes
    resource_amount = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=DISPATCH_DISPATCHED, index=True)
    dispatched_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    dispatched_by_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    need = db.relationship("Need", back_populates="dispatches")
    dispatched_by = db.relationship("User", foreign_keys=[dispatched_by_id])

    def to_dict(self, include_need=False):
        return {
            "id": self.id,
            "need": self.need.to_summary() if include_need and self.need else self.need_id,
            "eta": self.eta,
            "resourceAmount": self.resource_amount,
            "status": self.status,
            "dispatchedAt": format_datetime_iso(self.dispatched_at),
            "expectedArrivalAt": format_datetime_iso(expected_arrival(self.dispatched_at, self.eta)),
            "dispatchedBy": self.dispatched_by_id,
            "createdAt": format_datetime_iso(self.created_at),
            "updatedAt": format_datetime_iso(self.updated_at),
        }


class Stock(db.Model):
    """On-hand inventory per resource type, independent of any need"""
    __tablename__ = "stock"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), unique=True, nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "quantity": self.quantity,
            "createdAt": format_datetime_iso(self.created_at),
            "updatedAt": format_datetime_iso(self.updated_at),
        }


class Resource(db.Model):
    """Resources an organization holds in the field"""
    __tablename__ = "resource"

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="available")  # available, in-transit, depleted
    organization_id = db.Column(db.Integer, db.ForeignKey("organization.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    organization = db.relationship("Organization", back_populates="resources")

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "quantity": self.quantity,
            "location": {"lat": self.latitude, "lng": self.longitude},
            "status": self.status,
            "organization": {"id": self.organization.id, "name": self.organization.name} if self.organization else None,
            "createdAt": format_datetime_iso(self.created_at),
            "updatedAt": format_datetime_iso(self.updated_at),
        }
