"""
AARAA ERP – Domain Models

- Profile: employee master record (reference data, login identity)
- Submission: uploaded artifact or manual claim plus its approval lifecycle
- Project: one record produced by the project creation wizard (append-only)
- BOQItem / BOQUnit: bill-of-quantities master lists
- WizardDraft / Notification: per-employee state that lives for one login session
- AuditLog: who changed what, with before/after snapshots

IMPORTANT:
- Submission status only moves forward (see SUBMISSION_TRANSITIONS).
- Project codes are validated by the wizard before persistence is attempted.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from flask_login import UserMixin

from .extensions import db


# ---------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------
class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class SubmissionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"


class SubmissionType(str, enum.Enum):
    BILL = "BILL"
    SITE_PHOTO = "SITE_PHOTO"
    PETTY_CASH = "PETTY_CASH"


# Allowed forward moves. APPROVED / REJECTED are terminal.
SUBMISSION_TRANSITIONS = {
    SubmissionStatus.PENDING: {
        SubmissionStatus.APPROVED,
        SubmissionStatus.REJECTED,
        SubmissionStatus.ESCALATED,
    },
    SubmissionStatus.ESCALATED: {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED},
    SubmissionStatus.APPROVED: set(),
    SubmissionStatus.REJECTED: set(),
}


def _new_submission_id() -> str:
    return f"SUB-{uuid.uuid4().hex[:12].upper()}"


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------
class Profile(UserMixin, db.Model):
    """Employee master record. Looked up at login, never mutated through the API."""

    __tablename__ = "profiles"

    id = db.Column(db.String(50), primary_key=True)

    name = db.Column(db.String(150), nullable=False)
    designation = db.Column(db.String(150), nullable=True)
    department = db.Column(db.String(150), nullable=True, index=True)

    role = db.Column(db.String(20), nullable=False, default=UserRole.USER.value, index=True)
    dashboard = db.Column(db.String(120), nullable=True)

    @property
    def role_enum(self) -> UserRole:
        return UserRole(self.role)

    def has_role(self, roles) -> bool:
        return self.role_enum in roles

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "designation": self.designation,
            "department": self.department,
            "role": self.role,
            "dashboard": self.dashboard,
        }

    def __repr__(self):
        return f"<Profile {self.id} {self.name}>"


# ---------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------
class Submission(db.Model):
    __tablename__ = "submissions"

    id = db.Column(db.String(40), primary_key=True, default=_new_submission_id)

    employee_id = db.Column(
        db.String(50),
        db.ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    employee_name = db.Column(db.String(150), nullable=False)

    type = db.Column(db.String(20), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=True)
    url = db.Column(db.String(1024), nullable=True)

    status = db.Column(db.String(20), nullable=False, default=SubmissionStatus.PENDING.value, index=True)
    department = db.Column(db.String(150), nullable=True, index=True)

    decision_reason = db.Column(db.Text, nullable=True)
    decided_by = db.Column(db.String(50), nullable=True)
    decided_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    employee = db.relationship("Profile", backref=db.backref("submissions", lazy=True))

    @property
    def status_enum(self) -> SubmissionStatus:
        return SubmissionStatus(self.status)

    def can_transition_to(self, target: SubmissionStatus) -> bool:
        return target in SUBMISSION_TRANSITIONS[self.status_enum]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "type": self.type,
            "title": self.title,
            "amount": float(self.amount) if self.amount is not None else None,
            "url": self.url,
            "status": self.status,
            "department": self.department,
            "decision_reason": self.decision_reason,
            "decided_by": self.decided_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ---------------------------------------------------------------------
# BOQ master data
# ---------------------------------------------------------------------
class BOQUnit(db.Model):
    __tablename__ = "boq_units"

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)
    unit_name = db.Column(db.String(50), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"id": self.id, "unit_name": self.unit_name}


class BOQItem(db.Model):
    __tablename__ = "boq_items"

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)
    item_name = db.Column(db.String(255), nullable=False, index=True)
    unit = db.Column(db.String(50), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"id": self.id, "item_name": self.item_name, "unit": self.unit}


# ---------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------
class Project(db.Model):
    """Project record created once by the wizard. No edit flow."""

    __tablename__ = "projects"

    id = db.Column(db.String(36), primary_key=True, default=_new_uuid)

    # Identity
    project_code = db.Column(db.String(50), nullable=False, unique=True, index=True)
    project_name = db.Column(db.String(255), nullable=False)
    project_type = db.Column(db.String(80))
    project_category = db.Column(db.String(80))
    project_status = db.Column(db.String(50), index=True)

    # Client
    client_name = db.Column(db.String(255))
    client_org = db.Column(db.String(255))
    client_contact = db.Column(db.String(150))
    client_mobile = db.Column(db.String(30))
    client_email = db.Column(db.String(255))
    contract_type = db.Column(db.String(80))

    # Site
    site_address = db.Column(db.Text)
    city = db.Column(db.String(120))
    state = db.Column(db.String(120))
    pincode = db.Column(db.String(12))
    latitude = db.Column(db.Float, default=0)
    longitude = db.Column(db.Float, default=0)

    # Team (foreign keys to profiles)
    project_manager_id = db.Column(db.String(50), db.ForeignKey("profiles.id", ondelete="SET NULL"), index=True)
    qs_engineer_id = db.Column(db.String(50), db.ForeignKey("profiles.id", ondelete="SET NULL"))
    safety_officer_id = db.Column(db.String(50), db.ForeignKey("profiles.id", ondelete="SET NULL"))
    reporting_manager_id = db.Column(db.String(50), db.ForeignKey("profiles.id", ondelete="SET NULL"))
    site_engineers_ids = db.Column(db.JSON, default=list)

    # Timeline
    start_date = db.Column(db.String(20))
    completion_date = db.Column(db.String(20))
    actual_completion_date = db.Column(db.String(20))
    defect_liability_period = db.Column(db.Integer, default=0)

    # Commercial
    agreement_value = db.Column(db.Float, default=0)
    estimated_cost = db.Column(db.Float, default=0)
    approved_budget = db.Column(db.Float, default=0)
    retention_percentage = db.Column(db.Float, default=0)
    gst_applicable = db.Column(db.Boolean, default=True)
    payment_terms = db.Column(db.String(50))

    # Scope
    boq_attached = db.Column(db.Boolean, default=True)
    boq_version = db.Column(db.String(20))
    scope_summary = db.Column(db.Text)
    exclusions = db.Column(db.Text)
    work_order_number = db.Column(db.String(80))
    work_order_date = db.Column(db.String(20))
    boq_json = db.Column(db.JSON, default=list)

    # Settings
    project_visibility = db.Column(db.String(50))
    approval_flow = db.Column(db.String(50))
    notifications_enabled = db.Column(db.Boolean, default=True)

    created_by = db.Column(db.String(50), db.ForeignKey("profiles.id", ondelete="SET NULL"), index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    project_manager = db.relationship("Profile", foreign_keys=[project_manager_id])

    def to_dict(self) -> dict:
        data = {column.name: getattr(self, column.name) for column in self.__table__.columns}
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


# ---------------------------------------------------------------------
# Session-scoped state
# ---------------------------------------------------------------------
class WizardDraft(db.Model):
    """In-progress project wizard, one per employee. Deleted at login and logout."""

    __tablename__ = "wizard_drafts"

    employee_id = db.Column(db.String(50), db.ForeignKey("profiles.id", ondelete="CASCADE"), primary_key=True)
    state = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(
        db.String(50),
        db.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = db.Column(db.String(150), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(10), nullable=False, default="INFO")
    read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "read": self.read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Audit trail for state-changing actions."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    employee_id = db.Column(db.String(50), nullable=True, index=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.String(50), nullable=False, index=True)

    action = db.Column(db.String(20), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
