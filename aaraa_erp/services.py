"""
aaraa_erp/services.py

Database operations shared by routes, the CLI and the upload pipeline.

Every function takes the acting employee explicitly and commits its own
transaction (audit entry included). Failures roll the session back and re-raise.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .audit import log_action, serialize_model
from .errors import AuthenticationError, InvalidTransition, NotFound, ValidationError
from .extensions import db
from .models import (
    BOQItem,
    BOQUnit,
    Profile,
    Project,
    Submission,
    SubmissionStatus,
    SubmissionType,
    WizardDraft,
)
from .wizard import WizardState

NOT_FOUND_MESSAGE = "Employee ID not found in master records."
REJECTION_REASON_REQUIRED = "Rejection requires a valid reason."


# ---------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------
def find_employee(employee_id: str) -> Profile:
    """Case-insensitive exact lookup in the profile master table."""
    clean_id = (employee_id or "").strip()
    if not clean_id:
        raise AuthenticationError(NOT_FOUND_MESSAGE)

    profile = Profile.query.filter(func.lower(Profile.id) == clean_id.lower()).one_or_none()
    if profile is None:
        raise AuthenticationError(NOT_FOUND_MESSAGE)
    return profile


def list_employees() -> List[Profile]:
    return Profile.query.order_by(Profile.name.asc()).all()


# ---------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------
def _parse_amount(value) -> Optional[Decimal]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number.")


def record_submission(
    *,
    employee: Profile,
    url: Optional[str],
    type: SubmissionType | str,
    title: str,
    status: SubmissionStatus | str = SubmissionStatus.PENDING,
    department: Optional[str] = None,
    amount=None,
) -> Submission:
    """Insert one Submission row for the employee."""
    try:
        submission_type = SubmissionType(type)
    except ValueError:
        raise ValidationError(f"Unknown submission type: {type}")

    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required.")

    submission = Submission(
        employee_id=employee.id,
        employee_name=employee.name,
        type=submission_type.value,
        title=title,
        amount=_parse_amount(amount),
        url=url,
        status=SubmissionStatus(status).value,
        department=department or employee.department or "General",
    )
    try:
        db.session.add(submission)
        db.session.flush()
        log_action(submission, "CREATE", actor=employee, after=serialize_model(submission))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return submission


def submissions_for(employee_id: Optional[str] = None, department: Optional[str] = None) -> List[Submission]:
    q = Submission.query
    if employee_id:
        q = q.filter(Submission.employee_id == employee_id)
    if department:
        q = q.filter(Submission.department == department)
    return q.order_by(Submission.created_at.desc()).all()


def vault_assets(bucket_name: str) -> List[Submission]:
    """Submissions whose artifact lives in the bucket."""
    prefix = f"https://storage.googleapis.com/{bucket_name}/"
    return (
        Submission.query.filter(Submission.url.like(f"{prefix}%"))
        .order_by(Submission.created_at.desc())
        .all()
    )


# ---------------------------------------------------------------------
# Approvals
# ---------------------------------------------------------------------
def _approval_queue(department: Optional[str] = None):
    """PENDING and ESCALATED items, optionally narrowed to one department."""
    q = Submission.query.filter(
        Submission.status.in_([SubmissionStatus.PENDING.value, SubmissionStatus.ESCALATED.value])
    )
    if department:
        q = q.filter(Submission.department == department)
    return q


def pending_approvals(department: Optional[str] = None) -> List[Submission]:
    return _approval_queue(department).order_by(Submission.created_at.desc()).all()


def count_pending_approvals(department: Optional[str] = None) -> int:
    return _approval_queue(department).count()


def decide_submission(
    submission_id: str,
    target: SubmissionStatus,
    *,
    approver: Profile,
    reason: Optional[str] = None,
) -> Submission:
    """Apply an approver action. Statuses only move forward."""
    reason = (reason or "").strip() or None
    if target == SubmissionStatus.REJECTED and not reason:
        raise ValidationError(REJECTION_REASON_REQUIRED)
    if target == SubmissionStatus.PENDING:
        raise InvalidTransition("Submissions cannot be returned to PENDING.")

    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise NotFound(f"Submission {submission_id} not found.")

    if not submission.can_transition_to(target):
        raise InvalidTransition(
            f"Submission {submission_id} is {submission.status} and cannot be {target.value.lower()}."
        )

    before = serialize_model(submission)
    submission.status = target.value
    submission.decision_reason = reason
    submission.decided_by = approver.id
    submission.decided_at = datetime.utcnow()
    try:
        log_action(submission, target.value, actor=approver, before=before, after=serialize_model(submission))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return submission


# ---------------------------------------------------------------------
# BOQ master data
# ---------------------------------------------------------------------
def list_boq_items() -> List[BOQItem]:
    return BOQItem.query.order_by(BOQItem.item_name.asc()).all()


def create_boq_item(name: str, unit: str, *, actor: Profile) -> BOQItem:
    name = (name or "").strip()
    unit = (unit or "").strip()
    if not name or not unit:
        raise ValidationError("BOQ item name and unit are required.")

    item = BOQItem(item_name=name, unit=unit)
    try:
        db.session.add(item)
        db.session.flush()
        log_action(item, "CREATE", actor=actor, after=serialize_model(item))
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return item


def list_units() -> List[BOQUnit]:
    return BOQUnit.query.order_by(BOQUnit.unit_name.asc()).all()


def create_unit(name: str, *, actor: Profile) -> BOQUnit:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Unit name is required.")

    unit = BOQUnit(unit_name=name)
    try:
        db.session.add(unit)
        db.session.flush()
        log_action(unit, "CREATE", actor=actor, after=serialize_model(unit))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError(f"Unit '{name}' already exists.")
    return unit


# ---------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------
_PROJECT_COLUMNS = {column.name for column in Project.__table__.columns} - {"id", "created_at"}


_TEAM_FIELDS = ("project_manager_id", "qs_engineer_id", "safety_officer_id", "reporting_manager_id", "created_by")


def _require_known_employees(payload: dict) -> None:
    ids = [payload.get(name) for name in _TEAM_FIELDS]
    ids.extend(payload.get("site_engineers_ids") or [])
    ids = [str(i) for i in ids if i]
    known = employee_names(ids)
    unknown = sorted({i for i in ids if i not in known})
    if unknown:
        raise ValidationError(f"Unknown employee ID(s) in project team: {', '.join(unknown)}.")


def create_project(payload: dict, *, actor: Profile) -> Project:
    """Insert one Project from a fully coerced wizard payload."""
    _require_known_employees(payload)

    code = payload.get("project_code")
    if Project.query.filter_by(project_code=code).first() is not None:
        raise ValidationError(f"Project code {code} already exists.")

    project = Project(**{key: value for key, value in payload.items() if key in _PROJECT_COLUMNS})
    try:
        db.session.add(project)
        db.session.flush()
        log_action(project, "CREATE", actor=actor, after=serialize_model(project))
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        # A concurrent insert can still win the unique code between check and flush.
        if Project.query.filter_by(project_code=code).first() is not None:
            raise ValidationError(f"Project code {code} already exists.")
        raise ValidationError(f"Project could not be saved: {exc.orig}")
    return project


def list_projects() -> List[Project]:
    return Project.query.order_by(Project.created_at.desc()).all()


def employee_names(ids: Iterable[str]) -> dict:
    ids = [i for i in ids if i]
    if not ids:
        return {}
    return {p.id: p.name for p in Profile.query.filter(Profile.id.in_(ids)).all()}


# ---------------------------------------------------------------------
# Wizard drafts
# ---------------------------------------------------------------------
def load_wizard_draft(employee_id: str) -> WizardState:
    draft = db.session.get(WizardDraft, employee_id)
    return WizardState.from_dict(draft.state if draft is not None else None)


def save_wizard_draft(employee_id: str, state: WizardState) -> WizardState:
    """Replace the employee's draft. Only called once an operation has succeeded."""
    draft = db.session.get(WizardDraft, employee_id)
    if draft is None:
        draft = WizardDraft(employee_id=employee_id)
        db.session.add(draft)
    draft.state = state.to_dict()
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    return state


def discard_wizard_draft(employee_id: str) -> None:
    WizardDraft.query.filter_by(employee_id=employee_id).delete()
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
