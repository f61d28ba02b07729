"""
aaraa_erp/blueprints/projects/routes.py

Project creation wizard, project list and BOQ master data.

Wizard (ADMIN / SUPER_ADMIN), state kept server-side as the employee's WizardDraft:
- GET    /api/projects/wizard              current state (new wizard if none)
- POST   /api/projects/wizard/reset        abandon and start over
- POST   /api/projects/wizard/continue
- POST   /api/projects/wizard/back
- POST   /api/projects/wizard/fields       {"name": ..., "value": ...} or {"fields": {...}}
- POST   /api/projects/wizard/boq          {"id": ...}   add master item to scope
- DELETE /api/projects/wizard/boq/<id>     remove from scope
- POST   /api/projects/wizard/boq/new      {"item_name", "unit"} create master item + add
- POST   /api/projects/wizard/submit
- GET    /api/projects/wizard/summary      after submission

Master data:
- GET /api/projects, GET /api/employees
- GET/POST /api/boq/items, GET/POST /api/boq/units

IMPORTANT:
- The stored state is replaced only after an operation succeeds, so a failed
  submission leaves every entered value in place for a retry.
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required

from ... import notifications
from ...errors import NotFound, ValidationError
from ...extensions import db
from ...models import BOQItem, Project
from ...security import current_employee, feature_required
from ...services import (
    create_boq_item,
    create_project,
    create_unit,
    employee_names,
    list_boq_items,
    list_employees,
    list_projects,
    list_units,
    load_wizard_draft,
    save_wizard_draft,
)
from ...wizard import WizardState

projects_bp = Blueprint("projects", __name__, url_prefix="/api")

SUMMARY_BOQ_LINES = 6


# ---------------------------------------------------------------------
# Draft helpers
# ---------------------------------------------------------------------
def _load_state() -> WizardState:
    return load_wizard_draft(current_employee().id)


def _store_state(state: WizardState):
    save_wizard_draft(current_employee().id, state)
    return jsonify({"wizard": state.to_dict()})


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


# ---------------------------------------------------------------------
# Wizard
# ---------------------------------------------------------------------
@projects_bp.route("/projects/wizard")
@login_required
@feature_required("project-creation")
def wizard_state():
    return _store_state(_load_state())


@projects_bp.route("/projects/wizard/reset", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_reset():
    return _store_state(WizardState())


@projects_bp.route("/projects/wizard/continue", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_continue():
    return _store_state(_load_state().advance())


@projects_bp.route("/projects/wizard/back", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_back():
    return _store_state(_load_state().retreat())


@projects_bp.route("/projects/wizard/fields", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_fields():
    data = _payload()
    state = _load_state()

    if isinstance(data.get("fields"), dict):
        edits = data["fields"].items()
    elif data.get("name"):
        edits = [(data["name"], data.get("value"))]
    else:
        raise ValidationError("Field name is required.")

    for name, value in edits:
        state = state.apply_edit(name, value)
    return _store_state(state)


@projects_bp.route("/projects/wizard/boq", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_add_boq():
    item_id = str(_payload().get("id") or "")
    item = db.session.get(BOQItem, item_id) if item_id else None
    if item is None:
        raise NotFound("BOQ item not found in master list.")
    return _store_state(_load_state().add_boq_item(item.to_dict()))


@projects_bp.route("/projects/wizard/boq/<item_id>", methods=["DELETE"])
@login_required
@feature_required("project-creation")
def wizard_remove_boq(item_id: str):
    return _store_state(_load_state().remove_boq_item(item_id))


@projects_bp.route("/projects/wizard/boq/new", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_new_boq():
    """Persist a new master item first, then add it to the current scope."""
    state = _load_state()
    state.require_boq_step()

    data = _payload()
    item = create_boq_item(data.get("item_name"), data.get("unit"), actor=current_employee())
    return _store_state(state.add_boq_item(item.to_dict()))


@projects_bp.route("/projects/wizard/submit", methods=["POST"])
@login_required
@feature_required("project-creation")
def wizard_submit():
    employee = current_employee()
    state = _load_state()

    submitted = state.submit(employee.id, lambda payload: create_project(payload, actor=employee))

    current_app.logger.info("Project created: %s by %s", submitted.submitted_code, employee.id)
    notifications.push(employee.id, "Project created", f"{submitted.submitted_code} is live.", "SUCCESS")
    return _store_state(submitted)


@projects_bp.route("/projects/wizard/summary")
@login_required
@feature_required("project-creation")
def wizard_summary():
    state = _load_state()
    if not state.submitted:
        raise ValidationError("Project has not been submitted yet.")

    project = db.session.get(Project, state.project_id) if state.project_id else None
    if project is None:
        raise NotFound("Submitted project not found.")

    names = employee_names([project.project_manager_id])
    boq = project.boq_json or []
    return jsonify({
        "project": project.to_dict(),
        "project_manager_name": names.get(project.project_manager_id),
        "boq_preview": boq[:SUMMARY_BOQ_LINES],
        "boq_remaining": max(len(boq) - SUMMARY_BOQ_LINES, 0),
    })


# ---------------------------------------------------------------------
# Projects / employees
# ---------------------------------------------------------------------
@projects_bp.route("/projects")
@login_required
@feature_required("projects")
def projects_list():
    return jsonify({"items": [p.to_dict() for p in list_projects()]})


@projects_bp.route("/employees")
@login_required
def employees():
    """Minimal directory for team assignment dropdowns."""
    return jsonify({
        "items": [{"id": p.id, "name": p.name, "designation": p.designation} for p in list_employees()]
    })


# ---------------------------------------------------------------------
# BOQ master data
# ---------------------------------------------------------------------
@projects_bp.route("/boq/items")
@login_required
def boq_items():
    return jsonify({"items": [i.to_dict() for i in list_boq_items()]})


@projects_bp.route("/boq/items", methods=["POST"])
@login_required
@feature_required("project-creation")
def boq_items_create():
    data = _payload()
    item = create_boq_item(data.get("item_name"), data.get("unit"), actor=current_employee())
    return jsonify({"item": item.to_dict()}), 201


@projects_bp.route("/boq/units")
@login_required
def boq_units():
    return jsonify({"items": [u.to_dict() for u in list_units()]})


@projects_bp.route("/boq/units", methods=["POST"])
@login_required
@feature_required("project-creation")
def boq_units_create():
    unit = create_unit(_payload().get("unit_name"), actor=current_employee())
    return jsonify({"unit": unit.to_dict()}), 201
