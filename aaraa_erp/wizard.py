"""
aaraa_erp/wizard.py

Project creation wizard as an immutable state machine.

    1 Identity -> 2 Client & Location -> 3 Team & Timeline -> 4 Financials
      -> 5 BOQ Scope -> 6 Final Review -> Submitted

Every operation returns a new WizardState; nothing mutates a state in place.
Moving between steps is never gated: validation happens once, at submission.
The state round-trips through to_dict()/from_dict() so routes can keep it as the
employee's WizardDraft row between requests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple

from .errors import ValidationError

FIRST_STEP = 1
REVIEW_STEP = 6
BOQ_STEP = 5

STEP_TITLES = {
    1: "Identity",
    2: "Client & Location",
    3: "Team & Timeline",
    4: "Financials",
    5: "BOQ Scope",
    6: "Final Review",
}

PROJECT_CODE_PREFIX = "AI"

MISSING_IDENTITY_MESSAGE = "Project Code and Name are mandatory."
PREFIX_MESSAGE = f"Project Code must start with '{PROJECT_CODE_PREFIX}'."

DEFAULT_FIELDS: Mapping[str, Any] = MappingProxyType({
    "project_code": PROJECT_CODE_PREFIX,
    "project_name": "",
    "project_type": "Residential",
    "project_category": "Turnkey",
    "project_status": "Planned",
    "client_name": "",
    "client_org": "",
    "client_contact": "",
    "client_mobile": "",
    "client_email": "",
    "contract_type": "BOQ Based",
    "agreement_value": "",
    "site_address": "",
    "city": "",
    "state": "",
    "pincode": "",
    "latitude": "",
    "longitude": "",
    "start_date": "",
    "completion_date": "",
    "actual_completion_date": "",
    "defect_liability_period": "12",
    "project_manager_id": "",
    "site_engineers_ids": (),
    "qs_engineer_id": "",
    "safety_officer_id": "",
    "reporting_manager_id": "",
    "estimated_cost": "",
    "approved_budget": "",
    "retention_percentage": "5",
    "gst_applicable": True,
    "payment_terms": "RA",
    "boq_attached": True,
    "boq_version": "V1.0",
    "scope_summary": "",
    "exclusions": "",
    "work_order_number": "",
    "work_order_date": "",
    "project_visibility": "Assigned Team",
    "approval_flow": "Standard",
    "notifications_enabled": True,
})

CHECKBOX_FIELDS = frozenset({"gst_applicable", "boq_attached", "notifications_enabled"})
LIST_FIELDS = frozenset({"site_engineers_ids"})
FLOAT_FIELDS = (
    "agreement_value",
    "estimated_cost",
    "approved_budget",
    "latitude",
    "longitude",
    "retention_percentage",
)
INT_FIELDS = ("defect_liability_period",)
EMPLOYEE_FIELDS = ("project_manager_id", "qs_engineer_id", "safety_officer_id", "reporting_manager_id")

_TRUTHY = {"1", "true", "on", "yes"}

# Leading numeric prefix, the way a browser's parseFloat / parseInt read input:
# "12abc" -> 12, "1,50,000" -> 1, "24 months" -> 24.
_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_LEADING_INT = re.compile(r"^[+-]?\d+")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _to_float(value: Any) -> float:
    match = _LEADING_FLOAT.match(str(value).strip())
    return float(match.group()) if match else 0.0


def _to_int(value: Any) -> int:
    match = _LEADING_INT.match(str(value).strip())
    return int(match.group()) if match else 0


def _to_list(value: Any) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value or "").split(",")
    return tuple(str(item).strip() for item in items if str(item).strip())


@dataclass(frozen=True)
class BOQLine:
    """A master BOQ item copied into the project scope."""

    id: str
    item_name: str
    unit: str
    quantity: float = 0
    rate: float = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_name": self.item_name,
            "unit": self.unit,
            "quantity": self.quantity,
            "rate": self.rate,
        }


@dataclass(frozen=True)
class WizardState:
    step: int = FIRST_STEP
    fields: Mapping[str, Any] = field(default_factory=lambda: DEFAULT_FIELDS)
    boq_scope: Tuple[BOQLine, ...] = ()
    submitted_code: Optional[str] = None
    project_id: Optional[str] = None

    @property
    def submitted(self) -> bool:
        return self.submitted_code is not None

    @property
    def step_title(self) -> str:
        return "Submitted" if self.submitted else STEP_TITLES[self.step]

    # -----------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------
    def _require_open(self) -> None:
        if self.submitted:
            raise ValidationError("Project already submitted. Start a new wizard.")

    def advance(self) -> "WizardState":
        self._require_open()
        if self.step < REVIEW_STEP:
            return replace(self, step=self.step + 1)
        return self

    def retreat(self) -> "WizardState":
        self._require_open()
        if self.step > FIRST_STEP:
            return replace(self, step=self.step - 1)
        return self

    def apply_edit(self, name: str, value: Any) -> "WizardState":
        self._require_open()
        if name not in DEFAULT_FIELDS:
            raise ValidationError(f"Unknown field: {name}")

        if name in CHECKBOX_FIELDS:
            stored = _to_bool(value)
        elif name in LIST_FIELDS:
            stored = _to_list(value)
        else:
            stored = "" if value is None else str(value)

        merged = dict(self.fields)
        merged[name] = stored
        return replace(self, fields=MappingProxyType(merged))

    def require_boq_step(self) -> None:
        self._require_open()
        if self.step != BOQ_STEP:
            raise ValidationError("BOQ scope can only be changed on the BOQ Scope step.")

    def add_boq_item(self, item: Mapping[str, Any]) -> "WizardState":
        """Copy a master item into the scope. Re-adding an id is a no-op."""
        self.require_boq_step()
        item_id = str(item["id"])
        if any(line.id == item_id for line in self.boq_scope):
            return self
        line = BOQLine(id=item_id, item_name=item["item_name"], unit=item["unit"])
        return replace(self, boq_scope=self.boq_scope + (line,))

    def remove_boq_item(self, item_id: str) -> "WizardState":
        self.require_boq_step()
        remaining = tuple(line for line in self.boq_scope if line.id != item_id)
        if len(remaining) == len(self.boq_scope):
            return self
        return replace(self, boq_scope=remaining)

    # -----------------------------------------------------------------
    # Submission
    # -----------------------------------------------------------------
    def validate(self) -> None:
        code = str(self.fields.get("project_code") or "").strip()
        name = str(self.fields.get("project_name") or "").strip()
        if not code or not name:
            raise ValidationError(MISSING_IDENTITY_MESSAGE)
        if not code.startswith(PROJECT_CODE_PREFIX):
            raise ValidationError(PREFIX_MESSAGE)

    def build_payload(self, created_by: str) -> dict:
        """Creation payload: numbers coerced, BOQ scope and creator attached."""
        payload = dict(self.fields)
        payload["project_code"] = str(payload["project_code"]).strip()
        payload["project_name"] = str(payload["project_name"]).strip()
        for name in FLOAT_FIELDS:
            payload[name] = _to_float(payload[name])
        for name in INT_FIELDS:
            payload[name] = _to_int(payload[name])
        for name in EMPLOYEE_FIELDS:
            payload[name] = payload[name] or None
        payload["site_engineers_ids"] = list(payload["site_engineers_ids"])
        payload["boq_json"] = [line.to_dict() for line in self.boq_scope]
        payload["created_by"] = created_by
        return payload

    def submit(self, created_by: str, create: Callable[[dict], Any]) -> "WizardState":
        """
        Validate and issue one creation call.

        Raises ValidationError (rule violated) or whatever create raises; in both
        cases the caller keeps this state, still on step 6, for a retry.
        """
        self._require_open()
        if self.step != REVIEW_STEP:
            raise ValidationError("Project can only be submitted from the Final Review step.")
        self.validate()
        project = create(self.build_payload(created_by))
        return replace(
            self,
            submitted_code=self.fields["project_code"].strip(),
            project_id=getattr(project, "id", None),
        )

    # -----------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------
    def to_dict(self) -> dict:
        fields = dict(self.fields)
        fields["site_engineers_ids"] = list(fields["site_engineers_ids"])
        return {
            "step": self.step,
            "step_title": self.step_title,
            "fields": fields,
            "boq_scope": [line.to_dict() for line in self.boq_scope],
            "submitted_code": self.submitted_code,
            "project_id": self.project_id,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "WizardState":
        if not data:
            return cls()
        fields = dict(DEFAULT_FIELDS)
        for name, value in (data.get("fields") or {}).items():
            if name in fields:
                fields[name] = tuple(value) if name in LIST_FIELDS else value
        return cls(
            step=int(data.get("step", FIRST_STEP)),
            fields=MappingProxyType(fields),
            boq_scope=tuple(BOQLine(**line) for line in data.get("boq_scope") or ()),
            submitted_code=data.get("submitted_code"),
            project_id=data.get("project_id"),
        )
