"""
aaraa_erp/seed.py

Seed master data.

Rules:
- Safe to run multiple times (idempotent): existing keys are left untouched.
- Seeds the employee master, BOQ units and a starter BOQ catalog.
- seed_demo_approvals() adds the SUB501..SUB503 pending queue used for demos/tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from .extensions import db
from .models import BOQItem, BOQUnit, Profile, Submission, SubmissionStatus, SubmissionType, UserRole


EMPLOYEE_MASTER = [
    ("AI1001", "Nanda Kumar", "Managing Director", "Management", UserRole.SUPER_ADMIN, "MD Command Center"),
    ("AI1002", "Alekhya", "Director", "Project", UserRole.ADMIN, "Executive Control"),
    ("AI1003", "Manikandan", "Foreman", "Site", UserRole.USER, "Site Execution"),
    ("AI1004", "Alekhya B", "Business Head", "Management", UserRole.ADMIN, "Executive Control"),
    ("AI1005", "S S Babu", "GM", "Projects", UserRole.ADMIN, "Executive Control"),
    ("AI1008", "Imtiaz", "Purchase Executive", "Procurement", UserRole.USER, "Procurement Desk"),
    ("AI1011", "Hajira S K", "Manager", "Admin & HR", UserRole.ADMIN, "HR Command"),
    ("AI1012", "Sudha Ramanathan", "Manager", "Accounts & Finance", UserRole.ADMIN, "Finance Control"),
    ("AI1013", "Gowri Shankar", "Manager", "Tech & Digital Media", UserRole.ADMIN, "Tech Control"),
    ("AI1015", "Vinoth Kumar R", "Project Manager", "Projects", UserRole.ADMIN, "Project Owner"),
    ("AI1020", "Rajesh Kumar", "Accounts Executive", "Finance", UserRole.USER, "Finance Control"),
    ("AI1027", "Ajith", "Safety Officer", "Site", UserRole.USER, "Safety Desk"),
    ("AI1029", "Praveen", "Quality Engineer", "QA/QC", UserRole.USER, "QA Dashboard"),
]

DEFAULT_UNITS = ["Nos", "Sqm", "Cum", "Rmt", "Kg", "MT", "Ltr", "LS"]

DEFAULT_BOQ_ITEMS = [
    ("Earthwork Excavation", "Cum"),
    ("PCC 1:4:8", "Cum"),
    ("RCC M25", "Cum"),
    ("Reinforcement Steel Fe500", "MT"),
    ("Brick Masonry", "Cum"),
    ("Plastering 12mm", "Sqm"),
    ("Vitrified Tile Flooring", "Sqm"),
    ("Waterproofing Membrane", "Sqm"),
]

DEMO_APPROVALS = [
    ("SUB501", "AI1003", "Manikandan", SubmissionType.BILL, "Steel Supply (Site A)", Decimal("125000"), "Site", 3),
    ("SUB502", "AI1008", "Imtiaz", SubmissionType.BILL, "Safety Equipment Procurement", Decimal("8400"),
     "Procurement", 5),
    ("SUB503", "AI1027", "Ajith", SubmissionType.SITE_PHOTO, "Tower 4 Inspection Report", None, "Site", 24),
]


def seed_employees() -> int:
    created = 0
    for emp_id, name, designation, department, role, dashboard in EMPLOYEE_MASTER:
        if db.session.get(Profile, emp_id) is not None:
            continue
        db.session.add(Profile(
            id=emp_id,
            name=name,
            designation=designation,
            department=department,
            role=role.value,
            dashboard=dashboard,
        ))
        created += 1
    db.session.commit()
    return created


def seed_boq_master() -> int:
    created = 0
    existing_units = {u.unit_name for u in BOQUnit.query.all()}
    for unit_name in DEFAULT_UNITS:
        if unit_name not in existing_units:
            db.session.add(BOQUnit(unit_name=unit_name))
            created += 1

    existing_items = {(i.item_name, i.unit) for i in BOQItem.query.all()}
    for item_name, unit in DEFAULT_BOQ_ITEMS:
        if (item_name, unit) not in existing_items:
            db.session.add(BOQItem(item_name=item_name, unit=unit))
            created += 1

    db.session.commit()
    return created


def seed_demo_approvals() -> int:
    created = 0
    now = datetime.utcnow()
    for sub_id, emp_id, emp_name, sub_type, title, amount, department, hours_ago in DEMO_APPROVALS:
        if db.session.get(Submission, sub_id) is not None:
            continue
        db.session.add(Submission(
            id=sub_id,
            employee_id=emp_id,
            employee_name=emp_name,
            type=sub_type.value,
            title=title,
            amount=amount,
            url="https://picsum.photos/500/800",
            status=SubmissionStatus.PENDING.value,
            department=department,
            created_at=now - timedelta(hours=hours_ago),
        ))
        created += 1
    db.session.commit()
    return created


def seed_all(*, demo: bool = False) -> dict:
    counts = {"employees": seed_employees(), "boq": seed_boq_master()}
    if demo:
        counts["approvals"] = seed_demo_approvals()
    return counts
