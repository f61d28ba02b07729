"""
Per-employee notification feed.

Rows are server-side (notifications table) but scoped to one login session: the
feed is cleared at login and at logout. Only the newest MAX_NOTIFICATIONS are kept.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .models import Notification

MAX_NOTIFICATIONS = 20

NOTIFICATION_TYPES = ("INFO", "SUCCESS", "WARNING", "ERROR")


def _feed(employee_id: str):
    return Notification.query.filter_by(employee_id=employee_id).order_by(Notification.id.desc())


def _commit() -> None:
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def push(employee_id: str, title: str, message: str, type: str = "INFO") -> Notification:
    if type not in NOTIFICATION_TYPES:
        type = "INFO"
    entry = Notification(employee_id=employee_id, title=title, message=message, type=type)
    db.session.add(entry)
    db.session.flush()

    stale = [n.id for n in _feed(employee_id).offset(MAX_NOTIFICATIONS).all()]
    if stale:
        Notification.query.filter(Notification.id.in_(stale)).delete(synchronize_session=False)
    _commit()
    return entry


def list_notifications(employee_id: str) -> dict:
    feed = _feed(employee_id).all()
    return {"items": [n.to_dict() for n in feed], "unread": sum(1 for n in feed if not n.read)}


def mark_read(employee_id: str, notification_id: int) -> bool:
    entry = Notification.query.filter_by(id=notification_id, employee_id=employee_id).one_or_none()
    if entry is None:
        return False
    entry.read = True
    _commit()
    return True


def mark_all_read(employee_id: str) -> None:
    Notification.query.filter_by(employee_id=employee_id, read=False).update({"read": True})
    _commit()


def clear(employee_id: str) -> None:
    Notification.query.filter_by(employee_id=employee_id).delete()
    _commit()
