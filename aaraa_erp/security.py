"""
aaraa_erp/security.py

Role-based access control.

Key rules:
- UI is never trusted; every feature route re-checks the caller's role server-side.
- Each navigable feature declares the set of roles permitted (FEATURES).
  The menu builder and the route decorator filter against the same sets.

Known gap:
- Login compares against one shared placeholder password (SHARED_LOGIN_PASSWORD).
  It stands in for per-employee credentials and is not a security control.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable, FrozenSet, List

from flask_login import current_user

from .errors import AuthenticationError, PermissionDenied
from .models import Profile, UserRole

ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)
MANAGERS: FrozenSet[UserRole] = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
SUPER_ONLY: FrozenSet[UserRole] = frozenset({UserRole.SUPER_ADMIN})


@dataclass(frozen=True)
class Feature:
    key: str
    label: str
    path: str
    roles: FrozenSet[UserRole]

    def allows(self, employee: Profile | None) -> bool:
        return employee is not None and employee.has_role(self.roles)


FEATURES: List[Feature] = [
    Feature("dashboard", "Dashboard", "/dashboard", ALL_ROLES),
    Feature("submissions", "My Submissions", "/submissions", ALL_ROLES),
    Feature("media-vault", "Media Vault", "/media-vault", ALL_ROLES),
    Feature("project-creation", "Project Creation", "/project-creation", MANAGERS),
    Feature("approvals", "Approvals", "/approvals", MANAGERS),
    Feature("projects", "Project Status", "/projects", MANAGERS),
    Feature("team", "Team", "/team", SUPER_ONLY),
    Feature("settings", "Settings", "/settings", ALL_ROLES),
]

FEATURES_BY_KEY = {feature.key: feature for feature in FEATURES}


def navigation_for(employee: Profile | None) -> List[dict]:
    """Menu entries visible to the employee, in declaration order."""
    return [
        {"key": f.key, "label": f.label, "path": f.path}
        for f in FEATURES
        if f.allows(employee)
    ]


def current_employee() -> Profile:
    """The authenticated employee for this request (explicit session context)."""
    if not current_user.is_authenticated:
        raise AuthenticationError("Authentication required.")
    return current_user._get_current_object()


def feature_required(feature_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator factory: the caller's role must be in the feature's role set.

    Usage:
        @feature_required("approvals")
        def list_pending(): ...
    """
    feature = FEATURES_BY_KEY[feature_key]

    def decorator(view_func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(view_func)
        def wrapper(*args: Any, **kwargs: Any):
            employee = current_employee()
            if not feature.allows(employee):
                raise PermissionDenied(f"{feature.label} is not available for role {employee.role}.")
            return view_func(*args, **kwargs)

        return wrapper

    return decorator
