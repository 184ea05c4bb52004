"""Declarative access policy: (role, action, resource, resource state) -> allow.

Each role maps to a set of (action, resource, state) tuples. ANY_STATE
matches a resource in whatever workflow state it is in. Anything not in
the table is denied.
"""

import enum

from esg_api.models.enums import RecordStatus, UserRole


# ── Actions ───────────────────────────────────────────────────────────────


class Action:
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    SUBMIT = "submit"
    REVIEW = "review"
    APPROVE = "approve"
    REJECT = "reject"
    GENERATE = "generate"
    UPDATE_STATUS = "update_status"
    MANAGE = "manage"


# ── Resource Types ────────────────────────────────────────────────────────


class Resource:
    ESG_RECORD = "esg_record"
    REPORT = "report"
    AUDIT_LOG = "audit_log"
    USER = "user"


ANY_STATE = "*"

_UNAPPROVED_RECORD_STATES = (
    RecordStatus.DRAFT.value,
    RecordStatus.SUBMITTED.value,
    RecordStatus.UNDER_REVIEW.value,
    RecordStatus.REJECTED.value,
)

# ── Per-role permission sets ──────────────────────────────────────────────

_READ_PERMS: set[tuple[str, str, str]] = {
    (Action.VIEW, Resource.ESG_RECORD, ANY_STATE),
    (Action.VIEW, Resource.REPORT, ANY_STATE),
}

_ANALYST_EXTRA: set[tuple[str, str, str]] = {
    (Action.CREATE, Resource.ESG_RECORD, ANY_STATE),
    *((Action.EDIT, Resource.ESG_RECORD, state) for state in _UNAPPROVED_RECORD_STATES),
    (Action.SUBMIT, Resource.ESG_RECORD, ANY_STATE),
    (Action.GENERATE, Resource.REPORT, ANY_STATE),
    (Action.UPDATE_STATUS, Resource.REPORT, ANY_STATE),
}

_AUDITOR_EXTRA: set[tuple[str, str, str]] = {
    (Action.REVIEW, Resource.ESG_RECORD, ANY_STATE),
    (Action.APPROVE, Resource.ESG_RECORD, ANY_STATE),
    (Action.REJECT, Resource.ESG_RECORD, ANY_STATE),
    (Action.VIEW, Resource.AUDIT_LOG, ANY_STATE),
}

_ADMIN_EXTRA: set[tuple[str, str, str]] = {
    (Action.EDIT, Resource.ESG_RECORD, ANY_STATE),
    (Action.DELETE, Resource.ESG_RECORD, ANY_STATE),
    (Action.DELETE, Resource.REPORT, ANY_STATE),
    (Action.MANAGE, Resource.USER, ANY_STATE),
}

# ── Permission matrix ─────────────────────────────────────────────────────

PERMISSION_MATRIX: dict[UserRole, set[tuple[str, str, str]]] = {
    UserRole.ESG_ANALYST: _READ_PERMS | _ANALYST_EXTRA,
    UserRole.AUDITOR: _READ_PERMS | _AUDITOR_EXTRA,
    UserRole.ADMINISTRATOR: _READ_PERMS | _ANALYST_EXTRA | _AUDITOR_EXTRA | _ADMIN_EXTRA,
}


# ── Public API ────────────────────────────────────────────────────────────


def check_permission(
    role: UserRole,
    action: str,
    resource_type: str,
    state: str | enum.Enum | None = None,
) -> bool:
    """Check if a role may perform an action on a resource.

    With ``state`` given, the resource's current workflow state must be
    allowed. Without it, the question is whether the role may perform the
    action in any state at all (route-level guard).
    """
    perms = PERMISSION_MATRIX.get(role)
    if perms is None:
        return False
    if state is None:
        return any(a == action and r == resource_type for a, r, _ in perms)
    if isinstance(state, enum.Enum):
        state = state.value
    return (action, resource_type, ANY_STATE) in perms or (action, resource_type, state) in perms


def get_permissions_for_role(role: UserRole) -> dict[str, list[str]]:
    """Return permissions grouped by resource type (for API responses)."""
    perms = PERMISSION_MATRIX.get(role, set())
    result: dict[str, list[str]] = {}
    for action, resource, _ in sorted(perms):
        actions = result.setdefault(resource, [])
        if action not in actions:
            actions.append(action)
    return result
