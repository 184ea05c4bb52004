"""Auth package: dependencies, access policy, token-based login."""

from esg_api.auth.dependencies import ensure_allowed, get_current_user, require_permission
from esg_api.auth.rbac import check_permission, get_permissions_for_role

__all__ = [
    "check_permission",
    "ensure_allowed",
    "get_current_user",
    "get_permissions_for_role",
    "require_permission",
]
