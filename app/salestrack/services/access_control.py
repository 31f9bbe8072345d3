from __future__ import annotations

from dataclasses import dataclass

OWNER = "owner"
ADMIN = "admin"
BRANCH_MANAGER = "branch_manager"
AUDITOR = "auditor"
SALES_PERSON = "sales_person"

ROLES = (OWNER, ADMIN, BRANCH_MANAGER, AUDITOR, SALES_PERSON)

VIEW_ALL_ROLES = frozenset({OWNER, ADMIN, AUDITOR})
MANAGE_ALL_ROLES = frozenset({OWNER, ADMIN})
MANAGE_BRANCH_ROLES = frozenset({OWNER, ADMIN, BRANCH_MANAGER})
BRANCH_BOUND_ROLES = frozenset({BRANCH_MANAGER, SALES_PERSON})

_VIEW_PERMISSIONS = (
    "ORG_VIEW",
    "BRANCH_VIEW",
    "PRODUCT_VIEW",
    "SALE_VIEW",
    "EXPENSE_VIEW",
    "DASHBOARD_VIEW",
    "REPORTS_VIEW",
    "ACTIVITY_VIEW",
)
_SELLING_PERMISSIONS = ("SALE_CREATE", "SALE_RECEIPT")
_BRANCH_MANAGE_PERMISSIONS = ("SALE_EDIT", "SALE_VOID", "EXPENSE_CREATE", "EXPENSE_EDIT", "USER_MANAGE")
_ORG_MANAGE_PERMISSIONS = (
    "ORG_MANAGE",
    "BRANCH_MANAGE",
    "PRODUCT_MANAGE",
    "EXPENSE_CATEGORY_MANAGE",
    "SALE_DELETE",
    "SALE_CLOSE",
    "EXPENSE_DELETE",
)
_OWNER_PERMISSIONS = ("ORG_CREATE", "USER_REACTIVATE", "USER_VIEW_INACTIVE")

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    OWNER: frozenset(
        _VIEW_PERMISSIONS
        + _SELLING_PERMISSIONS
        + _BRANCH_MANAGE_PERMISSIONS
        + _ORG_MANAGE_PERMISSIONS
        + _OWNER_PERMISSIONS
    ),
    ADMIN: frozenset(_VIEW_PERMISSIONS + _SELLING_PERMISSIONS + _BRANCH_MANAGE_PERMISSIONS + _ORG_MANAGE_PERMISSIONS),
    BRANCH_MANAGER: frozenset(_VIEW_PERMISSIONS + _SELLING_PERMISSIONS + _BRANCH_MANAGE_PERMISSIONS),
    AUDITOR: frozenset(_VIEW_PERMISSIONS),
    SALES_PERSON: frozenset(_VIEW_PERMISSIONS + _SELLING_PERMISSIONS),
}

PERMISSION_CATALOG = frozenset().union(*ROLE_PERMISSIONS.values())


@dataclass(frozen=True)
class PermissionDecision:
    key: str
    allowed: bool
    source: str


def normalize_role(role: str | None) -> str:
    return (role or "").strip().lower()


def can_view_all_data(role: str | None) -> bool:
    return normalize_role(role) in VIEW_ALL_ROLES


def can_manage_all_data(role: str | None) -> bool:
    return normalize_role(role) in MANAGE_ALL_ROLES


def can_manage_branch_data(role: str | None) -> bool:
    return normalize_role(role) in MANAGE_BRANCH_ROLES


def is_branch_bound(role: str | None) -> bool:
    return normalize_role(role) in BRANCH_BOUND_ROLES


class AccessControlService:
    """Evaluates permission keys against the static role matrix.

    Decisions are cached per request in ``cache`` keyed by (role, permission).
    """

    def __init__(self, cache: dict | None = None):
        self.cache = cache if cache is not None else {}

    def allowed_permissions(self, role: str | None) -> frozenset[str]:
        return ROLE_PERMISSIONS.get(normalize_role(role), frozenset())

    def evaluate_permission(self, permission_key: str, *, role: str | None, is_active: bool) -> PermissionDecision:
        key = permission_key.strip().upper()
        if key not in PERMISSION_CATALOG:
            return PermissionDecision(key=key, allowed=False, source="unknown_permission")
        if not is_active:
            return PermissionDecision(key=key, allowed=False, source="inactive_user")
        role_name = normalize_role(role)
        if role_name not in ROLE_PERMISSIONS:
            return PermissionDecision(key=key, allowed=False, source="unknown_role")

        cache_key = (role_name, key)
        if cache_key not in self.cache:
            allowed = key in ROLE_PERMISSIONS[role_name]
            self.cache[cache_key] = PermissionDecision(
                key=key,
                allowed=allowed,
                source="role_matrix" if allowed else "default_deny",
            )
        return self.cache[cache_key]
