from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from erp_roles.authz.assignments import ActorContext
from erp_roles.authz.catalog import RoleId, is_global_role
from erp_roles.authz.errors import MissingCompanyContextError, UnknownRoleError


class Permission(StrEnum):
    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_EDIT = "users.edit"
    USERS_DELETE = "users.delete"
    SETTINGS_VIEW = "settings.view"
    SETTINGS_EDIT = "settings.edit"
    WAREHOUSE_VIEW = "warehouse.view"
    WAREHOUSE_CREATE = "warehouse.create"
    WAREHOUSE_EDIT = "warehouse.edit"
    WAREHOUSE_DELETE = "warehouse.delete"
    INVENTORY_VIEW = "inventory.view"
    INVENTORY_MANAGE = "inventory.manage"
    PRODUCTS_VIEW = "products.view"
    PRODUCTS_CREATE = "products.create"
    PRODUCTS_EDIT = "products.edit"
    PRODUCTS_DELETE = "products.delete"
    CATEGORIES_VIEW = "categories.view"
    CATEGORIES_CREATE = "categories.create"
    CATEGORIES_EDIT = "categories.edit"
    CATEGORIES_DELETE = "categories.delete"
    REPORTS_VIEW = "reports.view"
    REPORTS_EXPORT = "reports.export"
    DASHBOARD_VIEW = "dashboard.view"
    DASHBOARD_ANALYTICS = "dashboard.analytics"
    COST_CENTERS_VIEW = "cost_centers.view"
    COST_CENTERS_MANAGE = "cost_centers.manage"
    AUDIT_LOG_VIEW = "audit_log.view"
    API_ACCESS = "api.access"
    BRANDING_MANAGE = "branding.manage"
    INTEGRATIONS_MANAGE = "integrations.manage"


class FeatureKey(StrEnum):
    INVENTORY_MANAGEMENT = "inventory_management"
    ACCOUNTING = "accounting"
    HRM = "hrm"
    CRM = "crm"
    PROJECT_MANAGEMENT = "project_management"
    REPORTS = "reports"
    MULTI_CURRENCY = "multi_currency"
    API_ACCESS = "api_access"
    CUSTOM_BRANDING = "custom_branding"
    PRIORITY_SUPPORT = "priority_support"
    ADVANCED_ANALYTICS = "advanced_analytics"
    AUDIT_LOG = "audit_log"
    CUSTOM_INTEGRATIONS = "custom_integrations"
    DEDICATED_ACCOUNT = "dedicated_account"


class LimitKey(StrEnum):
    MAX_USERS = "max_users"
    MAX_PRODUCTS = "max_products"
    MAX_MONTHLY_TRANSACTIONS = "max_monthly_transactions"
    STORAGE_GB = "storage_gb"
    MAX_API_CALLS = "max_api_calls"
    MAX_BRANCHES = "max_branches"


@dataclass(frozen=True, slots=True)
class PlanFeatureSet:
    """Feature flags and numeric limits of a tenant's active subscription plan."""

    feature_flags: Mapping[FeatureKey, bool] = field(default_factory=dict)
    limits: Mapping[LimitKey, int | float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "feature_flags", MappingProxyType(dict(self.feature_flags)))
        object.__setattr__(self, "limits", MappingProxyType(dict(self.limits)))

    def is_enabled(self, feature: FeatureKey) -> bool:
        return bool(self.feature_flags.get(feature, False))

    def limit(self, key: LimitKey) -> int | float | None:
        return self.limits.get(key)


ALL_PERMISSIONS: frozenset[Permission] = frozenset(Permission)

_VIEWER_PERMISSIONS = frozenset(
    {
        Permission.WAREHOUSE_VIEW,
        Permission.INVENTORY_VIEW,
        Permission.PRODUCTS_VIEW,
        Permission.CATEGORIES_VIEW,
        Permission.DASHBOARD_VIEW,
    }
)

_EMPLOYEE_PERMISSIONS = _VIEWER_PERMISSIONS | {
    Permission.WAREHOUSE_EDIT,
    Permission.COST_CENTERS_VIEW,
}

_MANAGER_PERMISSIONS = _EMPLOYEE_PERMISSIONS | {
    Permission.USERS_VIEW,
    Permission.INVENTORY_MANAGE,
    Permission.PRODUCTS_EDIT,
    Permission.REPORTS_VIEW,
    Permission.REPORTS_EXPORT,
    Permission.DASHBOARD_ANALYTICS,
}

_COMPANY_ADMIN_PERMISSIONS = _MANAGER_PERMISSIONS | {
    Permission.USERS_CREATE,
    Permission.USERS_EDIT,
    Permission.WAREHOUSE_CREATE,
    Permission.WAREHOUSE_DELETE,
    Permission.PRODUCTS_CREATE,
    Permission.PRODUCTS_DELETE,
    Permission.CATEGORIES_CREATE,
    Permission.CATEGORIES_EDIT,
    Permission.CATEGORIES_DELETE,
    Permission.COST_CENTERS_MANAGE,
    Permission.AUDIT_LOG_VIEW,
    Permission.API_ACCESS,
    Permission.BRANDING_MANAGE,
    Permission.INTEGRATIONS_MANAGE,
}

ROLE_BASE_PERMISSIONS: MappingProxyType[RoleId, frozenset[Permission]] = MappingProxyType(
    {
        RoleId.COMPANY_ADMIN: frozenset(_COMPANY_ADMIN_PERMISSIONS),
        RoleId.MANAGER: frozenset(_MANAGER_PERMISSIONS),
        RoleId.EMPLOYEE: frozenset(_EMPLOYEE_PERMISSIONS),
        RoleId.VIEWER: _VIEWER_PERMISSIONS,
    }
)

# Permissions missing from this table are not plan-gated and are always kept.
FEATURE_GATES: MappingProxyType[Permission, FeatureKey] = MappingProxyType(
    {
        Permission.WAREHOUSE_VIEW: FeatureKey.INVENTORY_MANAGEMENT,
        Permission.WAREHOUSE_CREATE: FeatureKey.INVENTORY_MANAGEMENT,
        Permission.WAREHOUSE_EDIT: FeatureKey.INVENTORY_MANAGEMENT,
        Permission.WAREHOUSE_DELETE: FeatureKey.INVENTORY_MANAGEMENT,
        Permission.INVENTORY_VIEW: FeatureKey.INVENTORY_MANAGEMENT,
        Permission.INVENTORY_MANAGE: FeatureKey.INVENTORY_MANAGEMENT,
        Permission.REPORTS_VIEW: FeatureKey.REPORTS,
        Permission.REPORTS_EXPORT: FeatureKey.REPORTS,
        Permission.DASHBOARD_ANALYTICS: FeatureKey.ADVANCED_ANALYTICS,
        Permission.COST_CENTERS_VIEW: FeatureKey.ACCOUNTING,
        Permission.COST_CENTERS_MANAGE: FeatureKey.ACCOUNTING,
        Permission.AUDIT_LOG_VIEW: FeatureKey.AUDIT_LOG,
        Permission.API_ACCESS: FeatureKey.API_ACCESS,
        Permission.BRANDING_MANAGE: FeatureKey.CUSTOM_BRANDING,
        Permission.INTEGRATIONS_MANAGE: FeatureKey.CUSTOM_INTEGRATIONS,
    }
)

LIMIT_GATES: MappingProxyType[Permission, LimitKey] = MappingProxyType(
    {
        Permission.USERS_CREATE: LimitKey.MAX_USERS,
        Permission.PRODUCTS_CREATE: LimitKey.MAX_PRODUCTS,
        Permission.WAREHOUSE_CREATE: LimitKey.MAX_BRANCHES,
        Permission.API_ACCESS: LimitKey.MAX_API_CALLS,
    }
)


def _is_plan_allowed(permission: Permission, plan: PlanFeatureSet) -> bool:
    feature = FEATURE_GATES.get(permission)
    if feature is not None and not plan.is_enabled(feature):
        return False

    limit_key = LIMIT_GATES.get(permission)
    if limit_key is not None:
        limit = plan.limit(limit_key)
        if limit is not None and limit <= 0:
            return False
    return True


def permissions_for(role: RoleId, plan: PlanFeatureSet | None = None) -> frozenset[Permission]:
    """Concrete permission set for `role`, narrowed by the tenant plan for company roles."""

    if not isinstance(role, RoleId):
        raise UnknownRoleError(role)
    if is_global_role(role):
        return ALL_PERMISSIONS

    base = ROLE_BASE_PERMISSIONS[role]
    if plan is None:
        return base
    return frozenset(permission for permission in base if _is_plan_allowed(permission, plan))


def has_permission(role: RoleId, permission: Permission, plan: PlanFeatureSet | None = None) -> bool:
    return permission in permissions_for(role, plan)


def has_any_permission(role: RoleId, permissions: Iterable[Permission], plan: PlanFeatureSet | None = None) -> bool:
    granted = permissions_for(role, plan)
    return any(permission in granted for permission in permissions)


def has_all_permissions(role: RoleId, permissions: Iterable[Permission], plan: PlanFeatureSet | None = None) -> bool:
    granted = permissions_for(role, plan)
    return all(permission in granted for permission in permissions)


def effective_permissions(
    actor: ActorContext,
    tenant_id: str | None,
    plan: PlanFeatureSet | None = None,
) -> frozenset[Permission]:
    """Permissions an actor holds inside `tenant_id` through global and company roles."""

    if not tenant_id:
        raise MissingCompanyContextError("effective_permissions")

    granted: set[Permission] = set()
    for role in actor.active_global_roles():
        granted |= permissions_for(role)

    company_role = actor.highest_role_in(tenant_id)
    if company_role is not None:
        granted |= permissions_for(company_role, plan)
    return frozenset(granted)


def within_limit(plan: PlanFeatureSet, key: LimitKey, current_usage: int | float, *, requested: int | float = 1) -> bool:
    """Whether `requested` more units fit under the plan limit; absent limits are unconstrained."""

    limit = plan.limit(key)
    if limit is None:
        return True
    return current_usage + requested <= limit
