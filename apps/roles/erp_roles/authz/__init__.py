from erp_roles.authz.assignments import ActorContext, RoleAssignment, Scope
from erp_roles.authz.catalog import (
    COMPANY_ROLES,
    GLOBAL_ROLES,
    RoleId,
    ScopeKind,
    assignable_roles_of,
    level_of,
    parse_role,
)
from erp_roles.authz.errors import (
    AuthorizationError,
    DenialReason,
    MissingCompanyContextError,
    RoleAssignmentDeniedError,
    RoleEngineError,
    RoleScopeMismatchError,
    UnknownRoleError,
)
from erp_roles.authz.permissions import FeatureKey, LimitKey, Permission, PlanFeatureSet, permissions_for
from erp_roles.authz.tenancy import TenancyDecision, can_have_multi_company_role
from erp_roles.authz.validator import (
    ALL_TENANTS,
    AssignmentDecision,
    assignable_roles_for,
    can_assign_role,
    denial_reason,
    tenants_where_actor_may_assign,
)

__all__ = [
    "ActorContext",
    "RoleAssignment",
    "Scope",
    "COMPANY_ROLES",
    "GLOBAL_ROLES",
    "RoleId",
    "ScopeKind",
    "assignable_roles_of",
    "level_of",
    "parse_role",
    "AuthorizationError",
    "DenialReason",
    "MissingCompanyContextError",
    "RoleAssignmentDeniedError",
    "RoleEngineError",
    "RoleScopeMismatchError",
    "UnknownRoleError",
    "FeatureKey",
    "LimitKey",
    "Permission",
    "PlanFeatureSet",
    "permissions_for",
    "TenancyDecision",
    "can_have_multi_company_role",
    "ALL_TENANTS",
    "AssignmentDecision",
    "assignable_roles_for",
    "can_assign_role",
    "denial_reason",
    "tenants_where_actor_may_assign",
]
