from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from erp_roles.authz.assignments import ActorContext
from erp_roles.authz.catalog import RoleId, display_name_of, is_company_role
from erp_roles.authz.errors import DenialReason, MissingCompanyContextError, RoleScopeMismatchError, UnknownRoleError


SINGLE_TENANT_ROLES = frozenset({RoleId.EMPLOYEE, RoleId.VIEWER})

# Roles an existing multi-tenant role may be paired with in another tenant.
MULTI_TENANT_SPAN: MappingProxyType[RoleId, frozenset[RoleId]] = MappingProxyType(
    {
        RoleId.COMPANY_ADMIN: frozenset({RoleId.COMPANY_ADMIN, RoleId.MANAGER}),
        RoleId.MANAGER: frozenset({RoleId.MANAGER}),
    }
)


@dataclass(frozen=True, slots=True)
class TenancyDecision:
    allowed: bool
    reason: DenialReason | None = None
    message: str | None = None
    existing_role: RoleId | None = None

    def __bool__(self) -> bool:
        return self.allowed


def can_have_multi_company_role(target: ActorContext, new_role: RoleId, new_tenant_id: str | None) -> TenancyDecision:
    """Check a new company grant against the target user's roles in other tenants."""

    if not isinstance(new_role, RoleId):
        raise UnknownRoleError(new_role)
    if not is_company_role(new_role):
        raise RoleScopeMismatchError(new_role.value, "company")
    if not new_tenant_id:
        raise MissingCompanyContextError("can_have_multi_company_role")

    active = target.active_company_assignments()
    if not active:
        return TenancyDecision(allowed=True)

    same_tenant = next((item for item in active if item.scope.tenant_id == new_tenant_id), None)
    if same_tenant is not None:
        return TenancyDecision(
            allowed=False,
            reason=DenialReason.DUPLICATE_ROLE_IN_TENANT,
            message=(
                f"User already holds an active {display_name_of(same_tenant.role)} role in company "
                f"{new_tenant_id}; revoke it before assigning another."
            ),
            existing_role=same_tenant.role,
        )

    existing_role = active[0].role
    existing_name = display_name_of(existing_role)

    if existing_role in SINGLE_TENANT_ROLES:
        return TenancyDecision(
            allowed=False,
            reason=DenialReason.SINGLE_TENANCY_VIOLATION,
            message=(
                f"{existing_name} is a single-tenant role; revoke the current assignment "
                "before assigning a role in another company."
            ),
            existing_role=existing_role,
        )

    allowed_span = MULTI_TENANT_SPAN.get(existing_role, frozenset())
    if new_role not in allowed_span:
        allowed_names = " or ".join(sorted(display_name_of(role) for role in allowed_span))
        return TenancyDecision(
            allowed=False,
            reason=DenialReason.TENANCY_SPAN_INCOMPATIBLE,
            message=f"A user with the {existing_name} role can only hold {allowed_names} roles in other companies.",
            existing_role=existing_role,
        )
    return TenancyDecision(allowed=True, existing_role=existing_role)
