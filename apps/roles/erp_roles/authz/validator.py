from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from erp_roles.authz.assignments import ActorContext, Scope
from erp_roles.authz.catalog import COMPANY_ROLES, RoleId, assignable_roles_of, display_name_of, scope_kind_of
from erp_roles.authz.errors import DenialReason, MissingCompanyContextError, RoleScopeMismatchError, UnknownRoleError


ALL_TENANTS: Final = "*"

_ASSIGNING_ROLES = frozenset({RoleId.COMPANY_ADMIN, RoleId.MANAGER})


@dataclass(frozen=True, slots=True)
class AssignmentDecision:
    allowed: bool
    reason: DenialReason | None = None
    actor_role: RoleId | None = None
    message: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


def _allow(actor_role: RoleId | None = None) -> AssignmentDecision:
    return AssignmentDecision(allowed=True, actor_role=actor_role)


def _deny(reason: DenialReason, message: str, actor_role: RoleId | None = None) -> AssignmentDecision:
    return AssignmentDecision(allowed=False, reason=reason, actor_role=actor_role, message=message)


def highest_role_in_company(actor: ActorContext, tenant_id: str) -> RoleId | None:
    return actor.highest_role_in(tenant_id)


def can_assign_role(actor: ActorContext, target_role: RoleId, target_scope: Scope) -> AssignmentDecision:
    """Decide whether `actor` may grant `target_role` in `target_scope`.

    Checks run in a fixed order and stop at the first verdict: an active global
    SuperAdmin is always allowed; global grants are otherwise denied; company
    grants need a tenant id and are judged on the actor's highest active role
    inside that tenant only. A role whose scope class differs from
    `target_scope` is malformed input and raises RoleScopeMismatchError.
    """

    if not isinstance(target_role, RoleId):
        raise UnknownRoleError(target_role)
    if scope_kind_of(target_role) != target_scope.kind:
        raise RoleScopeMismatchError(target_role.value, target_scope.kind.value)

    if actor.is_super_admin:
        return _allow(RoleId.SUPER_ADMIN)

    if target_scope.is_global:
        return _deny(
            DenialReason.GLOBAL_ROLE_RESTRICTED,
            f"Only SuperAdmin can assign global role {display_name_of(target_role)}.",
        )

    tenant_id = target_scope.tenant_id
    if not tenant_id:
        return _deny(
            DenialReason.MISSING_COMPANY_CONTEXT,
            "A company id is required to assign a company role.",
        )

    actor_role = actor.highest_role_in(tenant_id)
    if actor_role is None:
        return _deny(
            DenialReason.NO_ROLE_IN_COMPANY,
            denial_reason(None, target_role, tenant_id),
        )

    if target_role in assignable_roles_of(actor_role):
        return _allow(actor_role)
    return _deny(
        DenialReason.INSUFFICIENT_PRIVILEGE,
        denial_reason(actor_role, target_role, tenant_id),
        actor_role,
    )


def assignable_roles_for(actor: ActorContext, tenant_id: str | None) -> frozenset[RoleId]:
    if actor.is_super_admin:
        return COMPANY_ROLES
    if not tenant_id:
        raise MissingCompanyContextError("assignable_roles_for")

    actor_role = actor.highest_role_in(tenant_id)
    if actor_role is None:
        return frozenset()
    return assignable_roles_of(actor_role)


def tenants_where_actor_may_assign(actor: ActorContext) -> frozenset[str] | Literal["*"]:
    """Tenants where the actor holds an assigning role, or "*" for SuperAdmin."""

    if actor.is_super_admin:
        return ALL_TENANTS
    return frozenset(
        assignment.scope.tenant_id
        for assignment in actor.active_company_assignments()
        if assignment.role in _ASSIGNING_ROLES and assignment.scope.tenant_id
    )


def denial_reason(actor_role: RoleId | None, target_role: RoleId, tenant_id: str | None = None) -> str:
    if actor_role is None:
        where = f"company {tenant_id}" if tenant_id else "this company"
        return f"You have no role in {where}; no role assignment rights there."

    actor_name = display_name_of(actor_role)
    target_name = display_name_of(target_role)

    if actor_role in {RoleId.EMPLOYEE, RoleId.VIEWER}:
        return f"Your {actor_name} role has no assignment rights."

    if actor_role == RoleId.MANAGER and target_role == RoleId.COMPANY_ADMIN:
        return "Manager cannot assign CompanyAdmin."

    if actor_role == RoleId.COMPANY_ADMIN and target_role == RoleId.COMPANY_ADMIN:
        # Peer grants would create an admin outside the granting admin's control.
        return "CompanyAdmin cannot assign CompanyAdmin (self-escalation prevention)."

    return f"{actor_name} cannot assign {target_name}."
