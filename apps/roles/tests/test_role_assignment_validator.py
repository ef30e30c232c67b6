from __future__ import annotations

import pytest

from erp_roles.authz.assignments import ActorContext, RoleAssignment, Scope
from erp_roles.authz.catalog import COMPANY_ROLES, GLOBAL_ROLES, RoleId
from erp_roles.authz.errors import DenialReason, MissingCompanyContextError, RoleScopeMismatchError, UnknownRoleError
from erp_roles.authz.validator import (
    ALL_TENANTS,
    assignable_roles_for,
    can_assign_role,
    denial_reason,
    highest_role_in_company,
    tenants_where_actor_may_assign,
)


def _company(role: RoleId, tenant_id: str, *, active: bool = True) -> RoleAssignment:
    return RoleAssignment(scope=Scope.company(tenant_id), role=role, is_active=active, granted_by="seed")


def _global(role: RoleId, *, active: bool = True) -> RoleAssignment:
    return RoleAssignment(scope=Scope.global_scope(), role=role, is_active=active)


def _actor(*assignments: RoleAssignment) -> ActorContext:
    return ActorContext.of(assignments)


def test_super_admin_may_assign_anything_anywhere() -> None:
    actor = _actor(_global(RoleId.SUPER_ADMIN))

    for role in GLOBAL_ROLES:
        assert can_assign_role(actor, role, Scope.global_scope()).allowed is True
    for role in COMPANY_ROLES:
        assert can_assign_role(actor, role, Scope.company("T9")).allowed is True
    assert can_assign_role(actor, RoleId.COMPANY_ADMIN, Scope.company(None)).allowed is True


def test_inactive_super_admin_gets_no_bypass() -> None:
    actor = _actor(_global(RoleId.SUPER_ADMIN, active=False), _company(RoleId.MANAGER, "T1"))

    decision = can_assign_role(actor, RoleId.COMPANY_ADMIN, Scope.company("T1"))

    assert decision.allowed is False
    assert decision.reason == DenialReason.INSUFFICIENT_PRIVILEGE


def test_only_super_admin_may_grant_global_roles() -> None:
    actors = [
        _actor(_global(RoleId.SYSTEM_ADMIN)),
        _actor(_company(RoleId.COMPANY_ADMIN, "T1")),
        _actor(),
    ]
    for actor in actors:
        for role in (RoleId.SUPER_ADMIN, RoleId.SYSTEM_ADMIN):
            decision = can_assign_role(actor, role, Scope.global_scope())
            assert decision.allowed is False
            assert decision.reason == DenialReason.GLOBAL_ROLE_RESTRICTED


def test_company_scope_without_tenant_is_denied() -> None:
    actor = _actor(_company(RoleId.COMPANY_ADMIN, "T1"))

    decision = can_assign_role(actor, RoleId.VIEWER, Scope.company(None))

    assert decision.allowed is False
    assert decision.reason == DenialReason.MISSING_COMPANY_CONTEXT


def test_company_admin_scenario() -> None:
    actor = _actor(_company(RoleId.COMPANY_ADMIN, "T1"))

    allowed = can_assign_role(actor, RoleId.MANAGER, Scope.company("T1"))
    denied = can_assign_role(actor, RoleId.COMPANY_ADMIN, Scope.company("T1"))

    assert allowed.allowed is True
    assert allowed.actor_role == RoleId.COMPANY_ADMIN
    assert denied.allowed is False
    assert denied.reason == DenialReason.INSUFFICIENT_PRIVILEGE
    assert "CompanyAdmin cannot assign CompanyAdmin" in (denied.message or "")


def test_manager_scenario() -> None:
    actor = _actor(_company(RoleId.MANAGER, "T1"))

    assert can_assign_role(actor, RoleId.EMPLOYEE, Scope.company("T1")).allowed is True
    denied = can_assign_role(actor, RoleId.COMPANY_ADMIN, Scope.company("T1"))
    assert denied.allowed is False
    assert denied.message == "Manager cannot assign CompanyAdmin."


def test_employee_has_no_assignment_rights() -> None:
    actor = _actor(_company(RoleId.EMPLOYEE, "T1"))

    decision = can_assign_role(actor, RoleId.VIEWER, Scope.company("T1"))

    assert decision.allowed is False
    assert decision.reason == DenialReason.INSUFFICIENT_PRIVILEGE
    assert "role has no assignment rights" in (decision.message or "")


def test_role_in_another_tenant_does_not_count() -> None:
    actor = _actor(_company(RoleId.COMPANY_ADMIN, "T1"), _company(RoleId.VIEWER, "T2"))

    other = can_assign_role(actor, RoleId.VIEWER, Scope.company("T3"))
    weak = can_assign_role(actor, RoleId.VIEWER, Scope.company("T2"))

    assert other.reason == DenialReason.NO_ROLE_IN_COMPANY
    assert other.actor_role is None
    assert weak.reason == DenialReason.INSUFFICIENT_PRIVILEGE


def test_inactive_company_role_is_ignored() -> None:
    actor = _actor(_company(RoleId.COMPANY_ADMIN, "T1", active=False))

    decision = can_assign_role(actor, RoleId.VIEWER, Scope.company("T1"))

    assert decision.reason == DenialReason.NO_ROLE_IN_COMPANY


def test_highest_role_in_tenant_wins() -> None:
    actor = _actor(
        _company(RoleId.VIEWER, "T1"),
        _company(RoleId.COMPANY_ADMIN, "T1"),
        _company(RoleId.MANAGER, "T1"),
    )

    assert highest_role_in_company(actor, "T1") == RoleId.COMPANY_ADMIN
    assert can_assign_role(actor, RoleId.MANAGER, Scope.company("T1")).allowed is True


def test_decisions_are_repeatable() -> None:
    actor = _actor(_company(RoleId.MANAGER, "T1"))

    first = can_assign_role(actor, RoleId.COMPANY_ADMIN, Scope.company("T1"))
    second = can_assign_role(actor, RoleId.COMPANY_ADMIN, Scope.company("T1"))

    assert first == second


def test_unknown_target_role_is_a_hard_failure() -> None:
    actor = _actor(_global(RoleId.SUPER_ADMIN))

    with pytest.raises(UnknownRoleError):
        can_assign_role(actor, "owner", Scope.company("T1"))  # type: ignore[arg-type]


def test_role_and_scope_must_agree() -> None:
    super_admin = _actor(_global(RoleId.SUPER_ADMIN))
    admin = _actor(_company(RoleId.COMPANY_ADMIN, "T1"))

    with pytest.raises(RoleScopeMismatchError):
        can_assign_role(super_admin, RoleId.MANAGER, Scope.global_scope())
    with pytest.raises(RoleScopeMismatchError):
        can_assign_role(super_admin, RoleId.VIEWER, Scope.global_scope())
    with pytest.raises(RoleScopeMismatchError):
        can_assign_role(admin, RoleId.SUPER_ADMIN, Scope.company("T1"))


def test_assignable_roles_for() -> None:
    super_admin = _actor(_global(RoleId.SUPER_ADMIN))
    manager = _actor(_company(RoleId.MANAGER, "T1"))

    assert assignable_roles_for(super_admin, "T1") == COMPANY_ROLES
    assert assignable_roles_for(manager, "T1") == {RoleId.EMPLOYEE, RoleId.VIEWER}
    assert assignable_roles_for(manager, "T2") == frozenset()

    with pytest.raises(MissingCompanyContextError):
        assignable_roles_for(manager, None)


def test_tenants_where_actor_may_assign() -> None:
    super_admin = _actor(_global(RoleId.SUPER_ADMIN))
    admin = _actor(
        _company(RoleId.COMPANY_ADMIN, "T1"),
        _company(RoleId.COMPANY_ADMIN, "T3"),
        _company(RoleId.EMPLOYEE, "T4"),
        _company(RoleId.MANAGER, "T5", active=False),
    )

    assert tenants_where_actor_may_assign(super_admin) == ALL_TENANTS
    assert tenants_where_actor_may_assign(admin) == {"T1", "T3"}
    assert tenants_where_actor_may_assign(_actor(_company(RoleId.MANAGER, "T2"))) == {"T2"}


def test_denial_reason_messages() -> None:
    assert "no role" in denial_reason(None, RoleId.VIEWER, "T1")
    assert "T1" in denial_reason(None, RoleId.VIEWER, "T1")
    assert denial_reason(RoleId.VIEWER, RoleId.VIEWER, "T1") == "Your Viewer role has no assignment rights."
    assert denial_reason(RoleId.MANAGER, RoleId.COMPANY_ADMIN, "T1") == "Manager cannot assign CompanyAdmin."
    assert "self-escalation" in denial_reason(RoleId.COMPANY_ADMIN, RoleId.COMPANY_ADMIN, "T1")
    assert denial_reason(RoleId.MANAGER, RoleId.MANAGER, "T1") == "Manager cannot assign Manager."
