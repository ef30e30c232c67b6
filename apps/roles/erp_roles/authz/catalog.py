from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from erp_roles.authz.errors import RoleScopeMismatchError, UnknownRoleError


class RoleId(StrEnum):
    SUPER_ADMIN = "super_admin"
    SYSTEM_ADMIN = "system_admin"
    COMPANY_ADMIN = "company_admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"
    VIEWER = "viewer"


class ScopeKind(StrEnum):
    GLOBAL = "global"
    COMPANY = "company"


@dataclass(frozen=True, slots=True)
class RoleDefinition:
    role: RoleId
    scope_kind: ScopeKind
    level: int
    display_name: str
    assignable: frozenset[RoleId] = frozenset()


_DEFINITIONS: tuple[RoleDefinition, ...] = (
    RoleDefinition(RoleId.SUPER_ADMIN, ScopeKind.GLOBAL, 100, "SuperAdmin"),
    RoleDefinition(RoleId.SYSTEM_ADMIN, ScopeKind.GLOBAL, 90, "SystemAdmin"),
    RoleDefinition(
        RoleId.COMPANY_ADMIN,
        ScopeKind.COMPANY,
        50,
        "CompanyAdmin",
        frozenset({RoleId.MANAGER, RoleId.EMPLOYEE, RoleId.VIEWER}),
    ),
    RoleDefinition(
        RoleId.MANAGER,
        ScopeKind.COMPANY,
        40,
        "Manager",
        frozenset({RoleId.EMPLOYEE, RoleId.VIEWER}),
    ),
    RoleDefinition(RoleId.EMPLOYEE, ScopeKind.COMPANY, 30, "Employee"),
    RoleDefinition(RoleId.VIEWER, ScopeKind.COMPANY, 20, "Viewer"),
)

ROLE_DEFINITIONS: MappingProxyType[RoleId, RoleDefinition] = MappingProxyType(
    {definition.role: definition for definition in _DEFINITIONS}
)

GLOBAL_ROLES: frozenset[RoleId] = frozenset(
    definition.role for definition in _DEFINITIONS if definition.scope_kind == ScopeKind.GLOBAL
)
COMPANY_ROLES: frozenset[RoleId] = frozenset(
    definition.role for definition in _DEFINITIONS if definition.scope_kind == ScopeKind.COMPANY
)

# Identifiers still found in older user documents.
LEGACY_ROLE_ALIASES: MappingProxyType[str, RoleId] = MappingProxyType(
    {
        "admin_empresa": RoleId.COMPANY_ADMIN,
        "admin": RoleId.COMPANY_ADMIN,
    }
)


def parse_role(value: Any, *, accept_legacy: bool = False) -> RoleId:
    """Resolve a raw identifier to a RoleId, raising UnknownRoleError otherwise."""

    if isinstance(value, RoleId):
        return value
    if not isinstance(value, str):
        raise UnknownRoleError(value)

    normalized = value.strip().lower()
    try:
        return RoleId(normalized)
    except ValueError:
        pass
    if accept_legacy and normalized in LEGACY_ROLE_ALIASES:
        return LEGACY_ROLE_ALIASES[normalized]
    raise UnknownRoleError(value)


def _definition(role: Any) -> RoleDefinition:
    if not isinstance(role, RoleId):
        raise UnknownRoleError(role)
    return ROLE_DEFINITIONS[role]


def level_of(role: RoleId) -> int:
    return _definition(role).level


def display_name_of(role: RoleId) -> str:
    return _definition(role).display_name


def scope_kind_of(role: RoleId) -> ScopeKind:
    return _definition(role).scope_kind


def is_global_role(role: RoleId) -> bool:
    return scope_kind_of(role) == ScopeKind.GLOBAL


def is_company_role(role: RoleId) -> bool:
    return scope_kind_of(role) == ScopeKind.COMPANY


def outranks(role: RoleId, other: RoleId) -> bool:
    return level_of(role) > level_of(other)


def assignable_roles_of(granting_role: RoleId) -> frozenset[RoleId]:
    """Company roles that `granting_role` may grant inside its own tenant."""

    definition = _definition(granting_role)
    if definition.scope_kind != ScopeKind.COMPANY:
        raise RoleScopeMismatchError(granting_role.value, ScopeKind.COMPANY.value)
    return definition.assignable


def _check_catalog(definitions: tuple[RoleDefinition, ...]) -> None:
    for kind in ScopeKind:
        levels = [definition.level for definition in definitions if definition.scope_kind == kind]
        if len(levels) != len(set(levels)):
            raise RuntimeError(f"Duplicate privilege levels among {kind.value} roles")

    by_role = {definition.role: definition for definition in definitions}
    for definition in definitions:
        if definition.role in definition.assignable:
            raise RuntimeError(f"Role '{definition.role}' may not grant itself")
        for granted in definition.assignable:
            granted_definition = by_role[granted]
            if granted_definition.scope_kind != ScopeKind.COMPANY:
                raise RuntimeError(f"Role '{definition.role}' may only grant company roles")
            if granted_definition.level >= definition.level:
                raise RuntimeError(f"Role '{definition.role}' may not grant equal or higher role '{granted}'")


_check_catalog(_DEFINITIONS)
