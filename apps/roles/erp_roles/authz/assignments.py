from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from erp_roles.authz.catalog import RoleId, ScopeKind, level_of, scope_kind_of
from erp_roles.authz.errors import MissingCompanyContextError, RoleScopeMismatchError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Scope:
    """Where a role applies: platform-wide, or inside one tenant."""

    kind: ScopeKind
    tenant_id: str | None = None

    @classmethod
    def global_scope(cls) -> Scope:
        return cls(kind=ScopeKind.GLOBAL)

    @classmethod
    def company(cls, tenant_id: str | None) -> Scope:
        return cls(kind=ScopeKind.COMPANY, tenant_id=tenant_id or None)

    @property
    def is_global(self) -> bool:
        return self.kind == ScopeKind.GLOBAL

    def __str__(self) -> str:
        if self.is_global:
            return "global"
        return f"company:{self.tenant_id or '?'}"


@dataclass(frozen=True, slots=True)
class RoleAssignment:
    scope: Scope
    role: RoleId
    is_active: bool = True
    granted_at: datetime | None = None
    granted_by: str | None = None

    def __post_init__(self) -> None:
        expected = scope_kind_of(self.role)
        if expected != self.scope.kind:
            raise RoleScopeMismatchError(self.role.value, self.scope.kind.value)
        if self.scope.kind == ScopeKind.COMPANY and not self.scope.tenant_id:
            raise MissingCompanyContextError("role_assignment")

    @property
    def tenant_id(self) -> str | None:
        return self.scope.tenant_id

    def is_active_in(self, tenant_id: str) -> bool:
        return self.is_active and self.scope.kind == ScopeKind.COMPANY and self.scope.tenant_id == tenant_id


@dataclass(frozen=True, slots=True)
class ActorContext:
    """Snapshot of the role assignments held by one user."""

    assignments: tuple[RoleAssignment, ...] = ()

    @classmethod
    def of(cls, assignments: Iterable[RoleAssignment]) -> ActorContext:
        return cls(assignments=tuple(assignments))

    def active(self) -> tuple[RoleAssignment, ...]:
        return tuple(assignment for assignment in self.assignments if assignment.is_active)

    def active_company_assignments(self) -> tuple[RoleAssignment, ...]:
        return tuple(assignment for assignment in self.active() if assignment.scope.kind == ScopeKind.COMPANY)

    def active_global_roles(self) -> tuple[RoleId, ...]:
        return tuple(assignment.role for assignment in self.active() if assignment.scope.kind == ScopeKind.GLOBAL)

    @property
    def is_super_admin(self) -> bool:
        return RoleId.SUPER_ADMIN in self.active_global_roles()

    def highest_role_in(self, tenant_id: str) -> RoleId | None:
        """Highest-level active role in `tenant_id`; first one wins on a tie."""

        best: RoleId | None = None
        for assignment in self.assignments:
            if not assignment.is_active_in(tenant_id):
                continue
            if best is None or level_of(assignment.role) > level_of(best):
                best = assignment.role
        return best
