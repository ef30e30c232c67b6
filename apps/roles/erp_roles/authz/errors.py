from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from erp_roles.authz.service import GrantDecision


class DenialReason(StrEnum):
    MISSING_COMPANY_CONTEXT = "MISSING_COMPANY_CONTEXT"
    NO_ROLE_IN_COMPANY = "NO_ROLE_IN_COMPANY"
    INSUFFICIENT_PRIVILEGE = "INSUFFICIENT_PRIVILEGE"
    GLOBAL_ROLE_RESTRICTED = "GLOBAL_ROLE_RESTRICTED"
    DUPLICATE_ROLE_IN_TENANT = "DUPLICATE_ROLE_IN_TENANT"
    SINGLE_TENANCY_VIOLATION = "SINGLE_TENANCY_VIOLATION"
    TENANCY_SPAN_INCOMPATIBLE = "TENANCY_SPAN_INCOMPATIBLE"


class RoleEngineError(ValueError):
    """Base error for malformed input handed to the role engine."""


class UnknownRoleError(RoleEngineError):
    """Raised when a role identifier is outside the closed role set."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Unknown role identifier: {value!r}")


class MissingCompanyContextError(RoleEngineError):
    """Raised when a company-scoped operation is missing its tenant id."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Company scope requires a tenant id for '{operation}'")


class RoleScopeMismatchError(RoleEngineError):
    def __init__(self, role: str, expected_scope: str) -> None:
        self.role = role
        self.expected_scope = expected_scope
        super().__init__(f"Role '{role}' is not a {expected_scope} role")


class AuthorizationError(Exception):
    """Base authorization error for callers that prefer raising over decisions."""


class RoleAssignmentDeniedError(AuthorizationError):
    """Raised when a role grant is denied and the caller asked for an exception."""

    def __init__(self, decision: GrantDecision) -> None:
        self.decision = decision
        self.reason = decision.reason
        super().__init__(decision.message or f"Role assignment denied: {decision.reason}")
