from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from erp_roles.authz.assignments import RoleAssignment, Scope
from erp_roles.authz.catalog import RoleId, ScopeKind, parse_role, scope_kind_of
from erp_roles.authz.errors import DenialReason, RoleScopeMismatchError
from erp_roles.authz.permissions import FeatureKey, LimitKey, PlanFeatureSet


def _coerce_identifier(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class RoleAssignmentRecord(BaseModel):
    """Role entry as stored on a user document."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role_type: ScopeKind
    role: str = Field(min_length=1)
    company_id: str | None = None
    is_active: bool = True
    granted_at: datetime | None = None
    granted_by: str | None = None

    @field_validator("company_id", "granted_by", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> str | None:
        return _coerce_identifier(value)

    def to_assignment(self, *, accept_legacy: bool = False) -> RoleAssignment:
        role = parse_role(self.role, accept_legacy=accept_legacy)
        scope = Scope.global_scope() if self.role_type == ScopeKind.GLOBAL else Scope.company(self.company_id)
        return RoleAssignment(
            scope=scope,
            role=role,
            is_active=self.is_active,
            granted_at=self.granted_at,
            granted_by=self.granted_by,
        )


class RoleGrantRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    role_type: ScopeKind
    role: str = Field(min_length=1)
    company_id: str | None = None

    @field_validator("company_id", mode="before")
    @classmethod
    def coerce_company_id(cls, value: Any) -> str | None:
        return _coerce_identifier(value)

    def to_target(self, *, accept_legacy: bool = False) -> tuple[RoleId, Scope]:
        role = parse_role(self.role, accept_legacy=accept_legacy)
        if scope_kind_of(role) != self.role_type:
            raise RoleScopeMismatchError(role.value, self.role_type.value)
        if self.role_type == ScopeKind.GLOBAL:
            return role, Scope.global_scope()
        return role, Scope.company(self.company_id)


class PlanFeatureFlags(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    inventory_management: bool = False
    accounting: bool = False
    hrm: bool = False
    crm: bool = False
    project_management: bool = False
    reports: bool = False
    multi_currency: bool = False
    api_access: bool = False
    custom_branding: bool = False
    priority_support: bool = False
    advanced_analytics: bool = False
    audit_log: bool = False
    custom_integrations: bool = False
    dedicated_account: bool = False


class PlanLimits(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_users: int | None = Field(default=None, ge=0)
    max_products: int | None = Field(default=None, ge=0)
    max_monthly_transactions: int | None = Field(default=None, ge=0)
    storage_gb: float | None = Field(default=None, ge=0, alias="storageGB")
    max_api_calls: int | None = Field(default=None, ge=0)
    max_branches: int | None = Field(default=None, ge=0)


class PlanRecord(BaseModel):
    """Feature and limit sections of a subscription plan document."""

    features: PlanFeatureFlags = Field(default_factory=PlanFeatureFlags)
    limits: PlanLimits = Field(default_factory=PlanLimits)

    def to_feature_set(self) -> PlanFeatureSet:
        flags = {FeatureKey(name): value for name, value in self.features.model_dump().items()}
        limits = {LimitKey(name): value for name, value in self.limits.model_dump().items() if value is not None}
        return PlanFeatureSet(feature_flags=flags, limits=limits)


class GrantDecisionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    allowed: bool
    role: RoleId
    scope_kind: ScopeKind
    tenant_id: str | None
    reason: DenialReason | None = None
    message: str | None = None
    actor_role: RoleId | None = None
    existing_role: RoleId | None = None
