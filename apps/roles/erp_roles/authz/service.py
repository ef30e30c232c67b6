from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from erp_roles import audit
from erp_roles.authz.assignments import ActorContext, Scope
from erp_roles.authz.catalog import RoleId, ScopeKind
from erp_roles.authz.errors import DenialReason, RoleAssignmentDeniedError, RoleEngineError
from erp_roles.authz.schemas import RoleAssignmentRecord, RoleGrantRequest
from erp_roles.authz.tenancy import can_have_multi_company_role
from erp_roles.authz.validator import can_assign_role
from erp_roles.context import acting_as
from erp_roles.core.config import get_settings
from erp_roles.metrics import observe_grant_decision, observe_input_error


logger = logging.getLogger("erp_roles.authz.grants")


@dataclass(frozen=True, slots=True)
class GrantDecision:
    allowed: bool
    role: RoleId
    scope: Scope
    reason: DenialReason | None = None
    message: str | None = None
    actor_role: RoleId | None = None
    existing_role: RoleId | None = None

    @property
    def scope_kind(self) -> ScopeKind:
        return self.scope.kind

    @property
    def tenant_id(self) -> str | None:
        return self.scope.tenant_id


class RoleAssignmentService:
    """Combines the actor privilege check with the target's tenancy constraints."""

    def evaluate_grant(
        self,
        *,
        actor_id: str,
        actor: ActorContext,
        target_user_id: str | None,
        target: ActorContext | None,
        role: RoleId,
        scope: Scope,
    ) -> GrantDecision:
        with acting_as(actor_id):
            try:
                decision = self._decide(actor, target or ActorContext(), role, scope)
            except RoleEngineError as exc:
                self._reject_input(actor_id=actor_id, target_user_id=target_user_id, exc=exc)
                raise

            self._record_outcome(actor_id=actor_id, target_user_id=target_user_id, decision=decision)
        return decision

    def ensure_grant_allowed(
        self,
        *,
        actor_id: str,
        actor: ActorContext,
        target_user_id: str | None,
        target: ActorContext | None,
        role: RoleId,
        scope: Scope,
    ) -> GrantDecision:
        decision = self.evaluate_grant(
            actor_id=actor_id,
            actor=actor,
            target_user_id=target_user_id,
            target=target,
            role=role,
            scope=scope,
        )
        if not decision.allowed:
            raise RoleAssignmentDeniedError(decision)
        return decision

    def evaluate_record_grant(
        self,
        *,
        actor_id: str,
        actor_records: Iterable[dict[str, Any]],
        target_user_id: str | None,
        target_records: Iterable[dict[str, Any]],
        request: RoleGrantRequest,
    ) -> GrantDecision:
        """Same as `evaluate_grant`, starting from raw user-document role entries."""

        accept_legacy = get_settings().roles_accept_legacy_aliases
        with acting_as(actor_id):
            try:
                actor = self._context_from_records(actor_records, accept_legacy=accept_legacy)
                target = self._context_from_records(target_records, accept_legacy=accept_legacy)
                role, scope = request.to_target(accept_legacy=accept_legacy)
            except RoleEngineError as exc:
                self._reject_input(actor_id=actor_id, target_user_id=target_user_id, exc=exc)
                raise

        return self.evaluate_grant(
            actor_id=actor_id,
            actor=actor,
            target_user_id=target_user_id,
            target=target,
            role=role,
            scope=scope,
        )

    @staticmethod
    def _reject_input(*, actor_id: str, target_user_id: str | None, exc: RoleEngineError) -> None:
        observe_input_error(type(exc).__name__)
        logger.warning(
            "role.grant.invalid_input",
            extra={"actor_id": actor_id, "target_user_id": target_user_id, "error": str(exc)},
        )

    @staticmethod
    def _context_from_records(records: Iterable[dict[str, Any]], *, accept_legacy: bool) -> ActorContext:
        return ActorContext.of(
            RoleAssignmentRecord.model_validate(record).to_assignment(accept_legacy=accept_legacy)
            for record in records
        )

    @staticmethod
    def _decide(actor: ActorContext, target: ActorContext, role: RoleId, scope: Scope) -> GrantDecision:
        verdict = can_assign_role(actor, role, scope)
        if not verdict.allowed:
            return GrantDecision(
                allowed=False,
                role=role,
                scope=scope,
                reason=verdict.reason,
                message=verdict.message,
                actor_role=verdict.actor_role,
            )

        if scope.is_global:
            return GrantDecision(allowed=True, role=role, scope=scope, actor_role=verdict.actor_role)

        if not scope.tenant_id:
            # SuperAdmin passes the privilege check but a company role still needs a tenant.
            return GrantDecision(
                allowed=False,
                role=role,
                scope=scope,
                reason=DenialReason.MISSING_COMPANY_CONTEXT,
                message="A company id is required to assign a company role.",
                actor_role=verdict.actor_role,
            )

        tenancy = can_have_multi_company_role(target, role, scope.tenant_id)
        return GrantDecision(
            allowed=tenancy.allowed,
            role=role,
            scope=scope,
            reason=tenancy.reason,
            message=tenancy.message,
            actor_role=verdict.actor_role,
            existing_role=tenancy.existing_role,
        )

    @staticmethod
    def _record_outcome(*, actor_id: str, target_user_id: str | None, decision: GrantDecision) -> None:
        settings = get_settings()
        observe_grant_decision(decision.scope_kind.value, decision.allowed, decision.reason)

        fields = {
            "actor_id": actor_id,
            "target_user_id": target_user_id,
            "tenant_id": decision.tenant_id,
            "role": decision.role.value,
            "scope": str(decision.scope),
            "actor_role": decision.actor_role.value if decision.actor_role else None,
        }
        if decision.allowed:
            logger.info("role.grant.allowed", extra={**fields, "outcome": "allowed"})
        else:
            logger.warning(
                "role.grant.denied",
                extra={**fields, "outcome": "denied", "reason": decision.reason},
            )

        should_audit = settings.roles_audit_grants if decision.allowed else settings.roles_audit_denials
        if not should_audit:
            return
        audit.record(
            actor_user_id=actor_id,
            entity_type="authz.role_grant",
            entity_id=target_user_id or "new-user",
            action="role.grant.allowed" if decision.allowed else "role.grant.denied",
            before=None,
            after={
                **fields,
                "reason": decision.reason.value if decision.reason else None,
                "message": decision.message,
                "existing_role": decision.existing_role.value if decision.existing_role else None,
            },
        )


role_assignment_service = RoleAssignmentService()
