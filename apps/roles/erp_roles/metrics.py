from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

from erp_roles.core.config import get_settings


role_grant_decisions_total = Counter(
    "role_grant_decisions_total",
    "Role grant decisions by scope, outcome and reason",
    ["scope", "outcome", "reason"],
)

role_engine_input_errors_total = Counter(
    "role_engine_input_errors_total",
    "Malformed role engine inputs by error type",
    ["error"],
)


def observe_grant_decision(scope: str, allowed: bool, reason: str | None) -> None:
    if not get_settings().metrics_enabled:
        return
    outcome = "allowed" if allowed else "denied"
    role_grant_decisions_total.labels(scope=scope, outcome=outcome, reason=reason or "none").inc()


def observe_input_error(error: str) -> None:
    if not get_settings().metrics_enabled:
        return
    role_engine_input_errors_total.labels(error=error).inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
