from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
acting_user_var: ContextVar[str | None] = ContextVar("acting_user", default=None)


def set_correlation_id(value: str | None) -> Token[str | None]:
    return correlation_id_var.set(value)


def reset_correlation_id(token: Token[str | None]) -> None:
    correlation_id_var.reset(token)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def get_acting_user() -> str | None:
    return acting_user_var.get()


@contextmanager
def acting_as(user_id: str | None) -> Iterator[str | None]:
    """Bind the user performing a role change for logs and audit entries.

    A nested binding for the same user keeps the outer one; a different user
    shadows it until the block exits.
    """

    current = acting_user_var.get()
    if user_id is None or user_id == current:
        yield current
        return

    token = acting_user_var.set(user_id)
    try:
        yield user_id
    finally:
        acting_user_var.reset(token)


def get_log_context() -> dict[str, str | None]:
    return {"correlation_id": get_correlation_id(), "acting_user": get_acting_user()}
