"""Correlation ID propagation across tasks and log records."""

import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

# Copied into every task spawned from the current context
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    """Bind a correlation ID to the current context. Returns a reset token."""
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)


@contextmanager
def bind_correlation_id(cid: str | None) -> Iterator[str]:
    """Bind ``cid`` for the duration of the block, then restore the previous id.

    A falsy ``cid`` keeps the current id, or generates one when none is bound.
    """
    resolved = cid or get_correlation_id() or generate_correlation_id()
    token = set_correlation_id(resolved)
    try:
        yield resolved
    finally:
        reset_correlation_id(token)
