"""Request and job correlation ids carried through log records."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator
from uuid import uuid4

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the id of the request or worker tick being handled, if any."""
    return request_id_ctx_var.get()


@contextmanager
def correlation_scope(prefix: str, request_id: str | None = None) -> Iterator[str]:
    """Bind ``request_id`` (or a fresh ``<prefix>-<uuid>``) for the duration of the block."""
    value = request_id or f"{prefix}-{uuid4()}"
    token = request_id_ctx_var.set(value)
    try:
        yield value
    finally:
        request_id_ctx_var.reset(token)
