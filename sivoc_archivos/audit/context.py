# sivoc_archivos/audit/context.py
from __future__ import annotations

from contextvars import ContextVar

# Metadatos del request en curso (los setea el middleware de main.py)
current_request_meta: ContextVar[dict] = ContextVar("current_request_meta", default={})


def current_request_id() -> str | None:
    return (current_request_meta.get() or {}).get("request_id")
