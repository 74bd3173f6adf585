# sivoc_archivos/clients/postgrest.py
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

import httpx
from pydantic import BaseModel, Field

from sivoc_archivos.audit.context import current_request_id

log = logging.getLogger(__name__)


class PostgrestResponse(BaseModel):
    """Respuesta normalizada: nunca lanza, quien llama revisa ``ok``."""
    ok: bool
    status_code: int
    data: Any = Field(default_factory=list)

    def first(self) -> Optional[dict]:
        if self.ok and isinstance(self.data, list) and self.data:
            return self.data[0]
        return None


def eq_filters(filters: Mapping[str, Any]) -> dict[str, str]:
    """{"entidad_id": 42} -> {"entidad_id": "eq.42"}; los None se omiten."""
    return {k: f"eq.{v}" for k, v in filters.items() if v is not None and v != ""}


class PostgrestClient:
    """
    Cliente mínimo para un PostgREST: filtros por igualdad + ``select``.
    Equivalente a ``fetchPostgREST``: respuesta ``{ok, data}`` en vez de excepciones.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float | None = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self.client.close()

    def _headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = dict(extra or {})
        rid = current_request_id()
        if rid:
            headers["X-Request-Id"] = rid
        return headers

    def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> PostgrestResponse:
        try:
            resp = self.client.request(
                method, path, params=params, json=json, headers=self._headers(headers)
            )
        except httpx.HTTPError as e:
            log.error("PostgREST %s %s → sin respuesta: %s", method, path, e)
            return PostgrestResponse(ok=False, status_code=0, data={"message": str(e)})

        try:
            data = resp.json() if resp.content else []
        except ValueError:
            data = {"message": resp.text}

        if not resp.is_success:
            log.warning("PostgREST %s %s → %s %s", method, path, resp.status_code, data)
        return PostgrestResponse(ok=resp.is_success, status_code=resp.status_code, data=data)

    # ── Atajos ────────────────────────────────────────────────────────────────
    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        columns: Iterable[str] | None = None,
    ) -> PostgrestResponse:
        params = eq_filters(filters or {})
        if columns:
            params["select"] = ",".join(columns)
        return self.request("GET", f"/{table}", params=params)

    def insert(self, table: str, row: Mapping[str, Any]) -> PostgrestResponse:
        return self.request(
            "POST", f"/{table}", json=dict(row), headers={"Prefer": "return=representation"}
        )

    def delete(self, table: str, filters: Mapping[str, Any]) -> PostgrestResponse:
        params = eq_filters(filters)
        if not params:
            # un DELETE sin filtro en PostgREST borra la tabla completa
            raise ValueError("delete() requiere al menos un filtro")
        return self.request("DELETE", f"/{table}", params=params)

    def ping(self) -> bool:
        return self.request("GET", "/").ok
