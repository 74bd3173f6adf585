# sivoc_archivos/adapter/client.py
from __future__ import annotations

import logging
from typing import BinaryIO, List, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from sivoc_archivos.adapter.server_config import join_url, view_url
from sivoc_archivos.schemas.archivos import ArchivoFilePondOut

log = logging.getLogger(__name__)


class AdapterError(Exception):
    """Error que se le entrega al widget (callback ``error``)."""


class LoadedFile(BaseModel):
    name: str
    type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class FilePondClient:
    """
    Callbacks de red del widget (process / revert / remove / load) contra el gateway.
    Sin reintentos ni cancelación: cada archivo sigue su propio ciclo.
    """

    def __init__(
        self,
        http: httpx.Client,
        base: str = "/filepond",
        entidad_nombre: str = "permiso",
        entidad_id: Optional[str] = None,
    ):
        self.http = http
        self.base = base
        self.entidad_nombre = entidad_nombre
        self.entidad_id = entidad_id

    def _file_url(self, ruta: str, server_id: str) -> str:
        # el nombre almacenado conserva "#", "?" y "%" del original
        return join_url(self.base, ruta, quote(server_id, safe=""))

    def ondata(self, data: dict) -> dict:
        data["entidad_nombre"] = self.entidad_nombre
        if self.entidad_id is not None:
            data["entidad_id"] = str(self.entidad_id)
        return data

    def process(
        self,
        filename: str,
        content: Union[bytes, BinaryIO],
        content_type: str = "application/octet-stream",
    ) -> str:
        """POST /upload; devuelve el id que FilePond guarda como ``serverId``."""
        try:
            resp = self.http.post(
                join_url(self.base, "upload"),
                files={"filepond": (filename, content, content_type)},
                data=self.ondata({}),
            )
        except httpx.HTTPError as e:
            raise AdapterError("Error uploading file") from e
        if not resp.is_success:
            raise AdapterError(_error_de(resp, "Error uploading file"))
        return ArchivoFilePondOut.model_validate(resp.json()).server_id

    def revert(self, server_id: str) -> None:
        # Igual que el widget: solo una falla de red es error, el status no se revisa
        try:
            self.http.delete(self._file_url("upload", server_id))
        except httpx.HTTPError as e:
            raise AdapterError("Error deleting file") from e

    remove = revert

    def load(self, server_id: str) -> LoadedFile:
        try:
            resp = self.http.get(self._file_url("uploads", server_id))
        except httpx.HTTPError as e:
            raise AdapterError("Error loading file") from e
        if not resp.is_success:
            raise AdapterError("Error loading file")
        mime = (resp.headers.get("content-type") or "").split(";")[0].strip()
        return LoadedFile(name=server_id, type=mime, content=resp.content)

    def list_files(self, entidad_id: Optional[str] = None) -> List[ArchivoFilePondOut]:
        url = join_url(self.base, "files", str(entidad_id) if entidad_id is not None else "")
        try:
            body = self.http.get(url).json()
        except (httpx.HTTPError, ValueError) as e:
            log.error("Error loading existing files: %s", e)
            return []
        if not isinstance(body, list):
            log.error("Invalid files response: %s", body)
            return []
        return [ArchivoFilePondOut.model_validate(f) for f in body]

    def view_url(self, nombre: str) -> str:
        return view_url(self.base, nombre)


def _error_de(resp: httpx.Response, default: str) -> str:
    try:
        return resp.json().get("error") or default
    except (ValueError, AttributeError):
        return default
