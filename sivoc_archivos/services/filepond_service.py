# sivoc_archivos/services/filepond_service.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import UploadFile

from sivoc_archivos.core.config import Settings
from sivoc_archivos.core.errors import (
    ArchivoError,
    MetadataFailure,
    NotFound,
    StorageFailure,
    ValidationError,
    error_message,
)
from sivoc_archivos.schemas.archivos import ArchivoFilePondOut, ArchivoRecord, ArchivoRegistro
from sivoc_archivos.services.almacenamiento import AlmacenamientoLocal, generar_nombre_almacenado
from sivoc_archivos.services.archivo_metadata_service import (
    COLS_ENCABEZADOS,
    ArchivoMetadataService,
)

log = logging.getLogger(__name__)

DEFAULT_MIME = "application/octet-stream"


def _read_and_check_size(up: UploadFile, max_size: int) -> bytes:
    # UploadFile.file es un SpooledTemporaryFile; leemos como máximo max_size + 1
    up.file.seek(0)
    data = up.file.read(max_size + 1)
    if len(data) > max_size:
        raise ValidationError("File too large")
    return data


class FilePondService:
    """
    Endpoints de FilePond (process / revert / load / restore) sobre disco + PostgREST.
    Cada operación hace a lo más una escritura en disco y una en el PostgREST.
    """

    def __init__(self, settings: Settings, metadata: ArchivoMetadataService, storage: AlmacenamientoLocal):
        self.settings = settings
        self.metadata = metadata
        self.storage = storage

    # ── process ──────────────────────────────────────────────────────────────
    def subir(
        self,
        up: Optional[UploadFile],
        entidad_nombre: Optional[str] = None,
        entidad_id: Optional[str] = None,
    ) -> ArchivoFilePondOut:
        if up is None or not up.filename:
            raise ValidationError("No file uploaded")

        # 1) Admisión: tipo y tamaño antes de tocar el disco
        mime = (up.content_type or "").split(";")[0].strip().lower()
        if mime not in self.settings.ALLOWED_MIME_TYPES:
            log.info("Upload rechazado: tipo %r no permitido (%s)", mime, up.filename)
            raise ValidationError("File type not allowed")
        data = _read_and_check_size(up, self.settings.MAX_FILE_SIZE)

        # 2) Archivo físico
        nombre_almacenado = generar_nombre_almacenado(up.filename)
        try:
            self.storage.guardar(nombre_almacenado, data)
        except OSError as e:
            log.exception("Upload: no se pudo escribir %s: %s", nombre_almacenado, e)
            raise StorageFailure("Upload failed")

        # 3) Metadata; si falla, se borra el archivo recién escrito
        entidad = entidad_nombre or self.settings.ENTIDAD_NOMBRE
        registro = ArchivoRegistro(
            entidad_nombre=entidad,
            entidad_id=entidad_id or None,
            nombre_original=up.filename,
            nombre_almacenado=nombre_almacenado,
            mime_type=mime,
            tamano=len(data),
            ruta_archivo=f"/uploads/{entidad}/{nombre_almacenado}",
        )
        try:
            resp = self.metadata.crear(registro)
            if not resp.ok:
                log.error("Upload: error de base de datos para %s: %s", nombre_almacenado, resp.data)
                raise MetadataFailure(error_message("009"))
            fila = resp.first() or {}
        except ArchivoError:
            self.storage.eliminar(nombre_almacenado)
            raise
        except Exception:
            log.exception("Upload: falla inesperada, limpiando %s", nombre_almacenado)
            self.storage.eliminar(nombre_almacenado)
            raise StorageFailure("Upload failed")

        log.info("Upload OK %s (%s bytes, entidad=%s/%s)", nombre_almacenado, len(data), entidad, entidad_id)
        return ArchivoFilePondOut(
            id=fila.get("id") or nombre_almacenado,
            original_name=up.filename,
            size=len(data),
            server_id=nombre_almacenado,
        )

    # ── restore / listado ────────────────────────────────────────────────────
    def listar(self, entidad_id: Optional[str]) -> List[ArchivoFilePondOut]:
        resp = self.metadata.listar_por_entidad(self.settings.ENTIDAD_NOMBRE, entidad_id)
        if not resp.ok:
            log.error("Listado: error de base de datos: %s", resp.data)
            raise MetadataFailure(error_message("010"))

        out: List[ArchivoFilePondOut] = []
        for row in resp.data or []:
            rec = ArchivoRecord.model_validate(row)
            out.append(ArchivoFilePondOut(
                id=rec.nombre_almacenado,
                original_name=rec.nombre_original,
                size=rec.tamano,
                server_id=rec.nombre_almacenado,
            ))
        return out

    # ── revert / remove ──────────────────────────────────────────────────────
    def eliminar(self, nombre_almacenado: str) -> str:
        resp = self.metadata.buscar_por_nombre(nombre_almacenado)
        if not resp.ok:
            log.error("Delete: error buscando %s: %s", nombre_almacenado, resp.data)
            raise MetadataFailure(error_message("011"))

        fila = resp.first()
        if not fila:
            raise NotFound("File not found")
        rec = ArchivoRecord.model_validate(fila)

        # 1) metadata primero
        borrado = self.metadata.eliminar(rec.id)
        if not borrado.ok:
            log.error("Delete: error de base de datos para %s: %s", nombre_almacenado, borrado.data)
            raise MetadataFailure(error_message("011"))

        # 2) archivo físico, best-effort (un huérfano en disco no falla el request)
        self.storage.eliminar(rec.nombre_almacenado or nombre_almacenado)
        return nombre_almacenado

    # ── load / view / download ───────────────────────────────────────────────
    def _info_encabezados(self, nombre_almacenado: str) -> Optional[ArchivoRecord]:
        resp = self.metadata.buscar_por_nombre(nombre_almacenado, COLS_ENCABEZADOS)
        fila = resp.first()
        if not fila:
            log.debug("Sin metadata para %s (ok=%s), usando defaults", nombre_almacenado, resp.ok)
            return None
        return ArchivoRecord.model_validate(fila)

    def obtener(self, nombre_almacenado: str) -> Tuple[Path, str, str]:
        """Devuelve (ruta, mime, nombre para Content-Disposition)."""
        path = self.storage.ruta(nombre_almacenado)
        if path is None or not path.is_file():
            raise NotFound("File not found")

        info = self._info_encabezados(nombre_almacenado)
        mime = (info.mime_type if info and info.mime_type else DEFAULT_MIME)
        nombre = (info.nombre_original if info and info.nombre_original else nombre_almacenado)
        return path, mime, nombre

    def disponible(self) -> bool:
        return self.metadata.disponible()
