# sivoc_archivos/services/almacenamiento.py
from __future__ import annotations

import logging
import os
import re
import time
from pathlib import Path

log = logging.getLogger(__name__)

_ws_re = re.compile(r"\s+")


def nombre_seguro(nombre: str | None) -> str:
    """Quita rutas y reemplaza espacios por ``_`` (igual para el nombre almacenado)."""
    base = os.path.basename((nombre or "").replace("\\", "/"))
    return _ws_re.sub("_", base.strip()) or "archivo"


def generar_nombre_almacenado(nombre_original: str | None, now_ms: int | None = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{nombre_seguro(nombre_original)}"


class AlmacenamientoLocal:
    """Blobs en disco, un archivo por ``nombre_almacenado``."""

    def __init__(self, base_dir: str | os.PathLike):
        self.base_dir = Path(base_dir)

    def ensure_dir(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def ruta(self, nombre_almacenado: str) -> Path | None:
        # Evita path traversal: solo nombres "planos"
        if not nombre_almacenado or os.path.basename(nombre_almacenado) != nombre_almacenado:
            return None
        if nombre_almacenado in {".", ".."}:
            return None
        return self.base_dir / nombre_almacenado

    def existe(self, nombre_almacenado: str) -> bool:
        path = self.ruta(nombre_almacenado)
        return path is not None and path.is_file()

    def guardar(self, nombre_almacenado: str, data: bytes) -> Path:
        self.ensure_dir()
        path = self.ruta(nombre_almacenado)
        if path is None:
            raise ValueError(f"Nombre de archivo inválido: {nombre_almacenado!r}")
        with open(path, "wb") as f:
            f.write(data)
        return path

    def eliminar(self, nombre_almacenado: str) -> bool:
        """Best-effort: nunca lanza, deja la falla en el log."""
        path = self.ruta(nombre_almacenado)
        if path is None or not path.exists():
            return False
        try:
            path.unlink()
            return True
        except OSError as e:
            log.error("No se pudo borrar el archivo físico %s: %s", path, e)
            return False
