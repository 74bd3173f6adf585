# sivoc_archivos/adapter/server_config.py
from __future__ import annotations

from typing import List, Optional
from urllib.parse import quote

from sivoc_archivos.core.config import Settings
from sivoc_archivos.schemas.archivos import FilePondOptions, FilePondServerConfig

# Documentos que el navegador puede previsualizar (además de image/*)
VIEWABLE_TYPES: List[str] = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
]


def join_url(base: str, *parts: str) -> str:
    out = base.rstrip("/")
    for p in parts:
        if p:
            out += "/" + p.strip("/")
    return out


def view_url(base: str, nombre: str) -> str:
    return join_url(base, "view", quote(nombre, safe=""))


def default_options(**overrides) -> FilePondOptions:
    opts = FilePondOptions(accepted_file_types=["image/*", *VIEWABLE_TYPES])
    return opts.model_copy(update=overrides) if overrides else opts


def build_server_config(
    settings: Settings,
    base: Optional[str] = None,
    entidad_id: Optional[str] = None,
) -> FilePondServerConfig:
    """
    Config ``server`` de FilePond apuntando a este gateway.
    ``base`` es la URL pública del prefijo (por defecto ``FILEPOND_PREFIX``).
    """
    base = base if base is not None else settings.FILEPOND_PREFIX
    return FilePondServerConfig(
        process=join_url(base, "upload"),
        revert=join_url(base, "upload"),
        remove=join_url(base, "upload"),
        load=join_url(base, "uploads"),
        files=join_url(base, "files", entidad_id or ""),
        view=join_url(base, "view"),
        download=join_url(base, "download"),
        form_fields={
            "entidad_nombre": settings.ENTIDAD_NOMBRE,
            "entidad_id": entidad_id,
        },
        options=default_options(),
    )
