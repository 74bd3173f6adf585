# sivoc_archivos/api/v1/filepond.py
from __future__ import annotations
from functools import lru_cache
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from sivoc_archivos.adapter.server_config import build_server_config
from sivoc_archivos.clients.postgrest import PostgrestClient
from sivoc_archivos.core.config import settings
from sivoc_archivos.schemas.archivos import (
    ArchivoEliminadoOut,
    ArchivoFilePondOut,
    ErrorOut,
    FilePondServerConfig,
)
from sivoc_archivos.services.almacenamiento import AlmacenamientoLocal
from sivoc_archivos.services.archivo_metadata_service import ArchivoMetadataService
from sivoc_archivos.services.filepond_service import FilePondService

router = APIRouter(prefix=settings.FILEPOND_PREFIX, tags=["FilePond"])

ERRORES = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    500: {"model": ErrorOut},
}


@lru_cache
def get_postgrest_client() -> PostgrestClient:
    return PostgrestClient(settings.BACKEND_URL, timeout=settings.METADATA_TIMEOUT)


def get_filepond_service() -> FilePondService:
    return FilePondService(
        settings,
        ArchivoMetadataService(get_postgrest_client()),
        AlmacenamientoLocal(settings.UPLOADS_DIR),
    )


SvcDep = Annotated[FilePondService, Depends(get_filepond_service)]


@router.post("/upload", response_model=ArchivoFilePondOut, responses=ERRORES, summary="FilePond process")
def upload(
    svc: SvcDep,
    filepond: Optional[UploadFile] = File(default=None),
    entidad_nombre: Optional[str] = Form(default=None),
    entidad_id: Optional[str] = Form(default=None),
    permiso_id: Optional[str] = Form(default=None),
):
    """
    Sube un archivo (campo multipart ``filepond``).
    El id de la entidad puede venir como ``entidad_id`` o ``permiso_id``.
    """
    return svc.subir(filepond, entidad_nombre, entidad_id or permiso_id)


@router.get("/files", response_model=List[ArchivoFilePondOut], responses=ERRORES)
@router.get("/files/{permisoId}", response_model=List[ArchivoFilePondOut], responses=ERRORES,
            summary="FilePond restore: archivos de un permiso")
def list_files(svc: SvcDep, permisoId: Optional[str] = None):
    return svc.listar(permisoId)


@router.delete("/upload/{fileId}", response_model=ArchivoEliminadoOut, responses=ERRORES,
               summary="FilePond revert/remove")
def delete_file(fileId: str, svc: SvcDep):
    return ArchivoEliminadoOut(deleted=svc.eliminar(fileId))


def _file_response(svc: FilePondService, filename: str, disposition: str) -> FileResponse:
    path, mime, nombre = svc.obtener(filename)
    return FileResponse(path, media_type=mime, filename=nombre, content_disposition_type=disposition)


@router.get("/uploads/{filename}", response_class=FileResponse, responses=ERRORES, summary="FilePond load")
def serve_file(filename: str, svc: SvcDep):
    return _file_response(svc, filename, "inline")


@router.get("/view/{filename}", response_class=FileResponse, responses=ERRORES, summary="Vista previa")
def view_file(filename: str, svc: SvcDep):
    return _file_response(svc, filename, "inline")


@router.get("/download/{filename}", response_class=FileResponse, responses=ERRORES, summary="Descarga")
def download_file(filename: str, svc: SvcDep):
    return _file_response(svc, filename, "attachment")


@router.get("/config", response_model=FilePondServerConfig, summary="Config server de FilePond")
def widget_config(entidad_id: Optional[str] = Query(default=None)):
    return build_server_config(settings, entidad_id=entidad_id)
