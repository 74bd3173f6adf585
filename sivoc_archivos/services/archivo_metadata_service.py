# sivoc_archivos/services/archivo_metadata_service.py
from __future__ import annotations

from typing import Optional

from sivoc_archivos.clients.postgrest import PostgrestClient, PostgrestResponse
from sivoc_archivos.schemas.archivos import ArchivoRegistro

TABLA = "archivo"
COLS_LISTADO = ("id", "nombre_original", "nombre_almacenado", "tamano", "mime_type")
COLS_BORRADO = ("id", "nombre_almacenado")
COLS_ENCABEZADOS = ("nombre_original", "mime_type")


class ArchivoMetadataService:
    """Acceso a la tabla ``archivo`` del PostgREST. No cachea nada."""

    def __init__(self, client: PostgrestClient):
        self.client = client

    def crear(self, registro: ArchivoRegistro) -> PostgrestResponse:
        return self.client.insert(TABLA, registro.model_dump())

    def listar_por_entidad(self, entidad_nombre: str, entidad_id: Optional[str]) -> PostgrestResponse:
        return self.client.select(
            TABLA,
            {"entidad_nombre": entidad_nombre, "entidad_id": entidad_id},
            COLS_LISTADO,
        )

    def buscar_por_nombre(self, nombre_almacenado: str, columnas=COLS_BORRADO) -> PostgrestResponse:
        return self.client.select(TABLA, {"nombre_almacenado": nombre_almacenado}, columnas)

    def eliminar(self, archivo_id) -> PostgrestResponse:
        return self.client.delete(TABLA, {"id": archivo_id})

    def disponible(self) -> bool:
        return self.client.ping()
