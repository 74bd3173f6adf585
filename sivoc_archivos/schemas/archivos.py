from __future__ import annotations
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

class ArchivoRegistro(BaseModel):
    """Fila que se inserta en la tabla ``archivo`` del PostgREST."""
    entidad_nombre: Optional[str] = None
    entidad_id: Optional[str] = None   # puede venir vacío en permisos nuevos
    nombre_original: str
    nombre_almacenado: str
    mime_type: str
    tamano: int
    ruta_archivo: str

class ArchivoRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: Optional[Union[int, str]] = None
    entidad_nombre: Optional[str] = None
    entidad_id: Optional[Union[int, str]] = None
    nombre_original: Optional[str] = None
    nombre_almacenado: Optional[str] = None
    mime_type: Optional[str] = None
    tamano: Optional[int] = None
    ruta_archivo: Optional[str] = None

# ── Formas que espera FilePond ───────────────────────────────────────────────
class ArchivoFilePondOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: Union[int, str]
    original_name: Optional[str] = Field(default=None, alias="originalName")
    size: Optional[int] = None
    server_id: str = Field(alias="serverId")

class ArchivoEliminadoOut(BaseModel):
    deleted: str

class ErrorOut(BaseModel):
    error: str

# ── Configuración del widget ─────────────────────────────────────────────────
class FilePondOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: str = "filepond"
    allow_multiple: bool = Field(default=True, alias="allowMultiple")
    max_files: int = Field(default=3, alias="maxFiles")
    allow_file_type_validation: bool = Field(default=True, alias="allowFileTypeValidation")
    accepted_file_types: List[str] = Field(default_factory=list, alias="acceptedFileTypes")
    allow_file_size_validation: bool = Field(default=True, alias="allowFileSizeValidation")
    max_file_size: str = Field(default="10MB", alias="maxFileSize")
    min_file_size: str = Field(default="1KB", alias="minFileSize")

class FilePondServerConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    process: str
    revert: str
    remove: str
    load: str
    files: str
    view: str
    download: str
    form_fields: dict = Field(default_factory=dict, alias="formFields")
    options: FilePondOptions
