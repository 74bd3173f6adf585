# sivoc_archivos/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    # PostgREST que guarda la metadata (tabla "archivo")
    BACKEND_URL: str = "http://localhost:3000"
    METADATA_TIMEOUT: Optional[float] = 10.0

    # Prefijo común de los mensajes de error (se le concatena un código: 009, 010, ...)
    ERROR_MESSAGE: str = "Ocurrió un error, código: "

    # 📁 Carpeta donde se guardan los adjuntos de permisos
    UPLOADS_DIR: str = "uploads/permiso"
    ENTIDAD_NOMBRE: str = "permiso"

    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10 MB
    ALLOWED_MIME_TYPES: List[str] = [
        "image/jpeg", "image/png", "image/gif", "image/webp",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ]

    # Base path de las rutas de FilePond
    FILEPOND_PREFIX: str = "/filepond"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # no falla si agregas más variables en .env
    )


settings = Settings()
