# sivoc_archivos/core/errors.py
from __future__ import annotations

from sivoc_archivos.core.config import settings


def error_message(code: str) -> str:
    """Mensaje genérico + sufijo numérico, para correlacionar con el log."""
    return f"{settings.ERROR_MESSAGE}{code}"


class ArchivoError(Exception):
    status_code = 500
    message = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(ArchivoError):
    status_code = 400
    message = "Invalid request"


class NotFound(ArchivoError):
    status_code = 404
    message = "File not found"


class StorageFailure(ArchivoError):
    """Falla de disco (escritura/lectura del blob)."""
    status_code = 500
    message = "Upload failed"


class MetadataFailure(ArchivoError):
    """El PostgREST respondió algo distinto de 2xx."""
    status_code = 500
