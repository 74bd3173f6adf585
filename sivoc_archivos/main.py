# sivoc_archivos/main.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from sivoc_archivos.audit.context import current_request_meta
from sivoc_archivos.core.config import settings
from sivoc_archivos.core.errors import ArchivoError

log = logging.getLogger("uvicorn.error")
logging.getLogger("sivoc_archivos").setLevel(settings.LOG_LEVEL.upper())

# ───────────────────────────────────────────────────────────────────────────────
# OpenAPI tags
# ───────────────────────────────────────────────────────────────────────────────
tags_metadata = [
    {"name": "Health", "description": "Endpoints de verificación."},
    {"name": "FilePond", "description": "Subida, listado, vista y borrado de adjuntos de permisos."},
]

# ───────────────────────────────────────────────────────────────────────────────
# App & Middlewares
# ───────────────────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # cierra el httpx.Client del PostgREST si alguna vez se creó
    if get_postgrest_client.cache_info().currsize:
        get_postgrest_client().close()
        get_postgrest_client.cache_clear()


app = FastAPI(title="SIVOC Archivos", version="1.0.0", openapi_tags=tags_metadata, lifespan=lifespan)

# Respeta X-Forwarded-* si estás detrás de Nginx
app.add_middleware(ProxyHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin", "X-Requested-With"],
    expose_headers=["Content-Disposition"],
)


def _request_id(request: Request) -> str | None:
    meta = getattr(request.state, "audit_meta", None) or {}
    return meta.get("request_id")


# ====== Errores: siempre {"error": "..."} ======
@app.exception_handler(ArchivoError)
async def archivo_error_handler(request: Request, exc: ArchivoError):
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    log.log(level, "[%s] %s %s → %s (request_id=%s)",
            exc.status_code, request.method, request.url.path, exc.message, _request_id(request))
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    log.error("[400] %s %s\nDetail: %s (request_id=%s)",
              request.method, request.url.path, exc.errors(), _request_id(request))
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def unknown_exception_handler(request: Request, exc: Exception):
    log.exception("[500] %s %s sin manejar (request_id=%s)",
                  request.method, request.url.path, _request_id(request))
    return JSONResponse(status_code=500, content={"error": "Internal error"})


@app.middleware("http")
async def attach_request_meta(request: Request, call_next):
    xff = request.headers.get("x-forwarded-for")
    ip = (xff.split(",")[0].strip() if xff else (request.client.host if request.client else None))

    meta = {
        "ip": ip,
        "user_agent": request.headers.get("user-agent"),
        "method": request.method,
        "path": request.url.path,
        "request_id": request.headers.get("x-request-id") or str(uuid4()),
        "status_code": 200,
    }
    request.state.audit_meta = meta
    token = current_request_meta.set(meta)

    try:
        resp = await call_next(request)
        meta["status_code"] = resp.status_code
        resp.headers["X-Request-Id"] = meta["request_id"]
        return resp
    except asyncio.CancelledError:
        meta["status_code"] = 499
        return Response(status_code=499, content=b"Client Closed Request")
    finally:
        current_request_meta.reset(token)


# ───────────────────────────────────────────────────────────────────────────────
# Routers
# ───────────────────────────────────────────────────────────────────────────────
from sivoc_archivos.api.v1.filepond import (
    get_filepond_service,
    get_postgrest_client,
    router as filepond_router,
)
from sivoc_archivos.services.filepond_service import FilePondService

app.include_router(filepond_router)


# ───────────────────────────────────────────────────────────────────────────────
# Health
# ───────────────────────────────────────────────────────────────────────────────
@app.get("/", tags=["Health"])
def root():
    return {"status": "ok", "message": "API up"}


@app.get("/health/metadata", tags=["Health"])
def health_metadata(svc: FilePondService = Depends(get_filepond_service)):
    if not svc.disponible():
        raise HTTPException(status_code=503, detail="Metadata store unavailable")
    return {"status": "ok", "metadata": "connected"}
