# main.py
from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth.router import router as session_router
from core.settings import get_settings
from health.router import router as health_router
from presign.router import router as presign_router
from providers.errors import PresignError, ValidationError

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------

app = FastAPI(
    title="Presign Gateway",
    version=settings.version,
)

# Credentialed CORS cannot use a literal "*"; reflect the caller's origin instead.
_origins = settings.cors.allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[] if _origins == ["*"] else _origins,
    allow_origin_regex=".*" if _origins == ["*"] else None,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
    max_age=86400,
)


# ---------------------------------------------------------------------
# Error mapping: every error body is {"error": "..."}
# ---------------------------------------------------------------------

@app.exception_handler(PresignError)
async def presign_error_handler(request: Request, exc: PresignError):
    if isinstance(exc, ValidationError):
        log.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    else:
        log.error("Presign error on %s: %s", request.url.path, exc.message, exc_info=exc)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# ---------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------

app.include_router(health_router)
app.include_router(session_router)
app.include_router(presign_router)


# ---------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
