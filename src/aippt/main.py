# src/aippt/main.py
from __future__ import annotations

import datetime as dt
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from aippt.core.config import settings
from aippt.core.logging import get_logger
from aippt.kernel.errors import ProblemDetails
from aippt.services.artifacts import PUBLIC_PREFIX, SessionArtifacts
from aippt.services.gateway import ModelGateway

from aippt.api.routes.ai import router as ai_router
from aippt.api.routes.config import router as config_router

log = get_logger(__name__)

app = FastAPI(title=settings.APP_NAME, version="1.0.0")
log.info("starting %s env=%s", settings.APP_NAME, settings.ENV)


# ---- Middlewares ----
@app.middleware("http")
async def limit_body_size(request: Request, call_next):
    # refuse oversized bodies before routing
    length = request.headers.get("content-length", "")
    limit = settings.MAX_BODY_MB * 1024 * 1024
    if length.isdigit() and int(length) > limit:
        return JSONResponse(
            status_code=413,
            content={"error": f"Request body exceeds {settings.MAX_BODY_MB:g} MB"},
        )
    return await call_next(request)


# CORS must wrap the size check
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---- Per-app collaborators (tests swap these) ----
app.state.gateway = ModelGateway()
app.state.artifacts = SessionArtifacts()

# Generated page images / HTML documents
GENERATED_DIR = Path(settings.GENERATED_DIR).resolve()
GENERATED_DIR.mkdir(parents=True, exist_ok=True)
app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(GENERATED_DIR), check_dir=False), name="generated")


# ---- Errors ----
@app.exception_handler(ProblemDetails)
async def problem_handler(request: Request, exc: ProblemDetails):
    log.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status, content={"error": exc.detail or exc.title, "problem": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "errors": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def unhandled_handler(request: Request, exc: Exception):
    log.error("%s %s crashed: %r", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})


@app.get("/api/health")
async def health():
    return {"status": "ok", "timestamp": dt.datetime.now(dt.timezone.utc).isoformat()}


# ---- Routers ----
app.include_router(ai_router, prefix="/api", tags=["ai"])
app.include_router(config_router, prefix="/api")
