"""
GST Returns Prep – FastAPI application entry point.

Run with:
    uvicorn gstprep.main:app --reload --host 0.0.0.0 --port 8000
"""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from gstprep.api.gstr1_routes import gstr1_router
from gstprep.api.gstr3b_routes import gstr3b_router
from gstprep.core.config import settings
from gstprep.core.database import create_db_and_tables, get_session
from gstprep.core.errors import BackendError, RecordNotFound, ValidationError
from gstprep.core.logging import setup_logging
from gstprep.schemas.responses import HealthResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown hooks."""
    setup_logging()
    logger.info("Starting GST returns prep backend …")
    create_db_and_tables()
    logger.info("Database tables ready")
    yield
    logger.info("GST returns prep backend shut down")


app = FastAPI(
    title="GST Returns Prep API",
    description="Worksheets for preparing GSTR-1 and GSTR-3B returns",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS – allow frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(gstr1_router)
app.include_router(gstr3b_router)


# ── Error mapping ─────────────────────────────────────────────────────────────


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "errors": [v.to_dict() for v in exc.violations]},
    )


@app.exception_handler(RecordNotFound)
async def not_found_handler(request: Request, exc: RecordNotFound):
    return JSONResponse(status_code=404, content={"detail": exc.message, "errors": []})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    if exc.auth_expired:
        logger.warning(f"{request.method} {request.url.path}: session expired")
        return JSONResponse(
            status_code=401,
            content={"detail": "Session expired. Please sign in again.", "errors": []},
        )
    logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=502, content={"detail": exc.message, "errors": []})


# ── Health ────────────────────────────────────────────────────────────────────


@app.get("/api/health", response_model=HealthResponse)
def health(session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as e:
        db_status = f"error: {e}"
    return HealthResponse(status="ok", db=db_status)


@app.get("/")
def root():
    return {"message": "GST Returns Prep API", "docs": "/docs"}
