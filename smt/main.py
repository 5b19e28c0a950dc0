"""SMT FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smt.api.deps import build_lifecycle
from smt.api.evaluations import router as evaluations_router
from smt.api.health import router as health_router
from smt.api.maturity import router as maturity_router
from smt.config import settings
from smt.database import session_scope
from smt.engine.dispatch import ValidationDispatcher
from smt.engine.validator import EvidenceValidator
from smt.errors import SMTError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def run_validation_job(evaluation_id: str) -> None:
    """Validation job body; each job gets its own session."""
    async with session_scope() as session:
        lifecycle = build_lifecycle(session, app.state.dispatcher)
        await lifecycle.validate(evaluation_id, app.state.validator)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    async with httpx.AsyncClient(timeout=settings.validation_timeout_seconds) as client:
        app.state.validator = EvidenceValidator(client)
        app.state.dispatcher = ValidationDispatcher(
            run_validation_job, workers=settings.validation_workers
        )
        app.state.dispatcher.start()
        try:
            yield
        finally:
            await app.state.dispatcher.stop()


app = FastAPI(
    title="SMT - Service Maturity Tracker",
    description="Tracks evaluation evidence per service and rolls it up into maturity levels",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SMTError)
async def smt_error_handler(request: Request, exc: SMTError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(health_router, tags=["Health"])
app.include_router(evaluations_router, prefix="/v1", tags=["Evaluations"])
app.include_router(maturity_router, prefix="/v1", tags=["Maturity"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "SMT", "version": "0.1.0", "docs": "/docs"}
