"""FastAPI application for the commercial intelligence dashboard."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commercial_intel.action.routers.auth import router as auth_router
from commercial_intel.action.routers.demo_loans import router as demo_loans_router
from commercial_intel.action.routers.expenses import router as expenses_router
from commercial_intel.action.routers.filters import router as filters_router
from commercial_intel.action.routers.history import router as history_router
from commercial_intel.action.routers.leads import router as leads_router
from commercial_intel.action.routers.pareto import router as pareto_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

app = FastAPI(title="Commercial Intelligence API", version=VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(pareto_router)
app.include_router(history_router)
app.include_router(leads_router)
app.include_router(expenses_router)
app.include_router(demo_loans_router)
app.include_router(filters_router)


@app.exception_handler(Exception)
async def _global_error_handler(request: Request, exc: Exception):
    """Catch-all: ensure every unhandled error returns JSON, not raw HTML."""
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Server error: {exc}", "status": "failed"},
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": VERSION}
