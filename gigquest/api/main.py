"""
gigquest.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn gigquest.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from gigquest.api.auth import router as auth_router  # noqa: E402
from gigquest.api.deps import get_config, get_engine  # noqa: E402
from gigquest.api.routes.applications import router as applications_router  # noqa: E402
from gigquest.api.routes.gamification import router as gamification_router  # noqa: E402
from gigquest.api.routes.jobs import router as jobs_router  # noqa: E402
from gigquest.api.routes.users import router as users_router  # noqa: E402
from gigquest.database.engine import init_db, run_db  # noqa: E402
from gigquest.exceptions import GigQuestError  # noqa: E402

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle: create tables, seed achievements."""
    engine = get_engine()
    await run_db(init_db, engine)
    logger.info("%s API started, engine ready (%s)", get_config().app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", get_config().app_name)


app = FastAPI(
    title="GigQuest API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(GigQuestError)
async def gigquest_error_handler(request: Request, exc: GigQuestError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s → %d %s: %s",
            request.method, request.url.path, exc.status_code, exc.kind, exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


# Mount routers
app.include_router(auth_router, prefix="/api")
app.include_router(users_router, prefix="/api")
app.include_router(jobs_router, prefix="/api")
app.include_router(applications_router, prefix="/api")
app.include_router(gamification_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
