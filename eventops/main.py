# eventops/main.py
from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from eventops.config import get_settings
from eventops.db import Base, engine

# Register every model on Base.metadata
import eventops.models  # noqa: F401

# Routers
from eventops.routers.auth import router as auth_router
from eventops.routers.tasks import router as tasks_router
from eventops.routers.departments import router as departments_router
from eventops.routers.meetings import router as meetings_router
from eventops.routers.ui import router as ui_router


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
log = logging.getLogger("eventops")

app = FastAPI(title="EventOps", version="0.1.0")

# ==================== MIDDLEWARES ====================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed session cookie carrying the role (admin / guest)
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)

# ==================== ERRORS ====================


def validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg", "Invalid request"))
    if msg.startswith("Value error, "):
        return msg[len("Value error, "):]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"{loc}: {msg}" if loc else msg


@app.exception_handler(RequestValidationError)
async def on_validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": validation_message(exc)})


@app.exception_handler(Exception)
async def on_unexpected_error(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ==================== ROUTERS ====================

app.include_router(auth_router)
app.include_router(tasks_router)
app.include_router(departments_router)
app.include_router(meetings_router)
app.include_router(ui_router)


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok"}


# ==================== LIFECYCLE ====================

@app.on_event("startup")
async def on_startup():
    log.info("Creating database tables (tasks, departments, meetings)...")
    Base.metadata.create_all(bind=engine)
    if settings.storage_backend == "local":
        Path(settings.storage_dir).mkdir(parents=True, exist_ok=True)
    if not settings.admin_password:
        log.warning("EVENTOPS_ADMIN_PASSWORD is not set; only guest access is possible")
    log.info("EventOps ready on /")


@app.on_event("shutdown")
async def on_shutdown():
    log.info("Shutting down EventOps...")


# Direct start: python -m eventops.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("eventops.main:app", host="0.0.0.0", port=8000, reload=True)
