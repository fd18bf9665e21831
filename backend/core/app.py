# core/app.py — App factory with module discovery
#
# Creates and configures the FastAPI application. Discovers all modules under
# backend/modules/, registers the process-wide job services, and calls each
# module's register(app, registry) function.
#
# main.py becomes: from core.app import create_app; app = create_app()

import importlib
import logging
import os
import pathlib
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

log = logging.getLogger("printvault.api")

# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------

_version_file = pathlib.Path(__file__).parent.parent.parent / "VERSION"
if _version_file.exists():
    __version__ = _version_file.read_text().strip()
else:
    __version__ = "0.4.0"


# ---------------------------------------------------------------------------
# Module discovery
# ---------------------------------------------------------------------------

def _discover_modules() -> list[str]:
    """Return the module package names found under backend/modules/.

    A valid module directory contains an __init__.py with a MODULE_ID attribute.
    """
    modules_dir = pathlib.Path(__file__).parent.parent / "modules"
    found = []
    for entry in sorted(modules_dir.iterdir()):
        if not entry.is_dir() or not (entry / "__init__.py").exists():
            continue
        pkg_name = f"modules.{entry.name}"
        try:
            mod = importlib.import_module(pkg_name)
        except Exception as exc:
            log.warning(f"Module discovery: skipping {pkg_name!r}: {exc}")
            continue
        if hasattr(mod, "MODULE_ID"):
            found.append(pkg_name)
    return found


# ---------------------------------------------------------------------------
# Middleware setup
# ---------------------------------------------------------------------------

def _setup_middleware(app: FastAPI) -> None:
    """Attach CORS and rate limiting to the app."""
    from core.config import settings
    from core.rate_limit import limiter
    from slowapi import _rate_limit_exceeded_handler
    from slowapi.errors import RateLimitExceeded

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    if "*" in cors_origins:
        log.warning(
            "CORS origin '*' is incompatible with allow_credentials=True; "
            "falling back to an empty origins list. Set explicit origins in CORS_ORIGINS."
        )
        cors_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app() -> FastAPI:
    """Create and fully configure the PrintVault FastAPI application.

    1. Build a ModuleRegistry holding the JobTracker and BulkOperationRunner.
       One of each exists per app; every job type shares them.
    2. Discover modules and call each module's register(app, registry) so
       routes exist before the first request.
    3. Lifespan creates tables and validates module REQUIRES.
    """
    from core.bulk_runner import BulkOperationRunner
    from core.config import settings
    from core.db import engine, init_db
    from core.job_tracker import JobTracker
    from core.registry import ModuleRegistry
    from core.schemas import HealthCheck

    registry = ModuleRegistry()
    job_tracker = JobTracker()
    bulk_runner = BulkOperationRunner(job_tracker, max_workers=settings.bulk_workers)
    registry.register_provider("job_tracker", job_tracker)
    registry.register_provider("bulk_runner", bulk_runner)

    pkg_names = _discover_modules()
    log.info(f"Modules found: {[p.split('.')[-1] for p in pkg_names]}")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db()
        os.makedirs(settings.library_dir, exist_ok=True)
        registry.validate_dependencies()
        log.info(f"PrintVault {__version__} ready (library: {os.path.abspath(settings.library_dir)})")
        yield

    app = FastAPI(
        title="PrintVault",
        description="3D model library with automatic description, tagging and duplicate detection",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/v1/docs",
        redoc_url="/api/v1/redoc",
    )
    app.state.registry = registry
    app.state.job_tracker = job_tracker
    app.state.bulk_runner = bulk_runner

    _setup_middleware(app)

    @app.get("/health", response_model=HealthCheck, tags=["System"])
    def health():
        db_status = "ok"
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            log.warning(f"Health check: database unreachable: {exc}")
            db_status = "unavailable"
        return HealthCheck(status="ok" if db_status == "ok" else "degraded", version=__version__, database=db_status)

    for pkg in pkg_names:
        mod = importlib.import_module(pkg)
        registry.record_requires(getattr(mod, "MODULE_ID", pkg), getattr(mod, "REQUIRES", []))
        if hasattr(mod, "register"):
            try:
                mod.register(app, registry)
                log.debug(f"Registered module: {pkg}")
            except Exception as exc:
                log.error(f"Failed to register module {pkg!r}: {exc}", exc_info=True)

    return app
