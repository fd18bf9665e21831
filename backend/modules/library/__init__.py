MODULE_ID = "library"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Model file library: upload, auto-describe, tagging, duplicate detection and bulk jobs"

ROUTES = [
    "library.routes",
]

TABLES = [
    "library_files",
]

PUBLISHES = []

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = [
    "job_tracker",
    "bulk_runner",
]

DAEMONS = []


def register(app, registry) -> None:
    """Register the library module routes."""
    from modules.library import routes

    app.include_router(routes.router, prefix="/api")
    app.include_router(routes.router, prefix="/api/v1")
