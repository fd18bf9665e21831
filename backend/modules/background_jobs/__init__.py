MODULE_ID = "background_jobs"
MODULE_VERSION = "1.0.0"
MODULE_DESCRIPTION = "Status polling and cancellation for every background job type"

ROUTES = [
    "background_jobs.routes",
]

TABLES = []

PUBLISHES = []

SUBSCRIBES = []

IMPLEMENTS = []

REQUIRES = [
    "job_tracker",
]

DAEMONS = []


def register(app, registry) -> None:
    """Register the background_jobs module routes."""
    from modules.background_jobs import routes

    app.include_router(routes.router, prefix="/api")
    app.include_router(routes.router, prefix="/api/v1")
