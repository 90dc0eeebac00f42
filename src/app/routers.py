"""REST API routers."""

from fastapi import FastAPI

from app.endpoints import (
    authorized,
    connection,
    health,
    metrics,
    presence,
    settings,
)


def include_routers(app: FastAPI) -> None:
    """Include FastAPI routers for different endpoints.

    Args:
        app: The `FastAPI` app instance.
    """
    app.include_router(presence.router, prefix="/v1")
    app.include_router(connection.router, prefix="/v1")
    app.include_router(settings.router, prefix="/v1")

    # probes, authorization check and metrics are not versioned
    app.include_router(health.router)
    app.include_router(authorized.router)
    app.include_router(metrics.router)
