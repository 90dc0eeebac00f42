"""Unit tests for routers.py."""

from fastapi import FastAPI
from starlette.routing import Route

from app.routers import include_routers


def route_methods(app: FastAPI) -> dict[str, set[str]]:
    """Map each route path to its HTTP methods."""
    methods: dict[str, set[str]] = {}
    for route in app.routes:
        if isinstance(route, Route) and route.methods is not None:
            methods.setdefault(route.path, set()).update(route.methods)
    return methods


def test_include_routers() -> None:
    """All endpoints are registered."""
    app = FastAPI()
    include_routers(app)

    methods = route_methods(app)

    assert "GET" in methods["/v1/presence"]
    assert "POST" in methods["/v1/test-connection"]
    assert {"GET", "POST"} <= methods["/v1/settings"]
    assert "GET" in methods["/readiness"]
    assert "GET" in methods["/liveness"]
    assert "POST" in methods["/authorized"]
    assert "GET" in methods["/metrics"]


def test_check_prefixes() -> None:
    """Probes and metrics are not versioned."""
    app = FastAPI()
    include_routers(app)

    paths = set(route_methods(app))

    assert "/presence" not in paths
    assert "/v1/readiness" not in paths
    assert "/v1/metrics" not in paths
