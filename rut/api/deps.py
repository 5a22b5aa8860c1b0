"""FastAPI dependency injection wiring."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from rut.contracts.route import Route
from rut.services.navigation_store import NavigationStore


# ------------------------------------------------------------------
# Store (one per application, kept on app.state)
# ------------------------------------------------------------------


def get_store(request: Request) -> NavigationStore:
    return request.app.state.store


def get_route(
    route_id: str,
    store: NavigationStore = Depends(get_store),
) -> Route:
    """Path-parameter route lookup shared by the route endpoints."""
    route = store.document.route_by_id(route_id)
    if route is None:
        raise HTTPException(status_code=404, detail="Route not found")
    return route
