"""Whole-document endpoints: read, merge, active route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from rut.api.deps import get_store
from rut.contracts.document import NavigationDocument
from rut.services.navigation_store import NavigationStore, NotFoundError

router = APIRouter(prefix="/document", tags=["document"])


class ActiveRouteBody(BaseModel):
    route_id: str | None = None


@router.get("")
async def get_document(store: NavigationStore = Depends(get_store)) -> dict:
    data = store.document.to_dict()
    data["active_route_id"] = store.active_route_id
    return data


@router.post("/merge")
async def merge_document(
    incoming: NavigationDocument,
    store: NavigationStore = Depends(get_store),
) -> dict:
    """Merge a document into the live one (duplicates dropped, ids made unique)."""
    before = len(store.routes)
    merged = store.add_or_merge(incoming)
    return {
        "routes_added": len(merged.routes) - before,
        "active_route_id": store.active_route_id,
        "document": merged.to_dict(),
    }


@router.put("/active-route")
async def set_active_route(
    body: ActiveRouteBody,
    store: NavigationStore = Depends(get_store),
) -> dict:
    try:
        store.set_active_route(body.route_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Route not found")
    return {"active_route_id": store.active_route_id}
