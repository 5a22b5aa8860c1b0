"""Route listing, editing, leg distances and per-route text exports."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from rut.adapters.fpl_export import export_fpl
from rut.adapters.rte_text import export_rte
from rut.api.deps import get_route, get_store
from rut.contracts.enums import WaypointType
from rut.contracts.route import Route
from rut.services.navigation_store import NavigationStore, NotFoundError

router = APIRouter(prefix="/routes", tags=["routes"])


class RenameBody(BaseModel):
    name: str


class PointTypeBody(BaseModel):
    type: WaypointType
    custom_id: str | None = None


class PointCoordinateBody(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


def _route_dict(store: NavigationStore, route: Route) -> dict:
    data = route.to_dict()
    data["active"] = route.id == store.active_route_id
    data["coordinates"] = [
        {
            "index": p.index_in_route,
            "name": p.name,
            "kind": p.kind.value,
            "lat": p.coordinate.latitude,
            "lon": p.coordinate.longitude,
        }
        for p in store.map_points(route)
    ]
    return data


@router.get("")
async def list_routes(store: NavigationStore = Depends(get_store)) -> list[dict]:
    return [r.to_dict() for r in store.routes]


@router.get("/{route_id}")
async def get_route_detail(
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> dict:
    return _route_dict(store, route)


@router.delete("/{route_id}", status_code=204, response_class=Response)
async def delete_route(
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> Response:
    store.delete_route(route.id)
    return Response(status_code=204)


@router.patch("/{route_id}")
async def rename_route(
    body: RenameBody,
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> dict:
    return store.update_route_name(route.id, body.name).to_dict()


@router.post("/{route_id}/renumber")
async def renumber_route(
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> dict:
    store.renumber_waypoints([route.id])
    return _route_dict(store, store.document.route_by_id(route.id))


@router.get("/{route_id}/legs")
async def route_legs(
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> dict:
    """Great-circle leg distances (NM) between the resolvable points."""
    legs = store.leg_distances_nm(route)
    return {"legs_nm": [round(d, 2) for d in legs], "total_nm": round(sum(legs), 2)}


@router.patch("/{route_id}/points/{index}/type")
async def update_point_type(
    index: int,
    body: PointTypeBody,
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> dict:
    try:
        wp = store.update_waypoint_type(route.id, index, body.type, body.custom_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if wp is None:
        raise HTTPException(status_code=400, detail="Point is not a user waypoint")
    return wp.to_dict()


@router.patch("/{route_id}/points/{index}/coordinate")
async def update_point_coordinate(
    index: int,
    body: PointCoordinateBody,
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> dict:
    try:
        wp = store.update_waypoint_coordinate(route.id, index, body.latitude, body.longitude)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if wp is None:
        raise HTTPException(status_code=400, detail="Point is not a user waypoint")
    return wp.to_dict()


@router.get("/{route_id}/export/{fmt}")
async def export_route(
    fmt: Literal["rte", "fpl"],
    route: Route = Depends(get_route),
    store: NavigationStore = Depends(get_store),
) -> Response:
    exporter = export_rte if fmt == "rte" else export_fpl
    files = exporter(store.document, [route])
    if not files:
        raise HTTPException(status_code=404, detail="Route has no resolvable points")
    exported = files[0]
    return Response(
        content=exported.data,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
