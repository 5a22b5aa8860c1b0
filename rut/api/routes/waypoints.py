"""User waypoint endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from rut.api.deps import get_store
from rut.contracts.enums import WaypointType
from rut.contracts.waypoint import UserWaypoint
from rut.services.navigation_store import NavigationStore, NotFoundError

router = APIRouter(prefix="/waypoints", tags=["waypoints"])


class WaypointUpdate(BaseModel):
    id: str
    name: str = ""
    type: WaypointType = WaypointType.WPT
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    elevation: float = 0.0


@router.get("")
async def list_waypoints(store: NavigationStore = Depends(get_store)) -> list[dict]:
    return [wp.to_dict() for wp in store.document.user_waypoints]


@router.get("/next-id")
async def next_id(
    type: WaypointType = WaypointType.WPT,
    store: NavigationStore = Depends(get_store),
) -> dict:
    return {"type": type.value, "id": store.next_available_id(type)}


@router.post("", status_code=201)
async def create_waypoint(
    waypoint: UserWaypoint,
    store: NavigationStore = Depends(get_store),
) -> dict:
    return store.create_user_waypoint(waypoint).to_dict()


@router.put("/{waypoint_id}")
async def update_waypoint(
    waypoint_id: str,
    body: WaypointUpdate,
    store: NavigationStore = Depends(get_store),
) -> dict:
    try:
        wp = store.update_waypoint(
            waypoint_id,
            new_id=body.id,
            name=body.name,
            type=body.type,
            latitude=body.latitude,
            longitude=body.longitude,
            elevation=body.elevation,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Waypoint not found")
    return wp.to_dict()


@router.delete("/{waypoint_id}", status_code=204, response_class=Response)
async def delete_waypoint(
    waypoint_id: str,
    store: NavigationStore = Depends(get_store),
) -> Response:
    if not store.delete_user_waypoint(waypoint_id):
        raise HTTPException(status_code=404, detail="Waypoint not found")
    return Response(status_code=204)
