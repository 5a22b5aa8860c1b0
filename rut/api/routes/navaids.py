"""User navaid endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from rut.api.deps import get_store
from rut.contracts.navaid import UserNavaid
from rut.services.navigation_store import NavigationStore, NotFoundError

router = APIRouter(prefix="/navaids", tags=["navaids"])


class NavaidUpdate(BaseModel):
    id: str
    name: str = ""
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    elevation: float = 0.0
    magnetic_variation: float = 0.0
    frequency: float = 0.0


@router.get("")
async def list_navaids(store: NavigationStore = Depends(get_store)) -> list[dict]:
    return [nv.to_dict() for nv in store.document.user_navaids]


@router.post("", status_code=201)
async def create_navaid(
    navaid: UserNavaid,
    store: NavigationStore = Depends(get_store),
) -> dict:
    return store.create_user_navaid(navaid).to_dict()


@router.put("/{navaid_id}")
async def update_navaid(
    navaid_id: str,
    body: NavaidUpdate,
    store: NavigationStore = Depends(get_store),
) -> dict:
    try:
        nv = store.update_navaid(
            navaid_id,
            new_id=body.id,
            name=body.name,
            latitude=body.latitude,
            longitude=body.longitude,
            elevation=body.elevation,
            magnetic_variation=body.magnetic_variation,
            frequency=body.frequency,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Navaid not found")
    return nv.to_dict()


@router.delete("/{navaid_id}", status_code=204, response_class=Response)
async def delete_navaid(
    navaid_id: str,
    store: NavigationStore = Depends(get_store),
) -> Response:
    if not store.delete_user_navaid(navaid_id):
        raise HTTPException(status_code=404, detail="Navaid not found")
    return Response(status_code=204)
