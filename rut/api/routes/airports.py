"""User airport endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field, ValidationError

from rut.api.deps import get_store
from rut.contracts.airport import UserAirport
from rut.services.navigation_store import NavigationStore, NotFoundError

router = APIRouter(prefix="/airports", tags=["airports"])


class AirportUpdate(BaseModel):
    id: str
    name: str = ""
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    elevation: float = 0.0
    magnetic_variation: float = 0.0


@router.get("")
async def list_airports(store: NavigationStore = Depends(get_store)) -> list[dict]:
    return [ap.to_dict() for ap in store.document.user_airports]


@router.post("", status_code=201)
async def create_airport(
    airport: UserAirport,
    store: NavigationStore = Depends(get_store),
) -> dict:
    return store.create_user_airport(airport).to_dict()


@router.put("/{airport_id}")
async def update_airport(
    airport_id: str,
    body: AirportUpdate,
    store: NavigationStore = Depends(get_store),
) -> dict:
    try:
        ap = store.update_airport(
            airport_id,
            new_id=body.id,
            name=body.name,
            latitude=body.latitude,
            longitude=body.longitude,
            elevation=body.elevation,
            magnetic_variation=body.magnetic_variation,
        )
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Airport not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False))
    return ap.to_dict()


@router.delete("/{airport_id}", status_code=204, response_class=Response)
async def delete_airport(
    airport_id: str,
    store: NavigationStore = Depends(get_store),
) -> Response:
    if not store.delete_user_airport(airport_id):
        raise HTTPException(status_code=404, detail="Airport not found")
    return Response(status_code=204)
