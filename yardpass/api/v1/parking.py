from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from yardpass.database import get_db
from yardpass.models.user import User, ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.schemas.pass_schema import OccupancyResponse, PassResponse, VehiclesResponse
from yardpass.api.deps import require_roles, resolve_building_scope
from yardpass.services import views

router = APIRouter()

staff = require_roles(ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER)


def _required_building(current_user: User, building_id: Optional[int]) -> int:
    scope = resolve_building_scope(current_user, building_id)
    if scope is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Необходимо указать building_id",
        )
    return scope


@router.get("/parking/occupancy", response_model=OccupancyResponse)
def get_occupancy(
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    return OccupancyResponse(**views.occupancy(db, _required_building(current_user, building_id)))


@router.get("/parking/vehicles", response_model=VehiclesResponse)
def get_vehicles(
    building_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Машины с действующими пропусками на территории здания"""
    data = views.vehicles(db, _required_building(current_user, building_id), limit, offset)
    return VehiclesResponse(
        vehicles=[PassResponse.model_validate(p) for p in data["vehicles"]],
        total=data["total"],
        limit=data["limit"],
        offset=data["offset"],
    )
