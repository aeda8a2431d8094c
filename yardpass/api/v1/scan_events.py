from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yardpass.database import get_db
from yardpass.models.user import User, ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.schemas.scan_event import ScanEventResponse, ScanEventsListResponse, StatisticsResponse
from yardpass.api.deps import require_roles, resolve_building_scope
from yardpass.services.scan_ledger import ScanEventFilters, list_events, statistics

router = APIRouter()


@router.get("/scan-events", response_model=ScanEventsListResponse)
def get_scan_events(
    pass_id: Optional[str] = Query(None),
    guard_user_id: Optional[str] = Query(None),
    result: Optional[str] = Query(None, pattern="^(valid|invalid)$"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    building_id: Optional[int] = Query(None),
    limit: int = Query(20, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER)),
):
    """Журнал сканирований, сначала свежие"""
    filters = ScanEventFilters(
        pass_id=pass_id,
        guard_user_id=guard_user_id,
        result=result,
        date_from=date_from,
        date_to=date_to,
        building_id=resolve_building_scope(current_user, building_id),
        limit=limit,
        offset=offset,
    )
    events = list_events(db, filters)
    return ScanEventsListResponse(
        events=[ScanEventResponse(**event) for event in events],
        limit=limit,
        offset=offset,
    )


@router.get("/reports/statistics", response_model=StatisticsResponse)
def get_statistics(
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_SUPERUSER)),
):
    """Сводка по сканированиям за период"""
    scope = resolve_building_scope(current_user, building_id)
    return StatisticsResponse(**statistics(db, date_from, date_to, scope))
