"""
Журнал сканирований: только добавление и чтение.
Записи создает исключительно движок пропусков.
"""
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from yardpass.database import as_utc
from yardpass.models.apartment import Apartment
from yardpass.models.pass_model import Pass
from yardpass.models.scan_event import ScanEvent, RESULT_VALID, RESULT_INVALID
from yardpass.models.user import User


@dataclass
class ScanEventFilters:
    pass_id: Optional[str] = None
    guard_user_id: Optional[str] = None
    result: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    building_id: Optional[int] = None
    limit: int = 20
    offset: int = 0


def append_event(
    db: Session,
    pass_id: Optional[str],
    guard_user_id: Optional[str],
    result: str,
    reason: str,
    scanned_at: datetime,
    meta: Optional[Dict[str, Any]] = None,
) -> ScanEvent:
    event = ScanEvent(
        pass_id=pass_id,
        guard_user_id=guard_user_id,
        scanned_at=scanned_at,
        result=result,
        reason=reason or "",
        meta=json.dumps(meta, ensure_ascii=False) if meta else None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _apply_filters(query, filters: ScanEventFilters):
    conditions = []
    if filters.pass_id:
        conditions.append(ScanEvent.pass_id == filters.pass_id)
    if filters.guard_user_id:
        conditions.append(ScanEvent.guard_user_id == filters.guard_user_id)
    if filters.result:
        conditions.append(ScanEvent.result == filters.result)
    if filters.date_from:
        conditions.append(ScanEvent.scanned_at >= as_utc(filters.date_from))
    if filters.date_to:
        conditions.append(ScanEvent.scanned_at <= as_utc(filters.date_to))
    if filters.building_id is not None:
        # События без пропуска (промах по номеру) к зданию не привязаны
        conditions.append(Apartment.building_id == filters.building_id)
    if conditions:
        query = query.filter(and_(*conditions))
    return query


def list_events(db: Session, filters: ScanEventFilters) -> List[Dict[str, Any]]:
    """События с деталями: номер машины, квартира, логин охранника"""
    query = (
        db.query(ScanEvent, Pass.car_plate, Apartment.number, Apartment.building_id, User.username)
        .outerjoin(Pass, ScanEvent.pass_id == Pass.id)
        .outerjoin(Apartment, Pass.apartment_id == Apartment.id)
        .outerjoin(User, ScanEvent.guard_user_id == User.id)
    )
    query = _apply_filters(query, filters)
    rows = query.order_by(ScanEvent.scanned_at.desc(), ScanEvent.id.desc()).offset(filters.offset).limit(filters.limit).all()

    events = []
    for event, car_plate, apartment_number, building_id, guard_username in rows:
        events.append({
            "id": event.id,
            "pass_id": event.pass_id,
            "guard_user_id": event.guard_user_id,
            "guard_username": guard_username,
            "scanned_at": event.scanned_at,
            "result": event.result,
            "reason": event.reason,
            "meta": json.loads(event.meta) if event.meta else None,
            "car_plate": car_plate,
            "apartment_number": apartment_number,
            "building_id": building_id,
        })
    return events


def statistics(
    db: Session,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    building_id: Optional[int] = None,
) -> Dict[str, Any]:
    query = (
        db.query(
            func.count(ScanEvent.id),
            func.coalesce(func.sum(case((ScanEvent.result == RESULT_VALID, 1), else_=0)), 0),
            func.coalesce(func.sum(case((ScanEvent.result == RESULT_INVALID, 1), else_=0)), 0),
            func.count(func.distinct(ScanEvent.pass_id)),
            func.count(func.distinct(ScanEvent.guard_user_id)),
        )
        .select_from(ScanEvent)
        .outerjoin(Pass, ScanEvent.pass_id == Pass.id)
        .outerjoin(Apartment, Pass.apartment_id == Apartment.id)
    )
    query = _apply_filters(query, ScanEventFilters(date_from=date_from, date_to=date_to, building_id=building_id))
    total, valid, invalid, unique_passes, unique_guards = query.one()

    total = int(total or 0)
    valid = int(valid or 0)
    return {
        "total_scans": total,
        "valid_scans": valid,
        "invalid_scans": int(invalid or 0),
        "unique_passes": int(unique_passes or 0),
        "unique_guards": int(unique_guards or 0),
        "valid_percent": round(valid / total * 100, 2) if total else 0.0,
        "period_from": date_from,
        "period_to": date_to,
    }
