"""
Представления только для чтения: действующие пропуска, поиск по номеру, заполненность парковки.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from yardpass.config import settings
from yardpass.database import utcnow
from yardpass.models.pass_model import Pass
from yardpass.services import pass_store
from yardpass.services.plates import normalize_car_plate


def active_passes_by_apartment(db: Session, apartment_id: int, now: Optional[datetime] = None) -> List[Pass]:
    return pass_store.list_active_by_apartment(db, apartment_id, now or utcnow())


def active_passes_by_resident(db: Session, resident_id: int, now: Optional[datetime] = None) -> List[Pass]:
    return pass_store.list_active_by_resident(db, resident_id, now or utcnow())


def active_passes_by_building(db: Session, building_id: int, now: Optional[datetime] = None) -> List[Pass]:
    return pass_store.list_active_by_building(db, building_id, now or utcnow())


def search_by_car_plate(
    db: Session, car_plate: str, building_id: Optional[int] = None, limit: Optional[int] = None
) -> List[Pass]:
    """Поиск по подстроке нормализованного номера, любой статус, сначала свежие"""
    fragment = normalize_car_plate(car_plate)
    if not fragment:
        return []
    return pass_store.search_by_car_plate(db, fragment, building_id, limit or settings.SEARCH_RESULT_LIMIT)


def occupancy(db: Session, building_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Грубая оценка: каждый действующий пропуск занимает одно место.
    Вместимость берется из PARKING_CAPACITY, реальной модели мест нет.
    Если пропусков больше вместимости, free равно 0, а percent превышает 100.
    """
    occupied = pass_store.count_active_by_building(db, building_id, now or utcnow())
    total = settings.PARKING_CAPACITY
    return {
        "occupied": occupied,
        "total": total,
        "free": max(total - occupied, 0),
        "percent": round(occupied / total * 100, 2) if total else 0.0,
    }


def vehicles(
    db: Session, building_id: int, limit: int = 50, offset: int = 0, now: Optional[datetime] = None
) -> Dict[str, Any]:
    now = now or utcnow()
    return {
        "vehicles": pass_store.list_active_by_building(db, building_id, now, limit=limit, offset=offset),
        "total": pass_store.count_active_by_building(db, building_id, now),
        "limit": limit,
        "offset": offset,
    }
