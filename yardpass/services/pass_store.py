"""
Хранилище пропусков: запросы к таблице passes.
Смена статуса идет только через mark_expired / mark_revoked (вызывает движок пропусков).
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Query, Session

from yardpass.models.apartment import Apartment
from yardpass.models.pass_model import Pass, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_REVOKED


def get_pass(db: Session, pass_id: str) -> Optional[Pass]:
    return db.query(Pass).filter(Pass.id == pass_id).first()


def add_pass(db: Session, pass_obj: Pass) -> Pass:
    db.add(pass_obj)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(pass_obj)
    return pass_obj


def count_created_since(db: Session, resident_id: int, since: datetime) -> int:
    """Сколько пропусков житель создал начиная с момента since (любой статус)"""
    return db.query(Pass).filter(
        and_(
            Pass.resident_id == resident_id,
            Pass.created_at >= since,
        )
    ).count()


def mark_expired(db: Session, pass_id: str, now: datetime) -> bool:
    """
    Ленивое истечение: UPDATE ... WHERE status='active'.
    Повторный вызов или гонка двух охранников ничего не ломают.
    """
    updated = db.query(Pass).filter(
        and_(Pass.id == pass_id, Pass.status == STATUS_ACTIVE)
    ).update({Pass.status: STATUS_EXPIRED, Pass.updated_at: now}, synchronize_session="fetch")
    db.commit()
    return updated > 0


def mark_revoked(db: Session, pass_id: str, revoked_by: str, now: datetime) -> bool:
    updated = db.query(Pass).filter(
        and_(Pass.id == pass_id, Pass.status != STATUS_REVOKED)
    ).update(
        {
            Pass.status: STATUS_REVOKED,
            Pass.revoked_by: revoked_by,
            Pass.revoked_at: now,
            Pass.updated_at: now,
        },
        synchronize_session="fetch",
    )
    db.commit()
    return updated > 0


def active_query(db: Session, now: datetime) -> Query:
    """Активные пропуска, окно которых содержит now"""
    return db.query(Pass).filter(
        and_(
            Pass.status == STATUS_ACTIVE,
            Pass.valid_from <= now,
            Pass.valid_to >= now,
        )
    )


def list_active_by_apartment(db: Session, apartment_id: int, now: datetime) -> List[Pass]:
    return active_query(db, now).filter(Pass.apartment_id == apartment_id).order_by(Pass.created_at.desc()).all()


def list_active_by_resident(db: Session, resident_id: int, now: datetime) -> List[Pass]:
    return active_query(db, now).filter(Pass.resident_id == resident_id).order_by(Pass.created_at.desc()).all()


def list_active_by_building(
    db: Session, building_id: int, now: datetime, limit: Optional[int] = None, offset: int = 0
) -> List[Pass]:
    query = (
        active_query(db, now)
        .join(Apartment, Pass.apartment_id == Apartment.id)
        .filter(Apartment.building_id == building_id)
        .order_by(Pass.created_at.desc(), Pass.id)
    )
    if limit is not None:
        query = query.offset(offset).limit(limit)
    return query.all()


def count_active_by_building(db: Session, building_id: int, now: datetime) -> int:
    return (
        active_query(db, now)
        .join(Apartment, Pass.apartment_id == Apartment.id)
        .filter(Apartment.building_id == building_id)
        .count()
    )


def find_active_by_car_plate(
    db: Session, normalized_plate: str, now: datetime, building_id: Optional[int] = None
) -> Optional[Pass]:
    query = active_query(db, now).filter(Pass.car_plate == normalized_plate)
    if building_id is not None:
        query = query.join(Apartment, Pass.apartment_id == Apartment.id).filter(Apartment.building_id == building_id)
    return query.order_by(Pass.created_at.desc()).first()


def search_by_car_plate(
    db: Session, normalized_fragment: str, building_id: Optional[int] = None, limit: int = 50
) -> List[Pass]:
    query = db.query(Pass).filter(Pass.car_plate.contains(normalized_fragment, autoescape=True))
    if building_id is not None:
        query = query.join(Apartment, Pass.apartment_id == Apartment.id).filter(Apartment.building_id == building_id)
    return query.order_by(Pass.created_at.desc()).limit(limit).all()
