"""
Движок жизненного цикла пропусков: создание с проверкой правил здания,
проверка пропуска на въезде (по ID / QR или по номеру машины) и отзыв.

Статус пропуска меняется только здесь:
    active -> expired  (лениво, при проверке после valid_to)
    active/expired -> revoked  (явный отзыв)
"""
import logging
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from yardpass.database import as_utc, utcnow
from yardpass.models.apartment import Apartment
from yardpass.models.pass_model import Pass, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_REVOKED
from yardpass.models.resident import Resident, RESIDENT_ACTIVE
from yardpass.models.scan_event import RESULT_VALID, RESULT_INVALID
from yardpass.services import pass_store, scan_ledger
from yardpass.services.errors import (
    ALREADY_REVOKED,
    APARTMENT_NOT_FOUND,
    DAILY_LIMIT_EXCEEDED,
    DURATION_EXCEEDED,
    INVALID_CAR_PLATE,
    INVALID_QUIET_HOURS,
    INVALID_TIME_RANGE,
    PASS_ACCESS_DENIED,
    PASS_NOT_FOUND,
    QUIET_HOURS_VIOLATION,
    RESIDENT_APARTMENT_MISMATCH,
    RESIDENT_ID_REQUIRED,
    RESIDENT_INACTIVE,
    RESIDENT_NOT_FOUND,
    AccessDeniedError,
    AlreadyRevokedError,
    InvalidRequestError,
    NotFoundError,
    PolicyError,
)
from yardpass.services.plates import normalize_car_plate
from yardpass.services.quiet_hours import get_building_tz, is_quiet_time, overlaps_quiet_hours
from yardpass.services.rules import EffectiveRule, find_rule, get_effective_rule

logger = logging.getLogger(__name__)

# Причины отказа при проверке, в порядке приоритета
PASS_REVOKED = "PASS_REVOKED"
PASS_NOT_YET_VALID = "PASS_NOT_YET_VALID"
PASS_EXPIRED = "PASS_EXPIRED"
QUIET_HOURS = "QUIET_HOURS"


@dataclass
class CreatePassRequest:
    apartment_id: int
    resident_id: Optional[int]
    valid_to: datetime
    car_plate: Optional[str] = None
    guest_name: Optional[str] = None
    valid_from: Optional[datetime] = None


@dataclass
class ValidationResult:
    valid: bool
    reason: str = ""
    pass_id: Optional[str] = None
    car_plate: Optional[str] = None
    apartment: Optional[str] = None
    valid_to: Optional[datetime] = None

    @classmethod
    def invalid(cls, reason: str, pass_id: Optional[str] = None) -> "ValidationResult":
        return cls(valid=False, reason=reason, pass_id=pass_id)

    @property
    def result(self) -> str:
        return RESULT_VALID if self.valid else RESULT_INVALID

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def start_of_local_day(now: datetime) -> datetime:
    """Полночь текущих суток по времени здания, в UTC"""
    tz = get_building_tz()
    local = now.astimezone(tz)
    midnight = tz.localize(datetime(local.year, local.month, local.day))
    return midnight.astimezone(timezone.utc)


# --- Создание ---------------------------------------------------------------

def create_pass(db: Session, request: CreatePassRequest, now: Optional[datetime] = None) -> Pass:
    """
    Создать пропуск после проверки правил здания.
    Ошибки вызывающего поднимаются как PassError с кодом причины,
    ошибки БД пробрасываются как есть. Частично созданных пропусков не бывает.
    """
    now = now or utcnow()
    valid_from = as_utc(request.valid_from) if request.valid_from else now
    valid_to = as_utc(request.valid_to)

    if valid_to <= valid_from:
        raise InvalidRequestError(INVALID_TIME_RANGE, "valid_to должен быть позже valid_from")

    # Пустой номер - пешеходный пропуск
    car_plate = None
    if request.car_plate:
        car_plate = normalize_car_plate(request.car_plate)
        if not car_plate:
            raise InvalidRequestError(INVALID_CAR_PLATE, "Некорректный номер автомобиля")

    # Лимит считается по жителю, а не по квартире
    if request.resident_id is None:
        raise InvalidRequestError(RESIDENT_ID_REQUIRED, "resident_id обязателен")

    apartment = db.query(Apartment).filter(Apartment.id == request.apartment_id).first()
    if apartment is None:
        raise NotFoundError(APARTMENT_NOT_FOUND, f"Квартира {request.apartment_id} не найдена")

    resident = db.query(Resident).filter(Resident.id == request.resident_id).first()
    if resident is None:
        raise NotFoundError(RESIDENT_NOT_FOUND, f"Житель {request.resident_id} не найден")
    if resident.apartment_id != apartment.id:
        raise InvalidRequestError(RESIDENT_APARTMENT_MISMATCH, "Житель не относится к указанной квартире")
    if resident.status != RESIDENT_ACTIVE:
        raise AccessDeniedError(RESIDENT_INACTIVE, "Житель деактивирован и не может создавать пропуска")

    rule = get_effective_rule(db, apartment.building_id)

    max_duration = timedelta(hours=rule.max_pass_duration_hours)
    if valid_to - valid_from > max_duration:
        raise PolicyError(
            DURATION_EXCEEDED,
            f"Длительность пропуска превышает максимум {rule.max_pass_duration_hours} ч",
        )

    count = pass_store.count_created_since(db, resident.id, start_of_local_day(now))
    if count >= rule.daily_pass_limit:
        raise PolicyError(
            DAILY_LIMIT_EXCEEDED,
            f"Превышен дневной лимит пропусков: создано сегодня {count} (лимит: {rule.daily_pass_limit})",
        )

    if rule.has_quiet_hours:
        _check_quiet_hours(rule, valid_from, valid_to)

    pass_obj = Pass(
        id=str(uuid.uuid4()),
        apartment_id=apartment.id,
        resident_id=resident.id,
        car_plate=car_plate,
        guest_name=request.guest_name,
        valid_from=valid_from,
        valid_to=valid_to,
        status=STATUS_ACTIVE,
        created_at=now,
        updated_at=now,
    )
    pass_store.add_pass(db, pass_obj)

    if car_plate:
        logger.info(f"Создан пропуск: ID={pass_obj.id}, apartment_id={apartment.id}, car_plate={car_plate}")
    else:
        logger.info(f"Создан пропуск: ID={pass_obj.id}, apartment_id={apartment.id}, type=pedestrian")

    return pass_obj


def _check_quiet_hours(rule: EffectiveRule, valid_from: datetime, valid_to: datetime) -> None:
    try:
        overlaps = overlaps_quiet_hours(valid_from, valid_to, rule.quiet_hours_start, rule.quiet_hours_end)
    except ValueError as e:
        raise InvalidRequestError(INVALID_QUIET_HOURS, f"Некорректные тихие часы здания: {e}")

    if overlaps:
        raise PolicyError(
            QUIET_HOURS_VIOLATION,
            f"Пропуск пересекается с тихими часами {rule.quiet_hours_start}-{rule.quiet_hours_end}",
        )


# --- Проверка на въезде -----------------------------------------------------

def validate_pass(db: Session, pass_id: str, guard_user_id: Optional[str], now: Optional[datetime] = None) -> ValidationResult:
    """
    Проверка пропуска по ID (из QR-кода). Всегда возвращает результат,
    каждая попытка пишется в журнал сканирований.
    """
    now = now or utcnow()
    pass_obj = pass_store.get_pass(db, pass_id)

    if pass_obj is None:
        result = ValidationResult.invalid(PASS_NOT_FOUND, pass_id)
    else:
        result = _decide(db, pass_obj, now)

    _record_scan(db, pass_id, guard_user_id, result, now)
    return result


def validate_pass_by_car_plate(
    db: Session,
    car_plate: str,
    guard_user_id: Optional[str],
    building_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Проверка по номеру машины: ищется действующий активный пропуск
    с таким номером (в пределах здания, если оно указано).
    Промах пишется в журнал без ссылки на пропуск, номер кладется в meta.
    """
    now = now or utcnow()
    normalized = normalize_car_plate(car_plate)

    pass_obj = None
    if normalized:
        pass_obj = pass_store.find_active_by_car_plate(db, normalized, now, building_id)

    if pass_obj is None:
        result = ValidationResult.invalid(PASS_NOT_FOUND)
        meta = {"car_plate": normalized}
        if building_id is not None:
            meta["building_id"] = building_id
        _record_scan(db, None, guard_user_id, result, now, meta=meta)
        return result

    result = _decide(db, pass_obj, now)
    _record_scan(db, result.pass_id, guard_user_id, result, now, meta={"car_plate": normalized})
    return result


def _decide(db: Session, pass_obj: Pass, now: datetime) -> ValidationResult:
    if pass_obj.status == STATUS_REVOKED:
        return ValidationResult.invalid(PASS_REVOKED, pass_obj.id)

    if now < pass_obj.valid_from:
        return ValidationResult.invalid(PASS_NOT_YET_VALID, pass_obj.id)

    if now > pass_obj.valid_to or pass_obj.status == STATUS_EXPIRED:
        if pass_obj.status == STATUS_ACTIVE:
            # Фиксируем истечение до ответа, чтобы повторная проверка уже видела expired
            if pass_store.mark_expired(db, pass_obj.id, now):
                logger.info(f"Пропуск истек: ID={pass_obj.id}")
        return ValidationResult.invalid(PASS_EXPIRED, pass_obj.id)

    # rollback в _resolve_reference сбрасывает состояние объектов сессии
    pass_id, car_plate, valid_to = pass_obj.id, pass_obj.car_plate, pass_obj.valid_to
    apartment_number, rule = _resolve_reference(db, pass_obj)
    if rule is not None and rule.has_quiet_hours:
        try:
            quiet = is_quiet_time(now, rule.quiet_hours_start, rule.quiet_hours_end)
        except ValueError:
            logger.warning(f"Некорректные тихие часы здания {rule.building_id}, ограничение не применяется")
            quiet = False
        if quiet:
            return ValidationResult.invalid(QUIET_HOURS, pass_id)

    return ValidationResult(
        valid=True,
        pass_id=pass_id,
        car_plate=car_plate,
        apartment=apartment_number,
        valid_to=valid_to,
    )


def _resolve_reference(db: Session, pass_obj: Pass) -> Tuple[Optional[str], Optional[EffectiveRule]]:
    """
    Номер квартиры и правило здания для проверки тихих часов.
    Недоступность справочников не должна блокировать охранника: без правила ограничения нет.
    """
    pass_id = pass_obj.id
    try:
        apartment = db.query(Apartment).filter(Apartment.id == pass_obj.apartment_id).first()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"Не удалось получить квартиру для пропуска {pass_id}, тихие часы не проверяются", exc_info=True)
        return None, None
    if apartment is None:
        return None, None

    # Номер квартиры остается в ответе даже без правила
    number, building_id = apartment.number, apartment.building_id
    try:
        return number, find_rule(db, building_id)
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"Не удалось получить правила для пропуска {pass_id}, тихие часы не проверяются", exc_info=True)
        return number, None


def _record_scan(
    db: Session,
    pass_id: Optional[str],
    guard_user_id: Optional[str],
    result: ValidationResult,
    now: datetime,
    meta: Optional[Dict[str, Any]] = None,
) -> None:
    # Ошибка записи в журнал не должна мешать ответу охраннику
    try:
        scan_ledger.append_event(db, pass_id, guard_user_id, result.result, result.reason, now, meta=meta)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Не удалось записать событие сканирования: pass_id={pass_id}, reason={result.reason}")


# --- Отзыв ------------------------------------------------------------------

def revoke_pass(
    db: Session,
    pass_id: str,
    actor_id: str,
    building_id: Optional[int] = None,
    resident_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Pass:
    """
    Отзыв пропуска. building_id ограничивает администратора своим зданием,
    resident_id - жителя своими пропусками. Истекший пропуск тоже можно отозвать.
    """
    now = now or utcnow()
    pass_obj = pass_store.get_pass(db, pass_id)
    if pass_obj is None:
        raise NotFoundError(PASS_NOT_FOUND, "Пропуск не найден")

    if resident_id is not None and pass_obj.resident_id != resident_id:
        raise AccessDeniedError(PASS_ACCESS_DENIED, "Пропуск принадлежит другому жителю")

    if building_id is not None:
        apartment = db.query(Apartment).filter(Apartment.id == pass_obj.apartment_id).first()
        if apartment is None or apartment.building_id != building_id:
            raise AccessDeniedError(PASS_ACCESS_DENIED, "Пропуск относится к другому зданию")

    if pass_obj.status == STATUS_REVOKED:
        raise AlreadyRevokedError(ALREADY_REVOKED, "Пропуск уже отозван")

    if not pass_store.mark_revoked(db, pass_obj.id, actor_id, now):
        # Параллельный отзыв успел раньше
        raise AlreadyRevokedError(ALREADY_REVOKED, "Пропуск уже отозван")

    db.refresh(pass_obj)
    logger.info(f"Пропуск отозван: ID={pass_obj.id}, revoked_by={actor_id}")
    return pass_obj
