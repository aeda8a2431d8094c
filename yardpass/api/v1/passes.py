import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from yardpass.database import get_db
from yardpass.models.apartment import Apartment
from yardpass.models.pass_model import Pass
from yardpass.models.resident import Resident
from yardpass.models.user import User, ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.schemas.pass_schema import (
    PassCreate,
    PassListResponse,
    PassResponse,
    PassRevokeResponse,
    PassValidateRequest,
    PassValidationResponse,
)
from yardpass.api.deps import create_pass_rate_limit, require_roles, resolve_building_scope
from yardpass.services import views
from yardpass.services.errors import NotFoundError, PASS_NOT_FOUND
from yardpass.services.notifications import notify_resident
from yardpass.services.passes import (
    CreatePassRequest,
    ValidationResult,
    create_pass,
    revoke_pass,
    validate_pass,
    validate_pass_by_car_plate,
)
from yardpass.services.pass_store import get_pass
from yardpass.services.qr import decode_qr, encode_qr
from yardpass.services.scan_events import broadcast_scan_event

router = APIRouter()
logger = logging.getLogger(__name__)

staff = require_roles(ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER)
managers = require_roles(ROLE_ADMIN, ROLE_SUPERUSER)


def build_pass_response(pass_obj: Pass) -> PassResponse:
    return PassResponse.model_validate(pass_obj)


def build_validation_response(result: ValidationResult) -> PassValidationResponse:
    if result.valid:
        return PassValidationResponse(
            valid=True,
            pass_id=result.pass_id,
            car_plate=result.car_plate,
            apartment=result.apartment,
            valid_to=result.valid_to,
        )
    return PassValidationResponse(valid=False, reason=result.reason, pass_id=result.pass_id)


def ensure_apartment_access(db: Session, user: User, apartment_id: int) -> None:
    """Администратор и охранник работают только с квартирами своего здания"""
    if user.role == ROLE_SUPERUSER:
        return
    apartment = db.query(Apartment).filter(Apartment.id == apartment_id).first()
    if apartment is not None and apartment.building_id != user.building_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Нет доступа к квартире другого здания",
        )


def schedule_resident_notification(
    background_tasks: BackgroundTasks, event_type: str, pass_obj: Pass, response: PassResponse
) -> None:
    resident = pass_obj.resident
    if resident is None:
        return
    background_tasks.add_task(notify_resident, event_type, resident.chat_id, response.model_dump(mode="json"))


@router.post("/passes", response_model=PassResponse, status_code=status.HTTP_201_CREATED)
def create_pass_endpoint(
    pass_data: PassCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(create_pass_rate_limit),
):
    """Создать пропуск (администратор здания или superuser)"""
    ensure_apartment_access(db, current_user, pass_data.apartment_id)

    pass_obj = create_pass(db, CreatePassRequest(
        apartment_id=pass_data.apartment_id,
        resident_id=pass_data.resident_id,
        car_plate=pass_data.car_plate,
        guest_name=pass_data.guest_name,
        valid_from=pass_data.valid_from,
        valid_to=pass_data.valid_to,
    ))

    response = build_pass_response(pass_obj)
    schedule_resident_notification(background_tasks, "pass_created", pass_obj, response)
    return response


@router.get("/passes/active", response_model=PassListResponse)
def get_active_passes(
    apartment_id: Optional[int] = Query(None),
    resident_id: Optional[int] = Query(None),
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    """
    Действующие пропуска: по квартире, по жителю или по всему зданию.
    Охранник и администратор видят только свое здание.
    """
    if apartment_id is not None:
        ensure_apartment_access(db, current_user, apartment_id)
        passes = views.active_passes_by_apartment(db, apartment_id)
    elif resident_id is not None:
        resident = db.query(Resident).filter(Resident.id == resident_id).first()
        if resident is not None:
            ensure_apartment_access(db, current_user, resident.apartment_id)
        passes = views.active_passes_by_resident(db, resident_id)
    else:
        scope = resolve_building_scope(current_user, building_id)
        if scope is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Нужно указать apartment_id, resident_id или building_id",
            )
        passes = views.active_passes_by_building(db, scope)

    return PassListResponse(passes=[build_pass_response(p) for p in passes])


@router.get("/passes/search", response_model=PassListResponse)
def search_passes(
    car_plate: str = Query(..., min_length=1, description="Номер или его часть"),
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    """Поиск пропусков по части номера машины"""
    scope = resolve_building_scope(current_user, building_id)
    passes = views.search_by_car_plate(db, car_plate, scope)
    return PassListResponse(passes=[build_pass_response(p) for p in passes])


@router.post("/passes/validate", response_model=PassValidationResponse)
def validate_pass_endpoint(
    request_data: PassValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    """
    Проверка пропуска на въезде. Номер машины приоритетнее QR.
    Отказ - это нормальный ответ 200 с valid=false и кодом причины.
    """
    if request_data.car_plate:
        scope = resolve_building_scope(current_user)
        result = validate_pass_by_car_plate(db, request_data.car_plate, current_user.id, scope)
    else:
        pass_id = decode_qr(request_data.qr_data or request_data.qr_uuid)
        result = validate_pass(db, pass_id, current_user.id)

    logger.info(
        f"Проверка пропуска: pass_id={result.pass_id}, valid={result.valid}, "
        f"reason='{result.reason}', guard='{current_user.username}'"
    )

    response = build_validation_response(result)
    broadcast_scan_event(response.model_dump(mode="json"), current_user.id, current_user.building_id)
    return response


@router.get("/passes/{pass_id}", response_model=PassResponse)
def get_pass_by_id(
    pass_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    pass_obj = get_pass(db, pass_id)
    if pass_obj is None:
        raise NotFoundError(PASS_NOT_FOUND, "Пропуск не найден")
    ensure_apartment_access(db, current_user, pass_obj.apartment_id)
    return build_pass_response(pass_obj)


@router.get("/passes/{pass_id}/qr")
def get_pass_qr(
    pass_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(staff),
):
    """PNG с QR-кодом пропуска"""
    pass_obj = get_pass(db, pass_id)
    if pass_obj is None:
        raise NotFoundError(PASS_NOT_FOUND, "Пропуск не найден")
    ensure_apartment_access(db, current_user, pass_obj.apartment_id)
    return Response(content=encode_qr(pass_obj.id), media_type="image/png")


@router.post("/passes/{pass_id}/revoke", response_model=PassRevokeResponse)
def revoke_pass_endpoint(
    pass_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(managers),
):
    """Отозвать пропуск (администратор - только в своем здании)"""
    building_scope = None if current_user.role == ROLE_SUPERUSER else current_user.building_id
    pass_obj = revoke_pass(db, pass_id, current_user.id, building_id=building_scope)

    schedule_resident_notification(background_tasks, "pass_revoked", pass_obj, build_pass_response(pass_obj))
    return PassRevokeResponse(message="Пропуск отозван", pass_id=pass_obj.id)
