"""
Сервисный API для telegram-бота. Авторизация по заголовку X-Service-Token,
житель определяется по telegram_id.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from yardpass.database import get_db
from yardpass.models.resident import Resident
from yardpass.schemas.pass_schema import PassListResponse, PassResponse, PassRevokeResponse, ServicePassCreate
from yardpass.api.deps import check_create_rate, require_service_token
from yardpass.services import views
from yardpass.services.errors import NotFoundError, RESIDENT_NOT_FOUND
from yardpass.services.notifications import notify_resident
from yardpass.services.passes import CreatePassRequest, create_pass, revoke_pass

router = APIRouter(dependencies=[Depends(require_service_token)])
logger = logging.getLogger(__name__)


def get_resident_by_telegram_id(db: Session, telegram_id: int) -> Resident:
    resident = db.query(Resident).filter(Resident.telegram_id == telegram_id).first()
    if resident is None:
        raise NotFoundError(RESIDENT_NOT_FOUND, "Житель не зарегистрирован")
    return resident


@router.post("/passes", response_model=PassResponse, status_code=status.HTTP_201_CREATED)
def create_resident_pass(
    pass_data: ServicePassCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Житель создает пропуск для своего гостя"""
    check_create_rate(f"create_pass:telegram:{pass_data.telegram_id}")
    resident = get_resident_by_telegram_id(db, pass_data.telegram_id)

    pass_obj = create_pass(db, CreatePassRequest(
        apartment_id=resident.apartment_id,
        resident_id=resident.id,
        car_plate=pass_data.car_plate,
        guest_name=pass_data.guest_name,
        valid_from=pass_data.valid_from,
        valid_to=pass_data.valid_to,
    ))

    response = PassResponse.model_validate(pass_obj)
    background_tasks.add_task(notify_resident, "pass_created", resident.chat_id, response.model_dump(mode="json"))
    return response


@router.post("/passes/{pass_id}/revoke", response_model=PassRevokeResponse)
def revoke_resident_pass(
    pass_id: str,
    background_tasks: BackgroundTasks,
    telegram_id: int = Query(...),
    db: Session = Depends(get_db),
):
    """Житель отзывает свой пропуск"""
    resident = get_resident_by_telegram_id(db, telegram_id)
    pass_obj = revoke_pass(db, pass_id, f"resident:{resident.id}", resident_id=resident.id)

    response = PassResponse.model_validate(pass_obj)
    background_tasks.add_task(notify_resident, "pass_revoked", resident.chat_id, response.model_dump(mode="json"))
    return PassRevokeResponse(message="Пропуск отозван", pass_id=pass_obj.id)


@router.get("/passes/active", response_model=PassListResponse)
def get_resident_active_passes(
    telegram_id: int = Query(...),
    db: Session = Depends(get_db),
):
    resident = get_resident_by_telegram_id(db, telegram_id)
    passes = views.active_passes_by_resident(db, resident.id)
    return PassListResponse(passes=[PassResponse.model_validate(p) for p in passes])
