import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from yardpass.database import get_db
from yardpass.models.building import Building
from yardpass.models.user import User, ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.schemas.user import UserCreate, UserResponse, UsersListResponse
from yardpass.api.deps import require_roles, resolve_building_scope
from yardpass.services.auth import get_password_hash, local_timestamp

router = APIRouter()
logger = logging.getLogger(__name__)

managers = require_roles(ROLE_ADMIN, ROLE_SUPERUSER)


@router.get("/users", response_model=UsersListResponse)
def get_users(
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(managers),
):
    """Сотрудники здания (superuser без фильтра видит всех)"""
    scope = resolve_building_scope(current_user, building_id)

    query = db.query(User)
    if scope is not None:
        query = query.filter(User.building_id == scope)
    users = query.order_by(User.username).all()

    return UsersListResponse(users=[UserResponse.model_validate(u) for u in users])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(managers),
):
    """
    Создать сотрудника.
    Администратор здания заводит только охранников своего здания,
    superuser - кого угодно.
    """
    building_id = user_data.building_id

    if current_user.role == ROLE_ADMIN:
        if user_data.role != ROLE_GUARD:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Администратор может создавать только охранников",
            )
        if building_id is not None and building_id != current_user.building_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Нет доступа к другому зданию",
            )
        building_id = current_user.building_id

    if user_data.role == ROLE_SUPERUSER:
        building_id = None
    elif building_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Для охранника и администратора необходимо указать здание",
        )
    elif db.query(Building).filter(Building.id == building_id).first() is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Указанное здание не найдено",
        )

    existing_user = db.query(User).filter(User.username == user_data.username).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Пользователь с таким именем уже существует",
        )

    if user_data.email:
        existing_email = db.query(User).filter(User.email == user_data.email).first()
        if existing_email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Пользователь с таким email уже существует",
            )

    user = User(
        username=user_data.username,
        email=user_data.email,
        full_name=user_data.full_name,
        password_hash=get_password_hash(user_data.password),
        role=user_data.role,
        building_id=building_id,
        is_active=1,
        created_at=local_timestamp(),
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Создан сотрудник '{user.username}' (роль: {user.role}, здание: {user.building_id}) пользователем '{current_user.username}'")
    return UserResponse.model_validate(user)
