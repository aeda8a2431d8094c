import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from yardpass.config import settings
from yardpass.database import get_db
from yardpass.models.user import User
from yardpass.schemas.auth import LoginRequest, LoginResponse
from yardpass.schemas.user import UserResponse
from yardpass.services.auth import authenticate_user, create_user_token
from yardpass.api.deps import get_current_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse)
def login(login_data: LoginRequest, db: Session = Depends(get_db)):
    """Вход сотрудника по username или email"""
    user = authenticate_user(db, login_data.username, login_data.password)
    if user is None:
        logger.warning(f"Неудачная попытка входа: '{login_data.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Неверное имя пользователя/email или пароль",
        )

    if not user.is_active:
        logger.warning(f"Вход деактивированного сотрудника отклонен: '{user.username}'")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Пользователь деактивирован",
        )

    logger.info(f"Вход: '{user.username}' (роль: {user.role}, здание: {user.building_id})")
    return LoginResponse(
        access_token=create_user_token(user),
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)
