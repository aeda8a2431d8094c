import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from yardpass.config import settings
from yardpass.database import get_db
from yardpass.models.user import User, ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.services.auth import decode_access_token
from yardpass.services.errors import RATE_LIMIT_EXCEEDED
from yardpass.services.rate_limit import CreatePassRateLimiter

security = HTTPBearer()

create_pass_limiter = CreatePassRateLimiter(f"{settings.RATE_LIMIT_CREATE_PASS_PER_HOUR}/hour")


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Получить текущего сотрудника из JWT токена"""
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Невалидный токен авторизации",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Невалидный токен авторизации",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Пользователь не найден",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Пользователь деактивирован",
        )

    # Охранник и администратор работают только в рамках своего здания
    if user.role in (ROLE_GUARD, ROLE_ADMIN) and user.building_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Пользователь не привязан к зданию",
        )

    return user


def require_roles(*roles: str):
    """Dependency для проверки роли пользователя"""
    def check_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Недостаточно прав доступа",
            )
        return current_user

    return check_role


def resolve_building_scope(user: User, requested_building_id: Optional[int] = None) -> Optional[int]:
    """
    Здание, в рамках которого работает запрос.
    superuser выбирает здание сам (или все), остальные видят только свое.
    """
    if user.role == ROLE_SUPERUSER:
        return requested_building_id

    if requested_building_id is not None and requested_building_id != user.building_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Нет доступа к другому зданию",
        )
    return user.building_id


def require_service_token(x_service_token: Optional[str] = Header(None)) -> str:
    """Авторизация сервисных вызовов (telegram-бот)"""
    if not x_service_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Требуется сервисный токен",
        )
    if not settings.SERVICE_TOKEN or not secrets.compare_digest(x_service_token, settings.SERVICE_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Невалидный сервисный токен",
        )
    return x_service_token


def check_create_rate(key: str) -> None:
    if not create_pass_limiter.hit(key):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"code": RATE_LIMIT_EXCEEDED, "message": "Слишком много запросов на создание пропусков"},
        )


def create_pass_rate_limit(
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_SUPERUSER)),
) -> User:
    check_create_rate(f"create_pass:user:{current_user.id}")
    return current_user
