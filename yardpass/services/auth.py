from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pytz import timezone
from sqlalchemy.orm import Session

from yardpass.config import settings
from yardpass.database import utcnow
from yardpass.models.user import User

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def authenticate_user(db: Session, login: str, password: str) -> Optional[User]:
    """Сотрудник по username или email; None если такого нет или пароль не подошел"""
    user = db.query(User).filter((User.username == login) | (User.email == login)).first()
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def create_user_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """
    JWT сотрудника. Роль и здание кладутся в claims, чтобы пульт охраны
    мог показать их без лишнего запроса.
    """
    issued_at = utcnow()
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": user.id,
        "role": user.role,
        "building_id": user.building_id,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def local_timestamp() -> str:
    """ISO-время по часам здания, для текстовых полей created_at"""
    return utcnow().astimezone(timezone(settings.TIMEZONE)).isoformat()
