from typing import Optional, List
from pydantic import BaseModel, EmailStr, field_validator

from yardpass.models.user import ROLES


class UserBase(BaseModel):
    username: str
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None


class UserCreate(UserBase):
    password: str
    role: str
    building_id: Optional[int] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError('Пароль должен содержать минимум 6 символов')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in ROLES:
            raise ValueError(f"Роль должна быть одной из: {', '.join(ROLES)}")
        return v


class UserResponse(UserBase):
    id: str
    role: str
    building_id: Optional[int] = None
    is_active: bool
    created_at: str

    class Config:
        from_attributes = True


class UsersListResponse(BaseModel):
    users: List[UserResponse]
