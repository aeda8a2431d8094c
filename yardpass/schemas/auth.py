from pydantic import BaseModel, Field

from yardpass.schemas.user import UserResponse


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="username или email сотрудника")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Секунды до истечения токена")
    user: UserResponse
