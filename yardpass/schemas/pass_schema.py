from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


class PassCreate(BaseModel):
    apartment_id: int
    resident_id: Optional[int] = None
    car_plate: Optional[str] = None  # None для пешеходных гостей
    guest_name: Optional[str] = None
    valid_from: Optional[datetime] = None  # по умолчанию - сейчас
    valid_to: datetime

    @field_validator("guest_name")
    @classmethod
    def strip_guest_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class ServicePassCreate(BaseModel):
    """Создание пропуска ботом от имени жителя"""
    telegram_id: int
    car_plate: Optional[str] = None
    guest_name: Optional[str] = None
    valid_from: Optional[datetime] = None
    valid_to: datetime


class PassResponse(BaseModel):
    id: str
    apartment_id: int
    resident_id: Optional[int] = None
    car_plate: Optional[str] = None
    guest_name: Optional[str] = None
    valid_from: datetime
    valid_to: datetime
    status: str
    created_at: datetime
    updated_at: datetime
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None

    class Config:
        from_attributes = True


class PassListResponse(BaseModel):
    passes: List[PassResponse]


class PassRevokeResponse(BaseModel):
    message: str
    pass_id: str


class PassValidateRequest(BaseModel):
    """Проверка по QR (uuid или полное содержимое кода) либо по номеру машины"""
    qr_uuid: Optional[str] = None
    qr_data: Optional[str] = None
    car_plate: Optional[str] = None

    @model_validator(mode="after")
    def check_any_source(self):
        if not (self.qr_uuid or self.qr_data or self.car_plate):
            raise ValueError("Нужно указать qr_uuid, qr_data или car_plate")
        return self


class PassValidationResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    pass_id: Optional[str] = None
    car_plate: Optional[str] = None
    apartment: Optional[str] = None
    valid_to: Optional[datetime] = None


class VehiclesResponse(BaseModel):
    vehicles: List[PassResponse]
    total: int
    limit: int
    offset: int


class OccupancyResponse(BaseModel):
    occupied: int
    total: int
    free: int
    percent: float = Field(..., description="Заполненность в процентах")
