from typing import Optional
from pydantic import BaseModel


class RuleUpdate(BaseModel):
    """Частичное обновление: переданные поля меняются, null в тихих часах сбрасывает границу"""
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    daily_pass_limit: Optional[int] = None
    max_pass_duration_hours: Optional[int] = None


class RuleResponse(BaseModel):
    building_id: int
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    daily_pass_limit: int
    max_pass_duration_hours: int
    is_default: bool = False

    class Config:
        from_attributes = True
