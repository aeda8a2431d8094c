from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class ScanEventResponse(BaseModel):
    id: int
    pass_id: Optional[str] = None
    guard_user_id: Optional[str] = None
    guard_username: Optional[str] = None
    scanned_at: datetime
    result: str
    reason: str = ""
    meta: Optional[Dict[str, Any]] = None
    car_plate: Optional[str] = None
    apartment_number: Optional[str] = None
    building_id: Optional[int] = None


class ScanEventsListResponse(BaseModel):
    events: List[ScanEventResponse]
    limit: int
    offset: int


class StatisticsResponse(BaseModel):
    total_scans: int
    valid_scans: int
    invalid_scans: int
    unique_passes: int
    unique_guards: int
    valid_percent: float
    period_from: Optional[datetime] = None
    period_to: Optional[datetime] = None
