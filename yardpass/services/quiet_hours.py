import re
from datetime import datetime
from typing import Optional

from pytz import timezone

from yardpass.config import settings

SECONDS_PER_DAY = 24 * 60 * 60

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_hhmm(value: Optional[str]) -> bool:
    return bool(value) and _HHMM_RE.match(value) is not None


def parse_hhmm(value: str) -> int:
    """Перевод "HH:MM" в секунды от начала суток"""
    match = _HHMM_RE.match(value or "")
    if not match:
        raise ValueError(f"Время должно быть в формате HH:MM, получено {value!r}")
    return int(match.group(1)) * 3600 + int(match.group(2)) * 60


def get_building_tz(tz_name: Optional[str] = None):
    return timezone(tz_name or settings.TIMEZONE)


def seconds_of_day(moment: datetime, tz=None) -> int:
    """Секунды от полуночи по локальному времени здания"""
    local = moment.astimezone(tz or get_building_tz())
    return local.hour * 3600 + local.minute * 60 + local.second


def _window(start: str, end: str) -> tuple[int, int]:
    start_sec = parse_hhmm(start)
    end_sec = parse_hhmm(end)
    # Окно через полночь: 22:00-06:00 -> [22:00, 30:00)
    if end_sec < start_sec:
        end_sec += SECONDS_PER_DAY
    return start_sec, end_sec


def overlaps_quiet_hours(valid_from: datetime, valid_to: datetime, start: str, end: str, tz=None) -> bool:
    """
    Пересекается ли интервал [valid_from, valid_to) с ежедневным окном тихих часов.

    Интервал переводится в секунды от полуночи дня valid_from, окно
    сравнивается в нескольких суточных сдвигах: окно вчерашнего дня
    (хвост после полуночи) и окна всех дней, которые задевает интервал.
    """
    start_sec, end_sec = _window(start, end)
    if start_sec == end_sec:
        return False

    from_sec = seconds_of_day(valid_from, tz)
    to_sec = from_sec + (valid_to - valid_from).total_seconds()

    last_day = int(to_sec // SECONDS_PER_DAY) + 1
    for day in range(-1, last_day + 1):
        shift = day * SECONDS_PER_DAY
        if from_sec < end_sec + shift and to_sec > start_sec + shift:
            return True
    return False


def is_quiet_time(moment: datetime, start: str, end: str, tz=None) -> bool:
    """Попадает ли момент в окно тихих часов (начало включительно, конец нет)"""
    start_sec = parse_hhmm(start)
    end_sec = parse_hhmm(end)
    now_sec = seconds_of_day(moment, tz)

    if end_sec < start_sec:
        return now_sec >= start_sec or now_sec < end_sec
    return start_sec <= now_sec < end_sec
