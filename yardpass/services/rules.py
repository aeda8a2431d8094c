import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from yardpass.models.building import Building
from yardpass.models.rule import Rule, DEFAULT_DAILY_PASS_LIMIT, DEFAULT_MAX_PASS_DURATION_HOURS
from yardpass.services.errors import (
    BUILDING_NOT_FOUND,
    INVALID_QUIET_HOURS,
    INVALID_RULE,
    InvalidRequestError,
    NotFoundError,
)
from yardpass.services.quiet_hours import is_valid_hhmm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EffectiveRule:
    building_id: int
    daily_pass_limit: int = DEFAULT_DAILY_PASS_LIMIT
    max_pass_duration_hours: int = DEFAULT_MAX_PASS_DURATION_HOURS
    quiet_hours_start: Optional[str] = None
    quiet_hours_end: Optional[str] = None
    is_default: bool = True

    @property
    def has_quiet_hours(self) -> bool:
        return bool(self.quiet_hours_start) and bool(self.quiet_hours_end)

    @classmethod
    def from_row(cls, rule: Rule) -> "EffectiveRule":
        return cls(
            building_id=rule.building_id,
            daily_pass_limit=rule.daily_pass_limit,
            max_pass_duration_hours=rule.max_pass_duration_hours,
            quiet_hours_start=rule.quiet_hours_start,
            quiet_hours_end=rule.quiet_hours_end,
            is_default=False,
        )


def find_rule(db: Session, building_id: int) -> Optional[EffectiveRule]:
    """Правило здания без проверки существования здания (None если строки нет)"""
    rule = db.query(Rule).filter(Rule.building_id == building_id).first()
    if rule is None:
        return None
    return EffectiveRule.from_row(rule)


def get_effective_rule(db: Session, building_id: int) -> EffectiveRule:
    """
    Действующее правило здания.
    Если строки в rules нет, возвращаются значения по умолчанию (в БД не пишутся).
    """
    building = db.query(Building).filter(Building.id == building_id).first()
    if building is None:
        raise NotFoundError(BUILDING_NOT_FOUND, f"Здание {building_id} не найдено")

    rule = find_rule(db, building_id)
    if rule is None:
        return EffectiveRule(building_id=building_id)
    return rule


def _validate_changes(changes: Dict[str, Any]) -> None:
    for key in ("quiet_hours_start", "quiet_hours_end"):
        value = changes.get(key)
        if value is not None and not is_valid_hhmm(value):
            raise InvalidRequestError(INVALID_QUIET_HOURS, f"{key} должен быть в формате HH:MM")

    for key in ("daily_pass_limit", "max_pass_duration_hours"):
        if key in changes:
            value = changes[key]
            if value is None or int(value) <= 0:
                raise InvalidRequestError(INVALID_RULE, f"{key} должен быть положительным числом")


def upsert_rule(db: Session, building_id: int, changes: Dict[str, Any]) -> Rule:
    """
    Частичное обновление правила здания. Если строки нет, она создается
    от значений по умолчанию. None в тихих часах сбрасывает границу.
    """
    building = db.query(Building).filter(Building.id == building_id).first()
    if building is None:
        raise NotFoundError(BUILDING_NOT_FOUND, f"Здание {building_id} не найдено")

    _validate_changes(changes)

    rule = db.query(Rule).filter(Rule.building_id == building_id).first()
    if rule is None:
        rule = Rule(
            building_id=building_id,
            daily_pass_limit=DEFAULT_DAILY_PASS_LIMIT,
            max_pass_duration_hours=DEFAULT_MAX_PASS_DURATION_HOURS,
        )
        db.add(rule)

    for key in ("quiet_hours_start", "quiet_hours_end", "daily_pass_limit", "max_pass_duration_hours"):
        if key in changes:
            setattr(rule, key, changes[key])

    db.commit()
    db.refresh(rule)

    logger.info(
        f"Обновлены правила здания {building_id}: limit={rule.daily_pass_limit}, "
        f"max_hours={rule.max_pass_duration_hours}, quiet={rule.quiet_hours_start}-{rule.quiet_hours_end}"
    )
    return rule
