from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from yardpass.database import get_db
from yardpass.models.user import User, ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER
from yardpass.schemas.rule import RuleUpdate, RuleResponse
from yardpass.api.deps import require_roles, resolve_building_scope
from yardpass.services.errors import InvalidRequestError, INVALID_RULE
from yardpass.services.rules import EffectiveRule, get_effective_rule, upsert_rule

router = APIRouter()


def _scoped_building(current_user: User, building_id: Optional[int]) -> int:
    scope = resolve_building_scope(current_user, building_id)
    if scope is None:
        raise InvalidRequestError(INVALID_RULE, "Необходимо указать building_id")
    return scope


@router.get("/rules", response_model=RuleResponse)
def get_rules(
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_GUARD, ROLE_ADMIN, ROLE_SUPERUSER)),
):
    """Действующие правила здания (значения по умолчанию, если правила не заданы)"""
    rule = get_effective_rule(db, _scoped_building(current_user, building_id))
    return RuleResponse.model_validate(rule)


@router.put("/rules", response_model=RuleResponse)
def update_rules(
    rule_data: RuleUpdate,
    building_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(ROLE_ADMIN, ROLE_SUPERUSER)),
):
    """Изменить правила здания: меняются только переданные поля"""
    rule = upsert_rule(
        db,
        _scoped_building(current_user, building_id),
        rule_data.model_dump(exclude_unset=True),
    )
    return RuleResponse.model_validate(EffectiveRule.from_row(rule))
