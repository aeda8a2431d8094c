import json
from datetime import timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import local_time
from yardpass.models.pass_model import Pass, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_REVOKED
from yardpass.models.scan_event import ScanEvent
from yardpass.models.resident import RESIDENT_INACTIVE as STATUS_INACTIVE
from yardpass.services import passes, scan_ledger
from yardpass.services.errors import (
    ALREADY_REVOKED,
    APARTMENT_NOT_FOUND,
    DAILY_LIMIT_EXCEEDED,
    DURATION_EXCEEDED,
    INVALID_CAR_PLATE,
    INVALID_TIME_RANGE,
    PASS_ACCESS_DENIED,
    PASS_NOT_FOUND,
    QUIET_HOURS_VIOLATION,
    RESIDENT_APARTMENT_MISMATCH,
    RESIDENT_ID_REQUIRED,
    RESIDENT_INACTIVE,
    AccessDeniedError,
    AlreadyRevokedError,
    InvalidRequestError,
    NotFoundError,
    PolicyError,
)
from yardpass.services.passes import (
    PASS_EXPIRED,
    PASS_NOT_YET_VALID,
    PASS_REVOKED,
    QUIET_HOURS,
    CreatePassRequest,
    create_pass,
    revoke_pass,
    validate_pass,
    validate_pass_by_car_plate,
)
from yardpass.services.rules import upsert_rule

NOW = local_time(2026, 3, 10, 9, 0)


def make_request(seed, valid_from, valid_to, car_plate="A123BC77", **kwargs):
    return CreatePassRequest(
        apartment_id=kwargs.pop("apartment_id", seed.apartment.id),
        resident_id=kwargs.pop("resident_id", seed.resident.id),
        car_plate=car_plate,
        valid_from=valid_from,
        valid_to=valid_to,
        **kwargs,
    )


def new_pass(db, seed, start_hour=10, end_hour=11, now=NOW, **kwargs):
    request = make_request(
        seed,
        local_time(2026, 3, 10, start_hour),
        local_time(2026, 3, 10, end_hour),
        **kwargs,
    )
    return create_pass(db, request, now=now)


def scan_events(db, pass_id=None):
    query = db.query(ScanEvent)
    if pass_id is not None:
        query = query.filter(ScanEvent.pass_id == pass_id)
    return query.order_by(ScanEvent.id).all()


class TestCreatePass:
    def test_created_active_with_normalized_plate(self, db, seed):
        pass_obj = new_pass(db, seed, car_plate="a 123 bc 77", guest_name="Гость")

        assert pass_obj.status == STATUS_ACTIVE
        assert pass_obj.car_plate == "A123BC77"
        assert pass_obj.guest_name == "Гость"
        assert len(pass_obj.id) == 36
        assert db.query(Pass).count() == 1

    def test_valid_from_defaults_to_now(self, db, seed):
        request = CreatePassRequest(
            apartment_id=seed.apartment.id,
            resident_id=seed.resident.id,
            valid_to=NOW + timedelta(hours=2),
        )
        pass_obj = create_pass(db, request, now=NOW)
        assert pass_obj.valid_from == NOW

    def test_pedestrian_pass(self, db, seed):
        pass_obj = new_pass(db, seed, car_plate=None)
        assert pass_obj.car_plate is None
        assert pass_obj.is_pedestrian

    def test_empty_plate_is_pedestrian(self, db, seed):
        assert new_pass(db, seed, car_plate="").car_plate is None

    def test_punctuation_plate_rejected(self, db, seed):
        with pytest.raises(InvalidRequestError) as exc:
            new_pass(db, seed, car_plate=" -- . ")
        assert exc.value.code == INVALID_CAR_PLATE
        assert db.query(Pass).count() == 0

    def test_time_range_checked_first(self, db, seed):
        request = make_request(
            seed, local_time(2026, 3, 10, 12), local_time(2026, 3, 10, 11), car_plate="!!!", apartment_id=999
        )
        with pytest.raises(InvalidRequestError) as exc:
            create_pass(db, request, now=NOW)
        assert exc.value.code == INVALID_TIME_RANGE

    def test_equal_bounds_rejected(self, db, seed):
        moment = local_time(2026, 3, 10, 12)
        with pytest.raises(InvalidRequestError) as exc:
            create_pass(db, make_request(seed, moment, moment), now=NOW)
        assert exc.value.code == INVALID_TIME_RANGE

    def test_resident_required(self, db, seed):
        with pytest.raises(InvalidRequestError) as exc:
            new_pass(db, seed, resident_id=None)
        assert exc.value.code == RESIDENT_ID_REQUIRED

    def test_unknown_apartment(self, db, seed):
        with pytest.raises(NotFoundError) as exc:
            new_pass(db, seed, apartment_id=999)
        assert exc.value.code == APARTMENT_NOT_FOUND

    def test_inactive_resident_rejected(self, db, seed):
        seed.resident.status = STATUS_INACTIVE
        db.commit()

        with pytest.raises(AccessDeniedError) as exc:
            new_pass(db, seed)
        assert exc.value.code == RESIDENT_INACTIVE
        assert db.query(Pass).count() == 0

    def test_resident_of_other_apartment(self, db, seed):
        with pytest.raises(InvalidRequestError) as exc:
            new_pass(db, seed, resident_id=seed.other_resident.id)
        assert exc.value.code == RESIDENT_APARTMENT_MISMATCH


class TestDuration:
    def test_exactly_max_duration_allowed(self, db, seed):
        start = local_time(2026, 3, 10, 10)
        pass_obj = create_pass(db, make_request(seed, start, start + timedelta(hours=24)), now=NOW)
        assert pass_obj.status == STATUS_ACTIVE

    def test_one_microsecond_over_rejected(self, db, seed):
        start = local_time(2026, 3, 10, 10)
        request = make_request(seed, start, start + timedelta(hours=24, microseconds=1))
        with pytest.raises(PolicyError) as exc:
            create_pass(db, request, now=NOW)
        assert exc.value.code == DURATION_EXCEEDED

    def test_building_rule_applies(self, db, seed):
        upsert_rule(db, seed.building.id, {"max_pass_duration_hours": 2})
        with pytest.raises(PolicyError) as exc:
            new_pass(db, seed, start_hour=10, end_hour=13)
        assert exc.value.code == DURATION_EXCEEDED


class TestDailyLimit:
    def test_sixth_pass_rejected(self, db, seed):
        for _ in range(5):
            new_pass(db, seed)

        with pytest.raises(PolicyError) as exc:
            new_pass(db, seed)

        assert exc.value.code == DAILY_LIMIT_EXCEEDED
        assert "создано сегодня 5" in exc.value.message
        assert "лимит: 5" in exc.value.message
        assert db.query(Pass).count() == 5

    def test_limit_is_per_resident(self, db, seed):
        for _ in range(5):
            new_pass(db, seed)
        pass_obj = new_pass(db, seed, resident_id=seed.neighbour.id)
        assert pass_obj.resident_id == seed.neighbour.id

    def test_revoked_passes_still_count(self, db, seed):
        for _ in range(5):
            pass_obj = new_pass(db, seed)
            revoke_pass(db, pass_obj.id, seed.admin.id, now=NOW)

        with pytest.raises(PolicyError):
            new_pass(db, seed)

    def test_counter_resets_at_local_midnight(self, db, seed):
        late = local_time(2026, 3, 10, 23, 50)
        for _ in range(5):
            create_pass(db, make_request(seed, late, late + timedelta(hours=1)), now=late)

        next_day = local_time(2026, 3, 11, 0, 5)
        pass_obj = create_pass(db, make_request(seed, next_day, next_day + timedelta(hours=1)), now=next_day)
        assert pass_obj.status == STATUS_ACTIVE


class TestQuietHoursOnCreate:
    def test_daytime_window(self, db, seed):
        upsert_rule(db, seed.building.id, {"quiet_hours_start": "13:00", "quiet_hours_end": "15:00"})

        allowed = create_pass(
            db, make_request(seed, local_time(2026, 3, 10, 12), local_time(2026, 3, 10, 12, 30)), now=NOW
        )
        assert allowed.status == STATUS_ACTIVE

        with pytest.raises(PolicyError) as exc:
            create_pass(
                db, make_request(seed, local_time(2026, 3, 10, 12, 30), local_time(2026, 3, 10, 13, 30)), now=NOW
            )
        assert exc.value.code == QUIET_HOURS_VIOLATION

    def test_overnight_window(self, db, seed):
        upsert_rule(db, seed.building.id, {"quiet_hours_start": "22:00", "quiet_hours_end": "06:00"})

        with pytest.raises(PolicyError):
            create_pass(
                db, make_request(seed, local_time(2026, 3, 10, 23), local_time(2026, 3, 10, 23, 30)), now=NOW
            )

        morning = create_pass(
            db, make_request(seed, local_time(2026, 3, 11, 7), local_time(2026, 3, 11, 8)), now=NOW
        )
        assert morning.status == STATUS_ACTIVE

        with pytest.raises(PolicyError) as exc:
            create_pass(
                db, make_request(seed, local_time(2026, 3, 11, 5, 30), local_time(2026, 3, 11, 6, 30)), now=NOW
            )
        assert exc.value.code == QUIET_HOURS_VIOLATION

    def test_single_bound_is_ignored(self, db, seed):
        upsert_rule(db, seed.building.id, {"quiet_hours_start": "13:00"})
        pass_obj = new_pass(db, seed, start_hour=12, end_hour=16)
        assert pass_obj.status == STATUS_ACTIVE


class TestValidatePass:
    def test_valid_pass(self, db, seed):
        pass_obj = new_pass(db, seed)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 10, 30))

        assert result.valid
        assert result.reason == ""
        assert result.car_plate == "A123BC77"
        assert result.apartment == "12"
        assert result.valid_to == pass_obj.valid_to

    def test_unknown_pass(self, db, seed):
        result = validate_pass(db, "00000000-0000-0000-0000-000000000000", seed.guard.id, now=NOW)
        assert not result.valid
        assert result.reason == PASS_NOT_FOUND

    def test_not_yet_valid(self, db, seed):
        pass_obj = new_pass(db, seed)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 9, 30))
        assert result.reason == PASS_NOT_YET_VALID

    def test_revoked(self, db, seed):
        pass_obj = new_pass(db, seed)
        revoke_pass(db, pass_obj.id, seed.admin.id, now=NOW)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 10, 30))
        assert result.reason == PASS_REVOKED

    def test_lazy_expiry(self, db, seed):
        pass_obj = new_pass(db, seed)
        later = local_time(2026, 3, 10, 12)

        first = validate_pass(db, pass_obj.id, seed.guard.id, now=later)
        assert first.reason == PASS_EXPIRED
        db.refresh(pass_obj)
        assert pass_obj.status == STATUS_EXPIRED

        second = validate_pass(db, pass_obj.id, seed.guard.id, now=later + timedelta(hours=1))
        assert second.reason == PASS_EXPIRED
        db.refresh(pass_obj)
        assert pass_obj.status == STATUS_EXPIRED

    def test_valid_to_is_inclusive(self, db, seed):
        pass_obj = new_pass(db, seed)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 11))
        assert result.valid

    def test_quiet_hours_at_validation(self, db, seed):
        pass_obj = new_pass(db, seed, start_hour=12, end_hour=16)
        upsert_rule(db, seed.building.id, {"quiet_hours_start": "13:00", "quiet_hours_end": "15:00"})

        inside = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 13, 30))
        assert inside.reason == QUIET_HOURS

        after = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 15))
        assert after.valid

    def test_pedestrian_validates_without_plate(self, db, seed):
        pass_obj = new_pass(db, seed, car_plate=None)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 10, 30))
        assert result.valid
        assert result.car_plate is None


class TestValidateByCarPlate:
    def test_found_by_raw_plate(self, db, seed):
        pass_obj = new_pass(db, seed)
        result = validate_pass_by_car_plate(
            db, "a123 bc77", seed.guard.id, seed.building.id, now=local_time(2026, 3, 10, 10, 30)
        )
        assert result.valid
        assert result.pass_id == pass_obj.id

    def test_other_building_not_matched(self, db, seed):
        new_pass(db, seed)
        result = validate_pass_by_car_plate(
            db, "A123BC77", seed.guard.id, seed.other_building.id, now=local_time(2026, 3, 10, 10, 30)
        )
        assert result.reason == PASS_NOT_FOUND

    def test_outside_window_not_matched(self, db, seed):
        new_pass(db, seed)
        result = validate_pass_by_car_plate(db, "A123BC77", seed.guard.id, now=local_time(2026, 3, 10, 12))
        assert result.reason == PASS_NOT_FOUND

    def test_miss_is_recorded_with_plate(self, db, seed):
        result = validate_pass_by_car_plate(db, "o 001 oo", seed.guard.id, seed.building.id, now=NOW)
        assert result.reason == PASS_NOT_FOUND

        events = scan_events(db)
        assert len(events) == 1
        assert events[0].pass_id is None
        assert events[0].result == "invalid"
        assert json.loads(events[0].meta) == {"car_plate": "O001OO", "building_id": seed.building.id}


class TestAudit:
    def test_every_validation_writes_one_event(self, db, seed):
        pass_obj = new_pass(db, seed)
        moments = [
            (local_time(2026, 3, 10, 9, 30), PASS_NOT_YET_VALID),
            (local_time(2026, 3, 10, 10, 30), ""),
            (local_time(2026, 3, 10, 12), PASS_EXPIRED),
        ]
        for now, _ in moments:
            validate_pass(db, pass_obj.id, seed.guard.id, now=now)

        events = scan_events(db, pass_obj.id)
        assert [e.reason for e in events] == [reason for _, reason in moments]
        assert [e.result for e in events] == ["invalid", "valid", "invalid"]
        assert all(e.guard_user_id == seed.guard.id for e in events)

    def test_unknown_id_is_recorded(self, db, seed):
        missing = "11111111-1111-1111-1111-111111111111"
        validate_pass(db, missing, seed.guard.id, now=NOW)
        events = scan_events(db, missing)
        assert len(events) == 1
        assert events[0].reason == PASS_NOT_FOUND

    def test_ledger_failure_does_not_break_validation(self, db, seed, monkeypatch):
        pass_obj = new_pass(db, seed)

        def broken_append(*args, **kwargs):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(scan_ledger, "append_event", broken_append)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 10, 30))
        assert result.valid
        assert scan_events(db) == []

    def test_rule_lookup_failure_does_not_block_guard(self, db, seed, monkeypatch):
        pass_obj = new_pass(db, seed)
        upsert_rule(db, seed.building.id, {"quiet_hours_start": "10:00", "quiet_hours_end": "11:00"})

        def broken_find_rule(*args, **kwargs):
            raise SQLAlchemyError("rules table locked")

        monkeypatch.setattr(passes, "find_rule", broken_find_rule)
        result = validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 10, 30))

        # без правила тихие часы не применяются, номер квартиры сохраняется
        assert result.valid
        assert result.apartment == "12"
        assert result.car_plate == "A123BC77"
        events = scan_events(db, pass_obj.id)
        assert len(events) == 1
        assert events[0].result == "valid"


class TestRevoke:
    def test_revoke_sets_audit_fields(self, db, seed):
        pass_obj = new_pass(db, seed)
        revoked = revoke_pass(db, pass_obj.id, seed.admin.id, now=local_time(2026, 3, 10, 9, 30))

        assert revoked.status == STATUS_REVOKED
        assert revoked.revoked_by == seed.admin.id
        assert revoked.revoked_at == local_time(2026, 3, 10, 9, 30)
        assert scan_events(db) == []

    def test_second_revoke_fails(self, db, seed):
        pass_obj = new_pass(db, seed)
        revoke_pass(db, pass_obj.id, seed.admin.id, now=NOW)
        for _ in range(2):
            with pytest.raises(AlreadyRevokedError) as exc:
                revoke_pass(db, pass_obj.id, seed.admin.id, now=NOW)
            assert exc.value.code == ALREADY_REVOKED

    def test_expired_pass_can_be_revoked(self, db, seed):
        pass_obj = new_pass(db, seed)
        validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 12))
        assert revoke_pass(db, pass_obj.id, seed.admin.id, now=NOW).status == STATUS_REVOKED

    def test_unknown_pass(self, db, seed):
        with pytest.raises(NotFoundError) as exc:
            revoke_pass(db, "missing", seed.admin.id)
        assert exc.value.code == PASS_NOT_FOUND

    def test_building_scope(self, db, seed):
        pass_obj = new_pass(db, seed)
        with pytest.raises(AccessDeniedError) as exc:
            revoke_pass(db, pass_obj.id, seed.other_admin.id, building_id=seed.other_building.id)
        assert exc.value.code == PASS_ACCESS_DENIED

    def test_resident_owns_pass(self, db, seed):
        pass_obj = new_pass(db, seed)
        with pytest.raises(AccessDeniedError):
            revoke_pass(db, pass_obj.id, "resident", resident_id=seed.neighbour.id)
        assert revoke_pass(db, pass_obj.id, "resident", resident_id=seed.resident.id).status == STATUS_REVOKED
