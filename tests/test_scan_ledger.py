import pytest

from conftest import local_time
from yardpass.services.passes import CreatePassRequest, create_pass, validate_pass, validate_pass_by_car_plate
from yardpass.services.scan_ledger import ScanEventFilters, list_events, statistics

NOW = local_time(2026, 3, 10, 9, 0)


@pytest.fixture
def history(db, seed):
    pass_obj = create_pass(db, CreatePassRequest(
        apartment_id=seed.apartment.id,
        resident_id=seed.resident.id,
        car_plate="A123BC77",
        valid_from=local_time(2026, 3, 10, 10),
        valid_to=local_time(2026, 3, 10, 11),
    ), now=NOW)

    validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 9, 30))
    validate_pass(db, pass_obj.id, seed.guard.id, now=local_time(2026, 3, 10, 10, 15))
    validate_pass(db, pass_obj.id, seed.admin.id, now=local_time(2026, 3, 10, 10, 20))
    validate_pass_by_car_plate(db, "X999XX99", seed.guard.id, seed.building.id, now=local_time(2026, 3, 10, 10, 30))
    return pass_obj


def test_list_newest_first_with_details(db, seed, history):
    events = list_events(db, ScanEventFilters())

    assert len(events) == 4
    assert events[0]["pass_id"] is None
    assert events[0]["meta"] == {"car_plate": "X999XX99", "building_id": seed.building.id}

    latest_for_pass = events[1]
    assert latest_for_pass["pass_id"] == history.id
    assert latest_for_pass["car_plate"] == "A123BC77"
    assert latest_for_pass["apartment_number"] == "12"
    assert latest_for_pass["building_id"] == seed.building.id
    assert latest_for_pass["guard_username"] == "admin"


def test_filters(db, seed, history):
    assert len(list_events(db, ScanEventFilters(result="valid"))) == 2
    assert len(list_events(db, ScanEventFilters(guard_user_id=seed.guard.id))) == 3
    assert len(list_events(db, ScanEventFilters(pass_id=history.id))) == 3
    assert len(list_events(db, ScanEventFilters(date_from=local_time(2026, 3, 10, 10)))) == 3
    assert len(list_events(db, ScanEventFilters(date_to=local_time(2026, 3, 10, 10)))) == 1


def test_building_scope_skips_plate_misses(db, seed, history):
    assert len(list_events(db, ScanEventFilters(building_id=seed.building.id))) == 3
    assert list_events(db, ScanEventFilters(building_id=seed.other_building.id)) == []


def test_pagination(db, seed, history):
    page = list_events(db, ScanEventFilters(limit=2, offset=1))
    assert [e["reason"] for e in page] == ["", ""]


def test_statistics(db, seed, history):
    stats = statistics(db)

    assert stats["total_scans"] == 4
    assert stats["valid_scans"] == 2
    assert stats["invalid_scans"] == 2
    assert stats["unique_passes"] == 1
    assert stats["unique_guards"] == 2
    assert stats["valid_percent"] == 50.0


def test_statistics_empty_period(db, seed, history):
    stats = statistics(db, date_from=local_time(2026, 3, 11, 0))
    assert stats["total_scans"] == 0
    assert stats["valid_percent"] == 0.0
