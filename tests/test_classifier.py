from datetime import datetime, timezone

from fleetjournal.models.domain import Geofence, JournalPolicy, Location, OfficeLocation, TripRecord
from fleetjournal.services.classification import (
    check_completeness,
    classify_trip,
    evaluate_trip,
    should_auto_approve,
)

OFFICE = OfficeLocation(latitude=59.33, longitude=18.06, radius_meters=500)
NEAR_OFFICE = Location(latitude=59.3305, longitude=18.0605)
FAR_AWAY = Location(latitude=59.8586, longitude=17.6389)
NOW = datetime(2024, 1, 30, 18, 0, tzinfo=timezone.utc)


def _policy(**overrides) -> JournalPolicy:
    values = {
        "work_hours_start": "08:00",
        "work_hours_end": "17:00",
        "work_days": frozenset({1, 2, 3, 4, 5}),
        "office_locations": (OFFICE,),
        "auto_approve_threshold_km": 20,
        "require_purpose_over_km": 50,
    }
    values.update(overrides)
    return JournalPolicy(**values)


def _trip(**overrides) -> TripRecord:
    values = {
        "id": "trip-1",
        "vehicle_id": "veh-1",
        "driver_name": "Alex Driver",
        "driver_email": "alex@example.com",
        "start_time": datetime(2024, 1, 30, 9, 0),  # Tuesday
        "start_location": NEAR_OFFICE,
        "end_location": FAR_AWAY,
        "distance_km": 15.0,
        "duration_minutes": 25.0,
    }
    values.update(overrides)
    return TripRecord(**values)


def test_work_time_near_office_is_business_and_auto_approved():
    evaluation = evaluate_trip(_trip(), _policy(), now=NOW)

    assert evaluation.classification == "business"
    assert evaluation.flags == []
    assert evaluation.auto_approved
    assert evaluation.update["trip_type"] == "business"
    assert evaluation.update["status"] == "approved"
    assert evaluation.update["reviewed_by"] == "system"
    assert evaluation.update["reviewed_at"] == NOW.isoformat()
    assert "is_anomaly" not in evaluation.update


def test_weekend_long_trip_is_private_and_flagged():
    trip = _trip(start_time=datetime(2024, 2, 3, 10, 0), distance_km=600.0, purpose=None)
    evaluation = evaluate_trip(trip, _policy(), now=NOW)

    assert evaluation.classification == "private"
    assert "Missing purpose (trip > 50 km)" in evaluation.flags
    assert "Unusually long trip (> 500 km)" in evaluation.flags
    assert evaluation.flagged
    assert not evaluation.auto_approved
    assert evaluation.update["is_anomaly"] is True
    assert evaluation.update["anomaly_reason"] == ". ".join(evaluation.flags)
    assert "status" not in evaluation.update


def test_work_time_away_from_office_is_left_unclassified():
    trip = _trip(start_location=FAR_AWAY, end_location=FAR_AWAY)
    evaluation = evaluate_trip(trip, _policy(), now=NOW)

    assert evaluation.classification is None
    assert "trip_type" not in evaluation.update
    assert not evaluation.auto_approved


def test_outside_work_hours_is_private():
    assert classify_trip(_trip(start_time=datetime(2024, 1, 30, 19, 30)), _policy()) == "private"


def test_missing_start_time_is_unclassified():
    assert classify_trip(_trip(start_time=None), _policy()) is None


def test_business_geofence_counts_as_office():
    geofence = Geofence(
        id="gf-1",
        name="Customer site",
        latitude=FAR_AWAY.latitude,
        longitude=FAR_AWAY.longitude,
        radius_meters=200,
        auto_classify_as="business",
    )
    trip = _trip(start_location=FAR_AWAY, end_location=FAR_AWAY)
    policy = _policy(office_locations=())

    assert classify_trip(trip, policy) is None
    assert classify_trip(trip, policy, [geofence]) == "business"


def test_inactive_geofence_is_ignored():
    geofence = Geofence(
        id="gf-1",
        name="Old site",
        latitude=FAR_AWAY.latitude,
        longitude=FAR_AWAY.longitude,
        radius_meters=200,
        is_active=False,
        auto_classify_as="business",
    )
    trip = _trip(start_location=FAR_AWAY, end_location=FAR_AWAY)
    assert classify_trip(trip, _policy(office_locations=()), [geofence]) is None


def test_completeness_flags():
    trip = _trip(driver_name=None, distance_km=120.0, purpose="abc", duration_minutes=600.0)
    flags = check_completeness(trip, _policy())

    assert flags == [
        "Missing driver name",
        "Missing purpose (trip > 50 km)",
        "Unusually long duration (> 8 hours)",
    ]


def test_purpose_long_enough_is_not_flagged():
    trip = _trip(distance_km=120.0, purpose="Customer visit")
    assert check_completeness(trip, _policy()) == []


def test_purpose_check_disabled_without_threshold():
    trip = _trip(distance_km=120.0, purpose=None)
    assert check_completeness(trip, _policy(require_purpose_over_km=None)) == []


def test_auto_approve_requires_threshold_and_clean_trip():
    trip = _trip()
    policy = _policy()

    assert should_auto_approve(trip, "business", [], policy)
    assert not should_auto_approve(trip, "business", [], _policy(auto_approve_threshold_km=None))
    assert not should_auto_approve(trip, "business", ["Missing driver name"], policy)
    assert not should_auto_approve(trip, None, [], policy)
    assert not should_auto_approve(_trip(distance_km=0), "business", [], policy)
    assert not should_auto_approve(_trip(distance_km=20.0), "business", [], policy)
    assert not should_auto_approve(_trip(is_anomaly=True), "business", [], policy)


def test_existing_trip_type_is_not_consulted():
    trip = _trip(trip_type="private")
    assert classify_trip(trip, _policy()) == "business"


def _business_history(**overrides) -> list[TripRecord]:
    values = {
        "trip_type": "business",
        "start_location": FAR_AWAY,
        "end_location": FAR_AWAY,
        "purpose": "Site inspection",
        "project_code": "P-7",
    }
    values.update(overrides)
    return [_trip(id=f"old-{index}", **values) for index in range(3)]


def test_history_settles_trip_the_rules_leave_open():
    trip = _trip(start_location=FAR_AWAY, end_location=FAR_AWAY)
    evaluation = evaluate_trip(trip, _policy(), history=_business_history(), now=NOW)

    assert evaluation.classification == "business"
    assert evaluation.suggestion is not None
    assert evaluation.update["purpose"] == "Site inspection"
    assert evaluation.update["project_code"] == "P-7"
    assert evaluation.update["suggested_classification"]["similar_trips_count"] == 3
    assert "[Auto] Suggested classification" in evaluation.update["notes"]


def test_weekend_trip_stays_private_despite_business_history():
    saturday = datetime(2024, 2, 3, 10, 0)
    history = _business_history(start_time=saturday)
    trip = _trip(start_time=saturday, start_location=FAR_AWAY, end_location=FAR_AWAY)

    evaluation = evaluate_trip(trip, _policy(), history=history, now=NOW)

    assert evaluation.classification == "private"
    assert evaluation.update["trip_type"] == "private"
    assert evaluation.suggestion is None
    assert "purpose" not in evaluation.update
    assert "suggested_classification" not in evaluation.update


def test_weekend_trip_near_office_is_approved_only_as_private():
    saturday = datetime(2024, 2, 3, 10, 0)
    trip = _trip(start_time=saturday, start_location=NEAR_OFFICE)

    evaluation = evaluate_trip(trip, _policy(), history=_business_history(start_time=saturday), now=NOW)

    assert evaluation.classification == "private"
    assert evaluation.update["trip_type"] == "private"
    assert evaluation.auto_approved
    assert "purpose" not in evaluation.update


def test_weekend_trip_above_threshold_is_not_auto_approved():
    saturday = datetime(2024, 2, 3, 10, 0)
    trip = _trip(start_time=saturday, start_location=FAR_AWAY, end_location=FAR_AWAY, distance_km=25.0)
    history = _business_history(start_time=saturday, distance_km=25.0)

    evaluation = evaluate_trip(trip, _policy(), history=history, now=NOW)

    assert evaluation.classification == "private"
    assert not evaluation.auto_approved
    assert "status" not in evaluation.update


def test_history_only_fills_details_for_rule_business_trip():
    trip = _trip(start_location=NEAR_OFFICE, purpose="Own purpose")
    history = _business_history(start_location=NEAR_OFFICE, end_location=FAR_AWAY)

    evaluation = evaluate_trip(trip, _policy(), history=history, now=NOW)

    assert evaluation.classification == "business"
    assert evaluation.suggestion is None
    assert "[Auto] Classified as business" in evaluation.update["notes"]
    assert "purpose" not in evaluation.update
    assert evaluation.update["project_code"] == "P-7"
