from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from fleetjournal.api.dependencies import get_token_cache
from fleetjournal.main import create_app
from fleetjournal.models.domain import BatchResult, RecordOutcome, TokenCache, TripRecord, Vehicle
from fleetjournal.persistence.geofence_state import InMemoryGeofenceStateStore
from fleetjournal.services.gps import SyncResult
from fleetjournal.services.mileage import AllowanceResult

POLICY = {
    "work_hours_start": "08:00",
    "work_hours_end": "17:00",
    "work_days": [1, 2, 3, 4, 5],
    "office_locations": [{"name": "HQ", "latitude": 59.33, "longitude": 18.06, "radius_meters": 500}],
    "auto_approve_threshold_km": 20,
    "require_purpose_over_km": 50,
}


class DummyOSRM:
    def route(self, coordinates):
        return {"code": "Ok", "routes": [{"distance": 12500.0, "duration": 900.0, "geometry": None}]}


@pytest.fixture
def api_client() -> TestClient:
    app = create_app()
    app.dependency_overrides[get_token_cache] = lambda: TokenCache()
    return TestClient(app)


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_classify_endpoint(api_client: TestClient):
    trips = [
        {
            "id": "t1",
            "driver_name": "Alex Driver",
            "driver_email": "alex@example.com",
            "start_time": "2024-01-30T09:00:00",
            "start_location": {"latitude": 59.3302, "longitude": 18.0601},
            "distance_km": 15,
        },
        {
            "id": "t2",
            "driver_name": "Alex Driver",
            "driver_email": "alex@example.com",
            "start_time": "2024-02-03T10:00:00",
            "distance_km": 600,
        },
    ]
    response = api_client.post("/api/journal/classify", json={"policy": POLICY, "trips": trips})

    assert response.status_code == 200
    first, second = response.json()["evaluations"]
    assert first["classification"] == "business"
    assert first["auto_approved"] is True
    assert first["update"]["status"] == "approved"
    assert second["classification"] == "private"
    assert second["flagged"] is True
    assert "Unusually long trip (> 500 km)" in second["flags"]


def test_classify_rejects_invalid_payload(api_client: TestClient):
    response = api_client.post("/api/journal/classify", json={"policy": POLICY})

    assert response.status_code == 422


def test_classify_accepts_loosely_stored_policy(api_client: TestClient):
    policy = {
        **POLICY,
        "work_days": [1, 2, 3, 4, 5, "x"],
        "office_locations": [{"name": "HQ", "latitude": 59.33, "longitude": 18.06, "radius_meters": 0}],
    }
    trips = [
        {
            "id": "t1",
            "driver_name": "Alex Driver",
            "driver_email": "alex@example.com",
            "start_time": "2024-01-30T09:00:00",
            "start_location": {"latitude": 59.3302, "longitude": 18.0601},
            "distance_km": 15,
        }
    ]

    response = api_client.post("/api/journal/classify", json={"policy": policy, "trips": trips})

    assert response.status_code == 200
    (evaluation,) = response.json()["evaluations"]
    assert evaluation["classification"] == "business"
    assert evaluation["auto_approved"] is True


def test_process_endpoint(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.api.routes import journal as journal_routes

    result = BatchResult(status="success", processed=1, outcomes=[RecordOutcome(entry_id="t1", classification="private")])
    monkeypatch.setattr(journal_routes, "run_journal_batch", lambda persist, use_history: result)

    response = api_client.post("/api/journal/process", json={"persist": False})

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "success"
    assert payload["outcomes"][0]["entry_id"] == "t1"


def test_process_endpoint_reports_failure(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.api.routes import journal as journal_routes

    def boom(persist, use_history):
        raise RuntimeError("database down")

    monkeypatch.setattr(journal_routes, "run_journal_batch", boom)

    response = api_client.post("/api/journal/process")

    assert response.status_code == 500
    assert "database down" in response.json()["detail"]


def test_export_endpoint_csv_and_xlsx(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.persistence import database

    entries = [
        TripRecord(id="a", vehicle_id="veh-1", start_time=datetime(2024, 1, 30, 9, 0), trip_type="business"),
        TripRecord(id="b", vehicle_id="veh-1", start_time=datetime(2024, 2, 1, 9, 0)),
    ]
    monkeypatch.setattr(database, "list_journal_entries", lambda **kwargs: entries)
    monkeypatch.setattr(database, "list_vehicles", lambda: [Vehicle(id="veh-1", registration_number="ABC123")])

    response = api_client.get("/api/journal/export", params={"month": "2024-01"})

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="driving_journal_2024-01.csv"'
    lines = response.content.decode("utf-8-sig").splitlines()
    assert len(lines) == 2
    assert lines[1].startswith('"ABC123"')

    xlsx = api_client.get("/api/journal/export", params={"month": "2024-01", "format": "xlsx"})
    assert xlsx.status_code == 200
    assert xlsx.content[:2] == b"PK"


def test_export_endpoint_rejects_bad_month(api_client: TestClient):
    assert api_client.get("/api/journal/export", params={"month": "January"}).status_code == 422
    assert api_client.get("/api/journal/export", params={"month": "2024-13"}).status_code == 400


def test_mileage_endpoint(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.api.routes import journal as journal_routes

    result = AllowanceResult(updates={"a": {"mileage_allowance": 25.0, "mileage_policy_id": "p"}}, total_allowance=25.0)
    monkeypatch.setattr(journal_routes, "apply_allowances", lambda entry_ids: result)

    response = api_client.post("/api/journal/mileage", json={"entry_ids": ["a"]})

    assert response.status_code == 200
    assert response.json() == {"updated": 1, "total_allowance": 25.0, "updates": result.updates}
    assert api_client.post("/api/journal/mileage", json={"entry_ids": []}).status_code == 422


def test_geofence_detect_endpoint(api_client: TestClient):
    payload = {
        "previous_state": {"car-1:depot": False},
        "geofences": [{"id": "depot", "name": "Depot", "latitude": 59.33, "longitude": 18.06, "radius_meters": 200}],
        "samples": [{"entity_id": "car-1", "latitude": 59.3301, "longitude": 18.0601, "timestamp": "2024-01-30T08:00:00Z"}],
    }
    response = api_client.post("/api/geofences/detect", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert [event["event_type"] for event in body["events"]] == ["entered"]
    assert body["state"] == {"car-1:depot": True}


def test_geofence_track_endpoint_keeps_state(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.services.geofence import service as geofence_service

    store = InMemoryGeofenceStateStore()
    monkeypatch.setattr(geofence_service, "get_state_store", lambda: store)
    geofences = [{"id": "depot", "name": "Depot", "latitude": 59.33, "longitude": 18.06, "radius_meters": 200}]

    def post(lat, lon, stamp):
        sample = {"entity_id": "car-1", "latitude": lat, "longitude": lon, "timestamp": stamp}
        return api_client.post("/api/geofences/track", json={"samples": [sample], "geofences": geofences})

    assert post(59.40, 18.20, "2024-01-30T08:00:00Z").json() == {"events": []}
    events = post(59.3301, 18.0601, "2024-01-30T08:05:00Z").json()["events"]
    assert [event["event_type"] for event in events] == ["entered"]


def test_route_calculate_endpoint(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.services.routing import service as routing_service

    monkeypatch.setattr(routing_service, "OSRMClient", lambda *args, **kwargs: DummyOSRM())

    response = api_client.post(
        "/api/routes/calculate",
        json={"startLat": 59.33, "startLng": 18.06, "endLat": 59.40, "endLng": 18.10},
    )

    assert response.status_code == 200
    assert response.json()["summary"] == "12.5 km, 15 min"


def test_route_calculate_connection_error(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.services.routing import service as routing_service

    class UnreachableOSRM:
        def route(self, coordinates):
            raise ConnectionError("Failed to connect to OSRM")

    monkeypatch.setattr(routing_service, "OSRMClient", lambda *args, **kwargs: UnreachableOSRM())

    response = api_client.post(
        "/api/routes/calculate",
        json={"startLat": 59.33, "startLng": 18.06, "endLat": 59.40, "endLng": 18.10},
    )

    assert response.status_code == 503


class FakeGPSClient:
    def __init__(self, token_cache):
        self.token_cache = token_cache

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None


def test_gps_sync_endpoint(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.api.routes import gps as gps_routes

    result = SyncResult(new_entries=[{"gps_trip_id": "1"}], skipped=[{"trip_id": "2", "reason": "Already exists or matched"}])
    monkeypatch.setattr(gps_routes, "GPSClient", FakeGPSClient)
    monkeypatch.setattr(gps_routes, "sync_vehicle_trips", lambda vehicle_id, start, end, client: result)

    response = api_client.post(
        "/api/gps/sync-trips",
        json={"vehicle_id": "veh-1", "start_date": "2024-01-01T00:00:00Z", "end_date": "2024-01-31T00:00:00Z"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["synced"] == 1
    assert body["skipped"] == 1


def test_gps_sync_unknown_vehicle(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from fleetjournal.api.routes import gps as gps_routes

    def missing(vehicle_id, start, end, client):
        raise LookupError(f"Vehicle '{vehicle_id}' not found.")

    monkeypatch.setattr(gps_routes, "GPSClient", FakeGPSClient)
    monkeypatch.setattr(gps_routes, "sync_vehicle_trips", missing)

    response = api_client.post(
        "/api/gps/sync-trips",
        json={"vehicle_id": "nope", "start_date": "2024-01-01T00:00:00Z", "end_date": "2024-01-31T00:00:00Z"},
    )

    assert response.status_code == 404


def test_gps_sync_rejects_reversed_range(api_client: TestClient):
    response = api_client.post(
        "/api/gps/sync-trips",
        json={"vehicle_id": "veh-1", "start_date": "2024-02-01T00:00:00Z", "end_date": "2024-01-01T00:00:00Z"},
    )

    assert response.status_code == 422
