"""Unit tests for the measurement HTTP API

Runs the FastAPI app against the fake InfluxDB through TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from hostmon.core.config import ServerConfig
from hostmon.core.server import create_app

T0 = "2024-05-01T10:00:10Z"


@pytest.fixture
def api(db_config, database, sample_host_data):
    config = ServerConfig(database=db_config, log_level="DEBUG")
    app = create_app(config, database=database)
    with TestClient(app) as client:
        yield client


class TestSingleMeasurement:
    """GET /api/measurements/{host}/{type}"""

    def test_found(self, api):
        response = api.get("/api/measurements/vm-1/network_incoming")
        assert response.status_code == 200
        assert response.json() == {"timestamp": T0, "value": 100.0, "units": "Bytes / s"}

    def test_units_omitted_when_undefined(self, api, sample_host_data):
        sample_host_data.add_rows("custom_metric", "vm-1", [[T0, 3]])
        response = api.get("/api/measurements/vm-1/custom_metric")
        assert response.json() == {"timestamp": T0, "value": 3}

    def test_not_found(self, api):
        response = api.get("/api/measurements/ghost/memfree")
        assert response.status_code == 404
        assert response.json()["detail"] == "Host (ghost) or measurement type (memfree) not found."

    def test_null_size_is_not_found(self, api, sample_host_data):
        sample_host_data.add_rows("memory_value", "vm-3", [[T0, None]])
        response = api.get("/api/measurements/vm-3/memfree")
        assert response.status_code == 404


class TestGroups:
    """Group endpoints"""

    def test_host_with_types(self, api):
        response = api.get("/api/measurements/vm-1", params=[("types", "memfree"), ("types", "nothing")])
        assert response.status_code == 200
        body = response.json()
        assert body["instance"] == "vm-1"
        assert body["measurements"] == [{"timestamp": T0, "value": "1.5", "units": "MB", "type": "memfree"}]

    def test_types_required(self, api):
        assert api.get("/api/measurements/vm-1").status_code == 422

    def test_hosts_and_types(self, api):
        response = api.post("/api/measurements/query", json={"hosts": ["vm-1", "vm-2", "ghost"], "types": ["memfree"]})
        assert response.status_code == 200
        assert [g["instance"] for g in response.json()] == ["vm-1", "vm-2"]

    def test_invalid_request_body(self, api):
        assert api.post("/api/measurements/query", json={"hosts": "vm-1"}).status_code == 422


class TestFleet:
    """GET /api/measurements/latest/{type}"""

    def test_readings(self, api, sample_host_data):
        sample_host_data.add_fleet_series("load_longterm", "vm-1", [[T0, 0.5]])
        response = api.get("/api/measurements/latest/load_longterm")
        assert response.status_code == 200
        assert response.json() == [{"instance": "vm-1", "value": 0.5, "time": T0}]

    def test_not_found(self, api):
        response = api.get("/api/measurements/latest/nothing")
        assert response.status_code == 404


class TestSubmit:
    """POST /api/measurements"""

    def test_accepted_and_written(self, db_config, database, fake_influx):
        app = create_app(ServerConfig(database=db_config), database=database)
        with TestClient(app) as client:
            response = client.post("/api/measurements", json={
                "type": "network.outgoing.bytes.rate",
                "instance": "vm-1",
                "value": 512.5,
                "timestamp": 1714557610,
            })
            assert response.status_code == 202

        # shutdown drains pending writes
        assert fake_influx.writes == ["network_outgoing,host=vm-1 value=512.5 1714557610000"]

    def test_missing_fields(self, api):
        assert api.post("/api/measurements", json={"type": "memfree"}).status_code == 422
