"""Pytest configuration and shared fixtures"""
import json
import re

import httpx
import pytest

from hostmon.core.config import DatabaseConfig
from hostmon.database import InfluxDatabase
from hostmon.api.queries import MeasurementStore

T0 = "2024-05-01T10:00:10Z"
T1 = "2024-05-01T10:00:00Z"

_TABLE = re.compile(r'FROM "((?:[^"\\]|\\.)*)"')


class FakeInflux:
    """In-process stand-in for the InfluxDB HTTP API (served via httpx.MockTransport)"""

    def __init__(self):
        self.rows = {}           # (table, host) -> [[time, value], ...]
        self.fleet = {}          # table -> list of series
        self.broken_hosts = set()
        self.statement_errors = {}  # table -> error message
        self.queries = []        # (statement, params, request)
        self.writes = []         # line protocol bodies
        self.write_status = 204

    def add_rows(self, table, host, rows):
        self.rows[(table, host)] = rows

    def add_fleet_series(self, table, host, rows):
        self.fleet.setdefault(table, []).append({
            "name": table,
            "tags": {"host": host},
            "columns": ["time", "value"],
            "values": rows,
        })

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/write":
            self.writes.append(request.content.decode("utf-8"))
            if self.write_status >= 400:
                return httpx.Response(self.write_status, json={"error": "write failed"})
            return httpx.Response(self.write_status)

        statement = request.url.params["q"]
        params = json.loads(request.url.params.get("params", "{}"))
        self.queries.append((statement, params, request))

        table = _TABLE.search(statement).group(1)
        host = params.get("host")
        if host in self.broken_hosts:
            raise httpx.ConnectError("connection refused", request=request)
        if table in self.statement_errors:
            return httpx.Response(200, json={"results": [{"statement_id": 0, "error": self.statement_errors[table]}]})

        if host is None:
            series = self.fleet.get(table)
        else:
            rows = self.rows.get((table, host))
            series = [{"name": table, "columns": ["time", "value"], "values": rows}] if rows else None

        result = {"statement_id": 0}
        if series:
            result["series"] = series
        return httpx.Response(200, json={"results": [result]})


@pytest.fixture
def db_config():
    """Database configuration pointing at the fake server"""
    return DatabaseConfig(host="influx.test", port="8086", username="collectd", password="secret", name="collectd")


@pytest.fixture
def fake_influx():
    return FakeInflux()


@pytest.fixture
def database(db_config, fake_influx):
    """InfluxDatabase wired to the fake server"""
    return InfluxDatabase(db_config, transport=httpx.MockTransport(fake_influx.handler))


@pytest.fixture
def store(database):
    return MeasurementStore(database)


@pytest.fixture
def sample_host_data(fake_influx):
    """Two hosts with collectd data; vm-2 only reports memory"""
    fake_influx.add_rows("memory_value", "vm-1", [[T0, 1500000]])
    fake_influx.add_rows("memory_value", "vm-2", [[T0, 2500]])
    fake_influx.add_rows("aggregation_value", "vm-1", [[T0, 80], [T1, 70]])
    fake_influx.add_rows("interface_rx", "vm-1", [[T0, 2000], [T1, 1000]])
    fake_influx.add_rows("load_shortterm", "vm-1", [[T0, 0.42]])
    return fake_influx
