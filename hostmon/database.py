#!/usr/bin/env python3
"""
hostmon Server Database Module
InfluxDB (1.x HTTP API) client shared by every read and write
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx
from influxdb_client import Point

from .core.config import DatabaseConfig, get_config
from .errors import StorageError

logger = logging.getLogger(__name__)


class InfluxDatabase:
    """InfluxDB connection manager.

    The underlying httpx.AsyncClient is created on first use and then
    shared by every concurrent request; httpx multiplexes them over its
    connection pool.
    """

    def __init__(self, config: DatabaseConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazily connected HTTP client"""
        if self._client is None:
            auth = None
            if self.config.username:
                auth = (self.config.username, self.config.password or "")

            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                auth=auth,
                timeout=httpx.Timeout(self.config.timeout),
                transport=self._transport,
            )
            logger.info(f"InfluxDB client created: {self.config.base_url}/{self.config.name}")
        return self._client

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def close(self):
        """Close the HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def query(self, text: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Run one InfluxQL statement and return its result object.

        Values travel as bind parameters (`$name` placeholders in `text`),
        never inside the statement itself.

        Returns:
            The first entry of the response `results` list, e.g.
            {"statement_id": 0, "series": [...]} or {"statement_id": 0}
            when nothing matched.

        Raises:
            httpx.HTTPError: On connection errors and non-2xx answers
            StorageError: When InfluxDB reports a statement error
        """
        request_params = {"db": self.config.name, "q": text}
        if params:
            request_params["params"] = json.dumps(params)

        response = await self.client.get("/query", params=request_params)
        response.raise_for_status()
        body = response.json()

        if "error" in body:
            raise StorageError(body["error"])

        results = body.get("results") or [{}]
        result = results[0]
        if "error" in result:
            raise StorageError(result["error"])
        return result

    async def write(self, point: Point) -> None:
        """
        Write a single point (millisecond precision).

        The body is rendered by influxdb_client, which escapes separators
        and control characters in the measurement name and tags.
        """
        line = point.to_line_protocol()
        if not line:
            raise ValueError(f"point has no writable fields: {point}")
        response = await self.client.post(
            "/write",
            params={"db": self.config.name, "precision": "ms"},
            content=line.encode("utf-8"),
        )
        response.raise_for_status()


# Process-wide database instance
_database: Optional[InfluxDatabase] = None


def get_database(config: Optional[DatabaseConfig] = None) -> InfluxDatabase:
    """
    Get the process-wide database, building it once.

    The first call uses `config`, or the process configuration when none
    is given; later calls return the same instance.
    """
    global _database
    if _database is None:
        _database = InfluxDatabase(config or get_config().database)
    return _database


async def close_database():
    """Close the process-wide database client if it was ever used."""
    global _database
    if _database is not None:
        await _database.close()
        _database = None
