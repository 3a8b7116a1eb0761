"""
MeasurementStore - the public read/write operations.

Wires catalog -> builder -> database -> interpreter for single reads and
hands group reads to the Aggregator. The database is injected; the
process-wide one comes from `hostmon.database.get_database()`.
"""

import logging
from typing import Any, List, Optional

from ...database import InfluxDatabase
from ...errors import NotFoundError
from ..schemas import DBRequest, FleetReading, Measurement, MeasurementGroup
from . import builder, catalog
from .aggregator import Aggregator, fleet_readings
from .interpreter import interpret, series_rows
from .writer import PointWriter

logger = logging.getLogger("hostmon.server")


class MeasurementStore:
    """Last-value measurement reads and fire-and-forget writes."""

    def __init__(self, database: InfluxDatabase, max_concurrency: Optional[int] = None):
        self.database = database
        self.writer = PointWriter(database)
        self.aggregator = Aggregator(self.read_last_measurement, max_concurrency=max_concurrency)

    @classmethod
    def from_database(cls, database: InfluxDatabase) -> "MeasurementStore":
        """Store using the database's configured concurrency cap."""
        return cls(database, max_concurrency=database.config.max_concurrency)

    def write_measurement(self, metric_type: str, instance: str, value: Any, timestamp: Any = None) -> None:
        """Record a measurement without waiting for the storage write."""
        self.writer.write(metric_type, instance, value, timestamp)

    async def read_last_measurement(self, host: str, metric_type: str) -> Measurement:
        """
        Latest measurement of one metric type on one host.

        Raises:
            NotFoundError: The host has no data for the metric type
            httpx.HTTPError, StorageError: The query itself failed
        """
        descriptor = catalog.resolve(metric_type)
        statement, params = builder.render(builder.build(host, descriptor, metric_type))
        logger.debug(f"query: {statement} params: {params}")

        result = await self.database.query(statement, params)
        try:
            return interpret(host, metric_type, series_rows(result))
        except NotFoundError as e:
            logger.error(str(e))
            raise

    async def read_last_measurements_with_host_and_types(self, host: str, *metric_types: str) -> MeasurementGroup:
        """Latest measurements of several metric types on one host; missing ones are left out."""
        return await self.aggregator.host_group(host, metric_types)

    async def read_last_measurements_with_hosts_and_types(self, request: DBRequest) -> List[MeasurementGroup]:
        """Latest measurements for every host/type pair of the request, grouped by host."""
        return await self.aggregator.host_matrix(request)

    async def read_last_measurements(self, metric_type: str) -> List[FleetReading]:
        """
        Latest value of one metric type for every host that reports it.

        Raises:
            NotFoundError: No host reports the metric type
        """
        descriptor = catalog.resolve(metric_type)
        statement, params = builder.render(builder.build(None, descriptor, metric_type))
        logger.debug(f"query: {statement} params: {params}")

        result = await self.database.query(statement, params)
        try:
            return fleet_readings(metric_type, result)
        except NotFoundError as e:
            logger.error(str(e))
            raise
