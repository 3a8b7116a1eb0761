"""
Concurrent fan-out over hosts and metric types.

Group reads start every sub-read at once, wait for all of them to settle
and keep the ones that succeeded: a missing metric shortens the result, it
does not fail it. The fleet-wide read is a single query and has no such
tolerance.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from ...errors import NotFoundError
from ..schemas import DBRequest, FleetReading, Measurement, MeasurementGroup

logger = logging.getLogger("hostmon.server")

ReadOne = Callable[[str, str], Awaitable[Measurement]]


async def gather_successes(aws: Iterable[Awaitable[Any]], what: str = "read") -> List[Any]:
    """
    Run awaitables concurrently and return the results of those that succeeded.

    Failures are logged and dropped; results keep the input order.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)

    succeeded = []
    for result in results:
        if isinstance(result, Exception):
            logger.debug(f"Dropping failed {what}: {result}")
        elif isinstance(result, BaseException):
            raise result
        else:
            succeeded.append(result)
    return succeeded


class Aggregator:
    """
    Group reads built on a single (host, metric type) read.

    Without max_concurrency every sub-read runs at once (hosts x types
    requests in flight); with it, at most that many single reads are
    outstanding.
    """

    def __init__(self, read_one: ReadOne, max_concurrency: Optional[int] = None):
        self.read_one = read_one
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def _read_typed(self, host: str, metric_type: str) -> Measurement:
        if self._semaphore is None:
            measurement = await self.read_one(host, metric_type)
        else:
            async with self._semaphore:
                measurement = await self.read_one(host, metric_type)
        measurement.type = metric_type
        return measurement

    async def host_group(self, host: str, metric_types: Iterable[str]) -> MeasurementGroup:
        """Latest measurements of several types for one host."""
        measurements = await gather_successes(
            (self._read_typed(host, metric_type) for metric_type in metric_types),
            what=f"measurement of {host}",
        )
        return MeasurementGroup(instance=host, measurements=measurements)

    async def host_matrix(self, request: DBRequest) -> List[MeasurementGroup]:
        """
        Latest measurements of several types for several hosts.

        Hosts whose group read failed, or returned no measurement at all,
        are left out of the result.
        """
        groups = await gather_successes(
            (self.host_group(host, request.types) for host in request.hosts),
            what="host group",
        )
        return [group for group in groups if group.measurements]


def fleet_readings(metric_type: str, result: dict) -> List[FleetReading]:
    """
    Convert a per-host grouped query result into fleet readings.

    Raises:
        NotFoundError: The query matched no series
        KeyError, IndexError: A series is malformed (aborts the whole read)
    """
    series = result.get("series")
    if not series:
        raise NotFoundError(metric_type)

    return [
        FleetReading(
            instance=item["tags"]["host"],
            value=item["values"][0][1],
            time=item["values"][0][0],
        )
        for item in series
    ]
