"""
Measurement write path.

Points are handed to the database in a background task; the caller never
waits for, or hears about, the outcome.
"""

import asyncio
import logging
import math
from datetime import datetime
from typing import Any, Optional, Set

import pandas as pd
from influxdb_client import Point, WritePrecision

from ...core.log_setup import VERBOSE
from ...database import InfluxDatabase
from .catalog import NETWORK_INCOMING, NETWORK_OUTGOING

logger = logging.getLogger("hostmon.server")

# Names used by older agents for the network rate metrics
TYPE_ALIASES = {
    "network.incoming.bytes.rate": NETWORK_INCOMING,
    "network.outgoing.bytes.rate": NETWORK_OUTGOING,
}


def canonical_type(metric_type: str) -> str:
    return TYPE_ALIASES.get(metric_type, metric_type)


def to_epoch_ms(timestamp: Any) -> Optional[int]:
    """
    Normalize a timestamp to epoch milliseconds.

    Accepts epoch seconds (int/float), datetime objects and date strings
    (RFC3339 or epoch seconds as text). None lets InfluxDB use its clock.
    """
    if timestamp is None:
        return None
    if isinstance(timestamp, bool):
        raise ValueError(f"invalid timestamp: {timestamp!r}")
    if isinstance(timestamp, (int, float)):
        return int(round(timestamp * 1000))
    if isinstance(timestamp, str) and timestamp.strip().replace(".", "", 1).isdigit():
        return int(round(float(timestamp) * 1000))
    if not isinstance(timestamp, (str, datetime)):
        raise ValueError(f"invalid timestamp: {timestamp!r}")
    ts = pd.Timestamp(timestamp)
    if pd.isna(ts):
        raise ValueError(f"invalid timestamp: {timestamp!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.value // 1_000_000


def field_value(value: Any) -> Any:
    """Numbers are stored as floats so a measurement keeps one field type."""
    if isinstance(value, (bool, str)):
        return value
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"field value is not finite: {value}")
    return number


def build_point(metric_type: str, instance: str, value: Any, timestamp: Any) -> Point:
    """Normalize one incoming reading into the storage schema."""
    point = (
        Point(canonical_type(metric_type))
        .tag("host", instance)
        .field("value", field_value(value))
    )
    time = to_epoch_ms(timestamp)
    if time is not None:
        point = point.time(time, WritePrecision.MS)
    return point


class PointWriter:
    """Fire-and-forget writer bound to a database."""

    def __init__(self, database: InfluxDatabase):
        self.database = database
        self._pending: Set[asyncio.Task] = set()

    def write(self, metric_type: str, instance: str, value: Any, timestamp: Any = None) -> None:
        """
        Schedule a write of one measurement.

        Must be called from a running event loop. Failures (bad timestamp,
        storage errors) are logged and otherwise ignored; there is no retry.
        """
        logger.log(VERBOSE, f"{metric_type}: {value} @ {instance} recorded at: {timestamp}")

        task = asyncio.get_running_loop().create_task(
            self._write(metric_type, instance, value, timestamp)
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, metric_type: str, instance: str, value: Any, timestamp: Any):
        try:
            await self.database.write(build_point(metric_type, instance, value, timestamp))
        except Exception as e:
            logger.error(f"Failed to write {metric_type} for {instance}: {e}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self):
        """Wait for writes scheduled so far (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
