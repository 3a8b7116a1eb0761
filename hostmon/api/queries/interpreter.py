"""
Result interpretation.

Turns the rows of a last-value query into a Measurement: derived values
for CPU utilisation and network rates, human readable sizes for free
memory and disk space, and units from a static table.
"""

import logging
import math
from typing import Any, List, Optional, Sequence

import pandas as pd

from ...errors import NotFoundError
from ..schemas import Measurement
from .catalog import CPU_UTIL, NETWORK_RATES

logger = logging.getLogger("hostmon.server")

# collectd reports every 10 seconds
NOMINAL_INTERVAL_SECONDS = 10

BYTE_UNITS = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]
BYTE_STEP = 1000

FORMATTED_SIZE_TYPES = {"memfree", "fsfree"}


def _units_for(units: str, *metric_types: str):
    return {metric_type: units for metric_type in metric_types}


UNITS = {
    # Proxy (squid) metrics
    **_units_for(
        "percentage",
        "cachediskutilization", "cachememkutilization", "cpuusage",
        "diskhits", "hits", "hits_bytes", "memoryhits", CPU_UTIL,
    ),
    "cpuidle": "jiffies",
    **_units_for("runnable processes", "load_shortterm", "load_midterm", "load_longterm"),
    **_units_for(
        "processes",
        "processes_blocked", "processes_paging", "processes_running",
        "processes_sleeping", "processes_stopped", "processes_zombie",
    ),
    # SBC metrics
    "rtp_frame_loss": "frames",
    **_units_for("packets", "rtp_pack_in", "rtp_pack_out"),
    **_units_for("Bytes", "rtp_pack_in_byte", "rtp_pack_out_byte"),
    # Traffic classifier metrics
    **_units_for(
        "bits / s",
        *(f"mbits_packets_{app}" for app in (
            "all", "apple", "bittorrent", "dns", "dropbox", "google",
            "http", "icloud", "skype", "twitter", "viber", "youtube",
        )),
    ),
}

RATE_UNITS = "Bytes / s"


def format_bytes(num_bytes: float, decimals: Optional[int] = None) -> str:
    """
    Format a byte count with base-1000 units.

    Args:
        num_bytes: Byte count
        decimals: Digits after the leading one (significant digits - 1);
                  3 significant digits when omitted

    Returns:
        e.g. format_bytes(1500, 2) -> "1.5 KB", format_bytes(0) -> "0 Byte"
    """
    if num_bytes == 0:
        return "0 Byte"

    precision = decimals + 1 if decimals is not None and decimals + 1 > 0 else 3
    step = math.floor(math.log(abs(num_bytes)) / math.log(BYTE_STEP))
    step = max(0, min(step, len(BYTE_UNITS) - 1))

    scaled = _round_significant(num_bytes / BYTE_STEP ** step, precision)
    # Rounding (or log() imprecision) can reach the next unit: 999600 -> 1 MB
    if abs(scaled) >= BYTE_STEP and step < len(BYTE_UNITS) - 1:
        step += 1
        scaled = _round_significant(num_bytes / BYTE_STEP ** step, precision)

    return f"{_positional(scaled, precision)} {BYTE_UNITS[step]}"


def _round_significant(value: float, digits: int) -> float:
    return float(f"{value:.{digits}g}")


def _positional(value: float, digits: int) -> str:
    # Never scientific notation; trailing zeros dropped
    if value == 0:
        return "0"
    exponent = math.floor(math.log10(abs(value)))
    text = f"{value:.{max(digits - 1 - exponent, 0)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _to_timestamp(value: Any) -> pd.Timestamp:
    if isinstance(value, (int, float)):
        return pd.to_datetime(value, unit="s", utc=True)
    return pd.Timestamp(value)


def elapsed_seconds(latest: Any, previous: Any) -> float:
    """
    Seconds between two sample timestamps.

    Falls back to the nominal collectd interval when the timestamps cannot
    be parsed or are identical.
    """
    try:
        delta = (_to_timestamp(latest) - _to_timestamp(previous)).total_seconds()
        if delta == 0 or math.isnan(delta):
            raise ValueError("samples share a timestamp")
        return delta
    except (TypeError, ValueError, OverflowError) as e:
        logger.debug(f"Cannot compute sample interval ({latest}, {previous}): {e}, "
                      f"assuming {NOMINAL_INTERVAL_SECONDS}s")
        return NOMINAL_INTERVAL_SECONDS


def _cpu_utilization(host: str, metric_type: str, rows: Sequence[Sequence[Any]]) -> float:
    # Utilisation is the inverse of the idle jiffies rate between the two
    # latest reports
    if len(rows) < 2 or rows[0][1] is None or rows[1][1] is None:
        raise NotFoundError(metric_type, host)

    interval = elapsed_seconds(rows[0][0], rows[1][0])
    utilization = 100 - (rows[0][1] - rows[1][1]) / interval
    return abs(utilization)


def _network_rate(host: str, metric_type: str, rows: Sequence[Sequence[Any]]) -> float:
    # Buckets without samples come back as null. A null or zero sum in
    # either the latest or the prior bucket is not found.
    if len(rows) < 2 or not rows[0][1] or not rows[1][1]:
        raise NotFoundError(metric_type, host)
    return (rows[0][1] - rows[1][1]) / NOMINAL_INTERVAL_SECONDS


def interpret(host: str, metric_type: str, rows: Optional[List[List[Any]]]) -> Measurement:
    """
    Build the measurement for one host and metric type.

    Args:
        host: Host the rows belong to (used in error messages)
        metric_type: Canonical metric type
        rows: [time, value] rows, most recent first

    Returns:
        Measurement with units when the metric type defines them

    Raises:
        NotFoundError: No rows, not enough samples for a derived metric,
            or a null size for free memory / disk space
    """
    if not rows:
        raise NotFoundError(metric_type, host)

    timestamp, value = rows[0][0], rows[0][1]
    units = UNITS.get(metric_type)

    if metric_type == CPU_UTIL:
        value = _cpu_utilization(host, metric_type, rows)
    elif metric_type in NETWORK_RATES:
        value = _network_rate(host, metric_type, rows)
        units = RATE_UNITS
    elif metric_type in FORMATTED_SIZE_TYPES:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise NotFoundError(metric_type, host)
        value, units = format_bytes(value, 2).split(" ", 1)

    return Measurement(timestamp=timestamp, value=value, units=units)


def series_rows(result: dict) -> Optional[List[List[Any]]]:
    """Rows of the first series of a query result, None when nothing matched."""
    series = result.get("series")
    if not series:
        return None
    return series[0].get("values") or None
