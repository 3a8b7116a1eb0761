"""
Metric catalog.

Maps canonical metric types to the collectd tables and tags they are
stored under in InfluxDB. Adding a metric is adding a row here.
"""

from typing import Dict

from ..schemas import QueryDescriptor

CPU_UTIL = "cpu_util"
NETWORK_INCOMING = "network_incoming"
NETWORK_OUTGOING = "network_outgoing"
NETWORK_RATES = (NETWORK_INCOMING, NETWORK_OUTGOING)

_CPU_IDLE = {"table": "aggregation_value", "type": "cpu", "type_instance": "idle"}

CATALOG: Dict[str, Dict[str, str]] = {
    CPU_UTIL: _CPU_IDLE,
    "cpuidle": _CPU_IDLE,
    "memfree": {"table": "memory_value", "type_instance": "free"},
    "fsfree": {"table": "df_value", "type_instance": "free", "instance": "root"},
    "load_shortterm": {"table": "load_shortterm", "type": "load"},
    "load_midterm": {"table": "load_midterm", "type": "load"},
    "load_longterm": {"table": "load_longterm", "type": "load"},
    NETWORK_INCOMING: {"table": "interface_rx", "type": "if_octets"},
    NETWORK_OUTGOING: {"table": "interface_tx", "type": "if_octets"},
    "processes_blocked": {"table": "processes_value", "type": "ps_state", "type_instance": "blocked"},
    "processes_paging": {"table": "processes_value", "type": "ps_state", "type_instance": "paging"},
    "processes_running": {"table": "processes_value", "type": "ps_state", "type_instance": "running"},
    "processes_sleeping": {"table": "processes_value", "type": "ps_state", "type_instance": "sleeping"},
    "processes_stopped": {"table": "processes_value", "type": "ps_state", "type_instance": "stopped"},
    # collectd names the state "zombies"
    "processes_zombie": {"table": "processes_value", "type": "ps_state", "type_instance": "zombies"},
}


def resolve(metric_type: str) -> QueryDescriptor:
    """
    Resolve a metric type to its query descriptor.

    Unknown metric types are queried as-is: the table is the metric type
    itself and no tag filters apply.
    """
    entry = CATALOG.get(metric_type)
    if entry is None:
        return QueryDescriptor(table=metric_type)
    return QueryDescriptor(**entry)
