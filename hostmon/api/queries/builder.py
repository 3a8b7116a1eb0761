"""
Query construction.

Queries are built as plain data (filters, time range, grouping, order,
limit) and turned into InfluxQL by `render`, the only place that produces
query text. Tag values are sent as bind parameters and identifiers are
quoted, so host names and metric types never end up inside the statement.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..schemas import QueryDescriptor
from .catalog import CPU_UTIL, NETWORK_RATES

# Descriptor fields in clause order, with the tag each one filters on
DESCRIPTOR_TAGS = (("type", "type"), ("type_instance", "type_instance"), ("instance", "instance"))

RATE_LOOKBACK = "10m"
RATE_BUCKET = "10s"

_DURATION = re.compile(r"^\d+(ns|u|µ|ms|s|m|h|d|w)$")
_AGGREGATES = {"SUM", "MEAN", "MAX", "MIN", "LAST", "COUNT"}


class QueryShape(str, Enum):
    POINT = "point"
    PAIR = "pair"
    WINDOWED_AGGREGATE = "windowed_aggregate"
    FLEET = "fleet"


@dataclass
class Filter:
    tag: str
    value: str


@dataclass
class Query:
    """Structured InfluxQL SELECT statement"""
    table: str
    column: str = "value"
    aggregate: Optional[str] = None
    filters: List[Filter] = field(default_factory=list)
    time_range: Optional[str] = None
    group_by_time: Optional[str] = None
    group_by_tags: List[str] = field(default_factory=list)
    descending: bool = True
    limit: int = 1

    def filter_tags(self) -> List[str]:
        return [f.tag for f in self.filters]


def default_shape(host: Optional[str], metric_type: str) -> QueryShape:
    """Pick the query shape a metric type needs."""
    if host is None:
        return QueryShape.FLEET
    if metric_type == CPU_UTIL:
        return QueryShape.PAIR
    if metric_type in NETWORK_RATES:
        return QueryShape.WINDOWED_AGGREGATE
    return QueryShape.POINT


def build(
    host: Optional[str],
    descriptor: QueryDescriptor,
    metric_type: str,
    shape: Optional[QueryShape] = None,
) -> Query:
    """
    Build the query for one metric type.

    Args:
        host: Host to read, None for a fleet-wide query
        descriptor: Resolved table and tags of the metric type
        metric_type: Canonical metric type (selects the default shape)
        shape: Explicit query shape, overrides the default

    Returns:
        Query with one filter per defined descriptor tag
    """
    shape = shape or default_shape(host, metric_type)

    filters = []
    if host is not None and shape != QueryShape.FLEET:
        filters.append(Filter("host", host))
    for attribute, tag in DESCRIPTOR_TAGS:
        value = getattr(descriptor, attribute)
        if value is not None:
            filters.append(Filter(tag, value))

    query = Query(table=descriptor.table, filters=filters)

    if shape == QueryShape.PAIR:
        query.limit = 2
    elif shape == QueryShape.WINDOWED_AGGREGATE:
        query.aggregate = "SUM"
        query.time_range = RATE_LOOKBACK
        query.group_by_time = RATE_BUCKET
        query.limit = 2
    elif shape == QueryShape.FLEET:
        query.group_by_tags = ["host"]

    return query


def quote_identifier(name: str) -> str:
    """Double-quote an InfluxQL identifier."""
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _check_duration(duration: str) -> str:
    if not _DURATION.match(duration):
        raise ValueError(f"invalid duration literal: {duration!r}")
    return duration


def render(query: Query) -> Tuple[str, Dict[str, str]]:
    """
    Render a structured query to InfluxQL.

    Returns:
        (statement, bind parameters), e.g.
        ('SELECT "value" FROM "memory_value" WHERE "host" = $host
          AND "type_instance" = $type_instance ORDER BY time DESC LIMIT 1',
         {"host": "vm-1", "type_instance": "free"})
    """
    selection = quote_identifier(query.column)
    if query.aggregate:
        aggregate = query.aggregate.upper()
        if aggregate not in _AGGREGATES:
            raise ValueError(f"unsupported aggregate: {query.aggregate}")
        selection = f"{aggregate}({selection})"

    statement = f"SELECT {selection} FROM {quote_identifier(query.table)}"

    params: Dict[str, str] = {}
    conditions = []
    for flt in query.filters:
        placeholder = flt.tag
        index = 1
        while placeholder in params:
            placeholder = f"{flt.tag}_{index}"
            index += 1
        params[placeholder] = flt.value
        conditions.append(f"{quote_identifier(flt.tag)} = ${placeholder}")

    if query.time_range:
        conditions.append(f"time > now() - {_check_duration(query.time_range)}")

    if conditions:
        statement += " WHERE " + " AND ".join(conditions)

    groups = []
    if query.group_by_time:
        groups.append(f"time({_check_duration(query.group_by_time)})")
    groups.extend(quote_identifier(tag) for tag in query.group_by_tags)
    if groups:
        statement += " GROUP BY " + ", ".join(groups)

    statement += " ORDER BY time " + ("DESC" if query.descending else "ASC")
    statement += f" LIMIT {int(query.limit)}"

    return statement, params
