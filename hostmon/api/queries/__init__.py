"""
Measurement Query Modules

Organized by concern:
- catalog.py: metric type -> table and tags
- builder.py: structured queries and InfluxQL rendering
- interpreter.py: rows -> Measurement (derived values, units)
- aggregator.py: concurrent host/type fan-out
- writer.py: fire-and-forget point writes
- store.py: MeasurementStore facade with the public operations
"""

from .catalog import resolve
from .builder import Query, QueryShape, build, render
from .interpreter import format_bytes, interpret
from .aggregator import Aggregator, gather_successes
from .writer import PointWriter
from .store import MeasurementStore

__all__ = [
    'resolve',
    'Query',
    'QueryShape',
    'build',
    'render',
    'format_bytes',
    'interpret',
    'Aggregator',
    'gather_successes',
    'PointWriter',
    'MeasurementStore',
]
