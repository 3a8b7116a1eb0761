#!/usr/bin/env python3
"""
hostmon API Schemas - Pydantic Models for Measurements
"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field

# InfluxDB returns RFC3339 strings by default, epoch numbers when asked to
Timestamp = Union[str, int, float]
Value = Union[int, float, str, bool, None]


class QueryDescriptor(BaseModel):
    table: str
    type: Optional[str] = None
    type_instance: Optional[str] = None
    instance: Optional[str] = None


class Measurement(BaseModel):
    timestamp: Timestamp
    value: Value
    units: Optional[str] = None
    type: Optional[str] = None


class MeasurementGroup(BaseModel):
    instance: str
    measurements: List[Measurement] = []


class FleetReading(BaseModel):
    instance: str
    value: Value
    time: Timestamp


class DBRequest(BaseModel):
    hosts: List[str]
    types: List[str]


class MeasurementWrite(BaseModel):
    type: str = Field(..., min_length=1)
    instance: str = Field(..., min_length=1)
    value: Union[float, int, bool, str]
    timestamp: Optional[Timestamp] = None
