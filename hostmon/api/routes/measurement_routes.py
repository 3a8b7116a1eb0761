#!/usr/bin/env python3
"""
Measurement Routes - Submission and Last-Value Queries
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from ...errors import NotFoundError
from ..queries import MeasurementStore
from ..schemas import DBRequest, FleetReading, Measurement, MeasurementGroup, MeasurementWrite

logger = logging.getLogger("hostmon.server")


def create_measurement_routes(store: MeasurementStore) -> APIRouter:
    """Create measurement routes bound to a store."""
    router = APIRouter()

    @router.post("/api/measurements", status_code=status.HTTP_202_ACCEPTED)
    async def submit_measurement(body: MeasurementWrite):
        """Accept one measurement; the storage write happens in the background."""
        store.write_measurement(body.type, body.instance, body.value, body.timestamp)
        return {"accepted": True}

    @router.post(
        "/api/measurements/query",
        response_model=List[MeasurementGroup],
        response_model_exclude_none=True,
    )
    async def query_measurements(body: DBRequest):
        """Latest measurements for a set of hosts and metric types."""
        return await store.read_last_measurements_with_hosts_and_types(body)

    @router.get(
        "/api/measurements/latest/{metric_type}",
        response_model=List[FleetReading],
    )
    async def fleet_measurements(metric_type: str):
        """Latest value of a metric type across all hosts."""
        try:
            return await store.read_last_measurements(metric_type)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @router.get(
        "/api/measurements/{host}",
        response_model=MeasurementGroup,
        response_model_exclude_none=True,
    )
    async def host_measurements(host: str, types: List[str] = Query(...)):
        """Latest measurements of several metric types for one host."""
        return await store.read_last_measurements_with_host_and_types(host, *types)

    @router.get(
        "/api/measurements/{host}/{metric_type}",
        response_model=Measurement,
        response_model_exclude_none=True,
    )
    async def host_measurement(host: str, metric_type: str):
        """Latest measurement of one metric type for one host."""
        try:
            return await store.read_last_measurement(host, metric_type)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))

    return router
