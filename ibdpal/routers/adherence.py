# adherence router - medication adherence over a date range
# POST calculates over supplied records, GET reads the user's stored doses

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ibdpal.config import settings
from ibdpal.dependencies import resolve_date_range, storage_http_error, validate_date_range
from ibdpal.models.medication import (
    AdherenceCalculationRequest,
    AdherenceResult,
    UserAdherenceReport,
)
from ibdpal.services.adherence import calculate_adherence
from ibdpal.services.adherence_service import calculate_user_adherence
from ibdpal.services.db import Database, get_db
from ibdpal.services.records import StorageError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.post("/calculate", response_model=AdherenceResult)
async def calculate(request: AdherenceCalculationRequest):
    validate_date_range(request.start_date, request.end_date)
    return calculate_adherence(request.records, request.frequency, request.start_date, request.end_date)


@router.get("/{user_id}", response_model=UserAdherenceReport)
async def get_user_adherence(
    user_id: str,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Database = Depends(get_db),
):
    """per-medication adherence for a user, defaulting to the configured lookback"""
    start, end = resolve_date_range(start_date, end_date, settings.ADHERENCE_LOOKBACK_DAYS)
    try:
        return await calculate_user_adherence(db, user_id, start, end)
    except StorageError as e:
        raise storage_http_error(e) from e
