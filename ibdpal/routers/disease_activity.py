# disease activity router - classify activity from journal symptom data
# POST assesses a supplied window, GET fetches the user's recall window first

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ibdpal.config import settings
from ibdpal.dependencies import storage_http_error
from ibdpal.models.activity import ActivityAssessment, AssessmentRequest
from ibdpal.services.db import Database, get_db
from ibdpal.services.disease_activity import assess_with_details, recent_window
from ibdpal.services.records import StorageError, fetch_diagnosis, fetch_journal_entries

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/disease-activity", tags=["disease-activity"])


async def assess_user(db: Database, user_id: str, as_of: date) -> ActivityAssessment:
    """fetch the recall window and diagnosis for a user, then assess.
    raises StorageError when either fetch fails."""
    window_days = settings.ASSESSMENT_WINDOW_DAYS
    start = as_of - timedelta(days=window_days - 1)

    entries = await fetch_journal_entries(db, user_id, start, as_of)
    diagnosis = await fetch_diagnosis(db, user_id)
    return assess_with_details(recent_window(entries, as_of, window_days), diagnosis)


@router.post("/assess", response_model=ActivityAssessment)
async def assess(request: AssessmentRequest):
    """assess an in-memory window of journal entries"""
    return assess_with_details(request.entries, request.diagnosis, request.fallback_to_healthy)


@router.get("/{user_id}", response_model=ActivityAssessment)
async def get_user_activity(
    user_id: str,
    as_of: Optional[date] = Query(None, alias="asOf"),
    db: Database = Depends(get_db),
):
    """current disease activity for a user from their stored journal"""
    try:
        assessment = await assess_user(db, user_id, as_of or date.today())
    except StorageError as e:
        raise storage_http_error(e) from e

    logger.info(f"Disease activity for user {user_id}: {assessment.activity.value}")
    return assessment
