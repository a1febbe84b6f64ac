# targets router - evidence-based targets for a disease activity level
# GET /targets/{user_id} assesses the user's activity before building targets
# GET /targets/{user_id}/adherence also shifts the adherence target by measured adherence

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ibdpal.config import settings
from ibdpal.dependencies import resolve_date_range, storage_http_error
from ibdpal.models.targets import EvidenceBasedTargetsResult, MedicationAdherenceTarget, TargetsRequest
from ibdpal.routers.disease_activity import assess_user
from ibdpal.services.adherence_service import calculate_user_adherence
from ibdpal.services.db import Database, get_db
from ibdpal.services.records import StorageError, fetch_profile
from ibdpal.services.targets import (
    adherence_target,
    adjusted_adherence_target,
    all_targets,
    research_sources,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/targets", tags=["targets"])


@router.get("/sources", response_model=list[str])
async def get_research_sources():
    return research_sources()


@router.post("", response_model=EvidenceBasedTargetsResult)
async def compute_targets(request: TargetsRequest):
    """targets for a known disease activity"""
    return all_targets(
        request.profile,
        request.disease_activity,
        request.medication_history,
        request.symptom_history,
        request.health_history,
    )


@router.get("/{user_id}", response_model=EvidenceBasedTargetsResult)
async def get_user_targets(
    user_id: str,
    as_of: Optional[date] = Query(None, alias="asOf"),
    db: Database = Depends(get_db),
):
    """targets for a user's current disease activity"""
    try:
        assessment = await assess_user(db, user_id, as_of or date.today())
        profile = await fetch_profile(db, user_id)
    except StorageError as e:
        raise storage_http_error(e) from e

    logger.info(f"Targets for user {user_id} at {assessment.activity.value} activity")
    return all_targets(profile, assessment.activity)


@router.get("/{user_id}/adherence", response_model=MedicationAdherenceTarget)
async def get_adjusted_adherence_target(
    user_id: str,
    as_of: Optional[date] = Query(None, alias="asOf"),
    db: Database = Depends(get_db),
):
    """adherence target for the user's activity, adjusted by their overall
    adherence over the lookback window ending on asOf"""
    start, end = resolve_date_range(None, as_of, settings.ADHERENCE_LOOKBACK_DAYS)
    try:
        assessment = await assess_user(db, user_id, end)
        profile = await fetch_profile(db, user_id)
        report = await calculate_user_adherence(db, user_id, start, end)
    except StorageError as e:
        raise storage_http_error(e) from e

    base = adherence_target(profile, assessment.activity)
    logger.info(
        f"Adjusting {assessment.activity.value} adherence target for user {user_id} "
        f"(overall adherence {report.overall_adherence}%)"
    )
    return adjusted_adherence_target(base, report.overall_adherence)
