# shared router helpers
# maps storage failures and bad date ranges onto http errors

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import HTTPException, status

from ibdpal.config import settings
from ibdpal.services.records import StorageError

logger = logging.getLogger(__name__)


def storage_http_error(exc: StorageError) -> HTTPException:
    """503 with Retry-After for transient storage failures, 500 otherwise"""
    if exc.retryable:
        logger.error(f"Storage temporarily unavailable: {exc}")
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage temporarily unavailable",
            headers={"Retry-After": str(settings.STORAGE_RETRY_AFTER_SECONDS)},
        )
    logger.error(f"Storage failure: {exc}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Storage failure",
    )


def validate_date_range(start: date, end: date):
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"startDate {start} is after endDate {end}",
        )


def resolve_date_range(
    start: Optional[date],
    end: Optional[date],
    lookback_days: int,
) -> tuple[date, date]:
    """fill in a missing range end (today) and start (lookback_days ending on end)"""
    end = end or date.today()
    start = start or end - timedelta(days=lookback_days - 1)
    validate_date_range(start, end)
    return start, end
