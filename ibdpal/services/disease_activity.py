# disease activity classifier - weighted symptom scoring over a recall window
# pure and deterministic: no clock reads, no shared state, no exceptions
#
# scoring pipeline:
#   1. score each journal entry from its symptom fields only
#   2. collapse duplicate dates to a single (highest) score
#   3. average the daily scores over the window
#   4. scale by the week-over-week symptom trend
#   5. map the adjusted score onto remission / mild / moderate / severe
#
# the weights below reproduce the reference fixtures:
#   near-zero symptoms            -> 1.55  remission
#   mild pain / urgency / fatigue -> 3.85  mild
#   moderate symptoms + mucus     -> 8.05  moderate
#   blood + mucus + high pain     -> 16.2  severe
#   blood with mild symptoms      -> 6.9   (vs 4.5 for pain 6 / urgency 6 without blood)

import logging
import math
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from ibdpal.models.activity import (
    ActivityAssessment,
    AssessmentSource,
    DiseaseActivity,
    SymptomTrend,
)
from ibdpal.models.journal import JournalEntry, UserDiagnosis

logger = logging.getLogger(__name__)

# critical symptoms
BLOOD_WEIGHT = 5.0
MUCUS_WEIGHT = 2.0

# per point on the 0-10 scales
PAIN_WEIGHT = 0.35
URGENCY_WEIGHT = 0.30
STRESS_WEIGHT = 0.10
FATIGUE_WEIGHT = 0.10
POOR_SLEEP_WEIGHT = 0.10

# per stool above the normal daily count
NORMAL_BOWEL_FREQUENCY = 2
BOWEL_EXCESS_WEIGHT = 0.5
MAX_BOWEL_FREQUENCY = 20

SCALE_MIN = 0
SCALE_MAX = 10

# lower bounds of mild / moderate / severe on the adjusted score
MILD_CUTOFF = 2.5
MODERATE_CUTOFF = 6.0
SEVERE_CUTOFF = 10.0

# trend: compare the most recent week against the week before it
TREND_WINDOW_DAYS = 7
TREND_CHANGE_THRESHOLD = 1.0
TREND_MULTIPLIERS = {
    SymptomTrend.WORSENING: 1.2,
    SymptomTrend.STABLE: 1.0,
    SymptomTrend.IMPROVING: 0.8,
}

RECALL_WINDOW_DAYS = 30

# diagnosis severity labels accepted for the empty-window fallback
_DIAGNOSIS_LABELS = {
    "remission": DiseaseActivity.REMISSION,
    "in remission": DiseaseActivity.REMISSION,
    "mild": DiseaseActivity.MILD,
    "moderate": DiseaseActivity.MODERATE,
    "severe": DiseaseActivity.SEVERE,
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def daily_symptom_score(entry: JournalEntry) -> float:
    """weighted severity for a single day. reads the symptom fields only,
    so demographics, notes and nutrition can never change the result.
    missing fields contribute nothing; numbers are clamped to their scale."""
    score = 0.0

    if entry.blood_present:
        score += BLOOD_WEIGHT
    if entry.mucus_present:
        score += MUCUS_WEIGHT

    if entry.pain_severity is not None:
        score += PAIN_WEIGHT * _clamp(entry.pain_severity, SCALE_MIN, SCALE_MAX)
    if entry.urgency_level is not None:
        score += URGENCY_WEIGHT * _clamp(entry.urgency_level, SCALE_MIN, SCALE_MAX)

    if entry.bowel_frequency is not None:
        frequency = _clamp(entry.bowel_frequency, 0, MAX_BOWEL_FREQUENCY)
        score += BOWEL_EXCESS_WEIGHT * max(0, frequency - NORMAL_BOWEL_FREQUENCY)

    if entry.stress_level is not None:
        score += STRESS_WEIGHT * _clamp(entry.stress_level, SCALE_MIN, SCALE_MAX)
    if entry.fatigue_level is not None:
        score += FATIGUE_WEIGHT * _clamp(entry.fatigue_level, SCALE_MIN, SCALE_MAX)

    # poor sleep raises the score
    if entry.sleep_quality is not None:
        score += POOR_SLEEP_WEIGHT * (SCALE_MAX - _clamp(entry.sleep_quality, SCALE_MIN, SCALE_MAX))

    return score


def _daily_scores(entries: Iterable[JournalEntry]) -> list[tuple[date, float]]:
    """one score per calendar day, newest first. when a day was logged more
    than once the highest score wins, independent of input order."""
    by_date: dict[date, float] = {}
    for entry in entries:
        score = daily_symptom_score(entry)
        previous = by_date.get(entry.entry_date)
        if previous is None or score > previous:
            by_date[entry.entry_date] = score
    return sorted(by_date.items(), key=lambda item: item[0], reverse=True)


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return math.fsum(values) / len(values)


def _analyze_trend(scores_newest_first: Sequence[float]) -> SymptomTrend:
    """compare the latest week with the week before. needs two full weeks."""
    if len(scores_newest_first) < 2 * TREND_WINDOW_DAYS:
        return SymptomTrend.STABLE

    recent = scores_newest_first[:TREND_WINDOW_DAYS]
    previous = scores_newest_first[TREND_WINDOW_DAYS:2 * TREND_WINDOW_DAYS]
    change = _mean(recent) - _mean(previous)

    if change > TREND_CHANGE_THRESHOLD:
        return SymptomTrend.WORSENING
    if change < -TREND_CHANGE_THRESHOLD:
        return SymptomTrend.IMPROVING
    return SymptomTrend.STABLE


def classify_score(score: float) -> DiseaseActivity:
    """map an adjusted window score onto the ordered activity scale"""
    if score >= SEVERE_CUTOFF:
        return DiseaseActivity.SEVERE
    if score >= MODERATE_CUTOFF:
        return DiseaseActivity.MODERATE
    if score >= MILD_CUTOFF:
        return DiseaseActivity.MILD
    return DiseaseActivity.REMISSION


def fallback_activity(
    diagnosis: Optional[UserDiagnosis],
    fallback_to_healthy: bool = True,
) -> tuple[DiseaseActivity, AssessmentSource]:
    """activity to use when there is no symptom data in the window.
    1. diagnosis severity label, if it names a level
    2. remission when fallback_to_healthy, otherwise mild"""
    if diagnosis is not None:
        label = " ".join(diagnosis.disease_severity.strip().lower().split())
        activity = _DIAGNOSIS_LABELS.get(label)
        if activity is not None:
            return activity, AssessmentSource.DIAGNOSIS

    if fallback_to_healthy:
        return DiseaseActivity.REMISSION, AssessmentSource.DEFAULT
    return DiseaseActivity.MILD, AssessmentSource.DEFAULT


def assess_with_details(
    entries: Iterable[JournalEntry],
    diagnosis: Optional[UserDiagnosis] = None,
    fallback_to_healthy: bool = True,
) -> ActivityAssessment:
    """assess the supplied window and return the level with its supporting numbers"""
    daily = _daily_scores(entries)

    if not daily:
        activity, source = fallback_activity(diagnosis, fallback_to_healthy)
        logger.debug(f"No symptom data, falling back to {activity.value} ({source.value})")
        return ActivityAssessment(activity=activity, source=source)

    scores = [score for _, score in daily]
    average = _mean(scores)
    trend = _analyze_trend(scores)
    adjusted = average * TREND_MULTIPLIERS[trend]
    activity = classify_score(adjusted)

    logger.debug(
        f"Assessed {len(scores)} days: average={average:.3f}, trend={trend.value}, "
        f"adjusted={adjusted:.3f} -> {activity.value}"
    )

    return ActivityAssessment(
        activity=activity,
        averageScore=round(average, 3),
        adjustedScore=round(adjusted, 3),
        trend=trend,
        daysOfData=len(scores),
        dataQuality=round(min(1.0, len(scores) / RECALL_WINDOW_DAYS), 3),
        source=AssessmentSource.SYMPTOM_SCORE,
    )


def assess_disease_activity(
    entries: Iterable[JournalEntry],
    diagnosis: Optional[UserDiagnosis] = None,
    fallback_to_healthy: bool = True,
) -> DiseaseActivity:
    """classify disease activity from a window of journal entries.
    callers pass the window (typically the last 30 days, see recent_window)."""
    return assess_with_details(entries, diagnosis, fallback_to_healthy).activity


def recent_window(
    entries: Iterable[JournalEntry],
    as_of: date,
    days: int = RECALL_WINDOW_DAYS,
) -> list[JournalEntry]:
    """entries dated within the `days` calendar days ending on as_of (inclusive)"""
    first_day = as_of - timedelta(days=days - 1)
    return [e for e in entries if first_day <= e.entry_date <= as_of]


def is_significant_change(old: DiseaseActivity, new: DiseaseActivity) -> bool:
    """a jump of two or more levels in either direction"""
    return abs(new.level - old.level) >= 2


def activity_trend(history: Sequence[DiseaseActivity]) -> SymptomTrend:
    """trend across past assessments (newest first): mean level of the
    latest seven against the seven before"""
    if len(history) < 2:
        return SymptomTrend.STABLE

    recent = [a.level for a in history[:7]]
    previous = [a.level for a in history[7:14]]
    if not previous:
        return SymptomTrend.STABLE

    change = _mean(recent) - _mean(previous)
    if change > 0.5:
        return SymptomTrend.WORSENING
    if change < -0.5:
        return SymptomTrend.IMPROVING
    return SymptomTrend.STABLE
