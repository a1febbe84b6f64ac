# medication adherence calculator - expected vs actual doses over a date range
# scheduling works on calendar dates with both ends inclusive
# monthly breakdown via pandas periods, quality metrics via numpy
# pure: never raises for empty input, zero expected doses, or as-needed meds

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ibdpal.models.medication import (
    AdherenceQualityMetrics,
    AdherenceResult,
    AdherenceTrend,
    GapAnalysis,
    MedicationFrequency,
    MedicationIntakeRecord,
    MonthlyAdherence,
    StreakAnalysis,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 86400.0
_EPOCH = datetime(1970, 1, 1)

# an interval longer than this multiple of the expected interval is a gap
GAP_FACTOR = 1.5
# consecutive doses within this multiple of the expected interval keep a streak going
STREAK_FACTOR = 1.2

TREND_MONTHS = 3
TREND_CHANGE_THRESHOLD = 5.0

# name fragment -> default frequency, used when nothing else is known
_DEFAULT_FREQUENCIES = (
    ("mesalamine", MedicationFrequency.daily),
    ("sulfasalazine", MedicationFrequency.daily),
    ("pentasa", MedicationFrequency.daily),
    ("lialda", MedicationFrequency.daily),
    ("azathioprine", MedicationFrequency.daily),
    ("mercaptopurine", MedicationFrequency.daily),
    ("imuran", MedicationFrequency.daily),
    ("6-mp", MedicationFrequency.daily),
    ("prednisone", MedicationFrequency.daily),
    ("prednisolone", MedicationFrequency.daily),
    ("budesonide", MedicationFrequency.daily),
    ("entocort", MedicationFrequency.daily),
    ("methotrexate", MedicationFrequency.weekly),
    ("mtx", MedicationFrequency.weekly),
    ("infliximab", MedicationFrequency.bi_weekly),
    ("remicade", MedicationFrequency.bi_weekly),
    ("adalimumab", MedicationFrequency.bi_weekly),
    ("humira", MedicationFrequency.bi_weekly),
    ("vedolizumab", MedicationFrequency.monthly),
    ("entyvio", MedicationFrequency.monthly),
    ("ustekinumab", MedicationFrequency.monthly),
    ("stelara", MedicationFrequency.monthly),
)


def default_frequency_for(medication_name: Optional[str]) -> MedicationFrequency:
    """typical dosing frequency for common IBD medications. unknown names are daily."""
    name = (medication_name or "").strip().lower()
    for fragment, factory in _DEFAULT_FREQUENCIES:
        if fragment in name:
            return factory()
    return MedicationFrequency.daily()


# helpers

def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _wall_clock(value: datetime) -> datetime:
    """naive wall-clock time as logged; the tz offset is dropped, not converted"""
    return value.replace(tzinfo=None)


def _total_days(start: date, end: date) -> int:
    return (end - start).days + 1


def _qualifying_records(
    records: Iterable[MedicationIntakeRecord],
    start: date,
    end: date,
) -> list[MedicationIntakeRecord]:
    """records logged on a calendar date in [start, end], one per id,
    ordered by time then id"""
    ordered = sorted(records, key=lambda r: (_wall_clock(r.taken_at), r.id))
    seen: set[str] = set()
    result = []
    for record in ordered:
        if record.id in seen or not start <= record.taken_at.date() <= end:
            continue
        seen.add(record.id)
        result.append(record)
    return result


def _period_count(total_days: int, interval: int) -> int:
    if interval == 1:
        return total_days
    return max(1, total_days // interval)


# dose counting

def expected_doses(frequency: MedicationFrequency, start_date: DateLike, end_date: DateLike) -> int:
    """doses the schedule calls for between start and end (inclusive)"""
    total_days = _total_days(_as_date(start_date), _as_date(end_date))
    schedule = frequency.schedule
    if total_days <= 0 or schedule is None:
        return 0
    interval, per_period = schedule
    return _period_count(total_days, interval) * per_period


def _count_actual(records: Sequence[MedicationIntakeRecord], frequency: MedicationFrequency, start: date, end: date) -> int:
    # records are already filtered to [start, end]
    schedule = frequency.schedule
    if schedule is None:
        return len(records)

    total_days = _total_days(start, end)
    if total_days <= 0:
        return 0

    interval, per_period = schedule
    n_periods = _period_count(total_days, interval)
    buckets = [0] * n_periods
    for record in records:
        offset = (record.taken_at.date() - start).days
        index = min(offset // interval, n_periods - 1)
        buckets[index] += 1
    return sum(min(count, per_period) for count in buckets)


def actual_doses(
    records: Iterable[MedicationIntakeRecord],
    frequency: MedicationFrequency,
    start_date: DateLike,
    end_date: DateLike,
) -> int:
    """doses that count toward adherence. extra doses within a single
    scheduling period are not credited beyond the schedule."""
    start, end = _as_date(start_date), _as_date(end_date)
    return _count_actual(_qualifying_records(records, start, end), frequency, start, end)


def adherence_percentage(actual: int, expected: int) -> float:
    if expected <= 0:
        return 0.0
    return round(min(100.0, 100.0 * actual / expected), 2)


# monthly breakdown

def monthly_adherence(
    records: Iterable[MedicationIntakeRecord],
    frequency: MedicationFrequency,
    start_date: DateLike,
    end_date: DateLike,
) -> list[MonthlyAdherence]:
    """one entry per calendar month touched by the range, each clipped to it"""
    start, end = _as_date(start_date), _as_date(end_date)
    if end < start:
        return []

    qualifying = _qualifying_records(records, start, end)
    months = []
    for period in pd.period_range(start=pd.Timestamp(start), end=pd.Timestamp(end), freq="M"):
        month_start = max(start, period.start_time.date())
        month_end = min(end, period.end_time.date())
        in_month = [r for r in qualifying if month_start <= r.taken_at.date() <= month_end]

        expected = expected_doses(frequency, month_start, month_end)
        actual = _count_actual(in_month, frequency, month_start, month_end)
        months.append(MonthlyAdherence(
            month=str(period),
            startDate=month_start,
            endDate=month_end,
            expectedDoses=expected,
            actualDoses=actual,
            adherencePercentage=adherence_percentage(actual, expected),
        ))
    return months


def adherence_trend(monthly: Sequence[MonthlyAdherence]) -> AdherenceTrend:
    """mean of the latest three months against the three before them"""
    if len(monthly) < 2:
        return AdherenceTrend.INSUFFICIENT_DATA

    recent = monthly[-TREND_MONTHS:]
    older = monthly[:-TREND_MONTHS][-TREND_MONTHS:]
    if not recent or not older:
        return AdherenceTrend.INSUFFICIENT_DATA

    recent_avg = float(np.mean([m.adherence_percentage for m in recent]))
    older_avg = float(np.mean([m.adherence_percentage for m in older]))
    change = recent_avg - older_avg

    if change > TREND_CHANGE_THRESHOLD:
        return AdherenceTrend.IMPROVING
    if change < -TREND_CHANGE_THRESHOLD:
        return AdherenceTrend.DECLINING
    return AdherenceTrend.STABLE


# quality metrics

def _intervals_in_days(records: Sequence[MedicationIntakeRecord]) -> np.ndarray:
    seconds = np.array(
        [(_wall_clock(r.taken_at) - _EPOCH).total_seconds() for r in records],
        dtype=float,
    )
    return np.diff(seconds) / SECONDS_PER_DAY


def _timing_consistency(records: Sequence[MedicationIntakeRecord], frequency: MedicationFrequency) -> float:
    """how tightly doses cluster around one clock time, 0-100.
    twice-daily doses are folded onto a 12h cycle so 8am and 8pm line up."""
    if len(records) < 2:
        return 0.0

    schedule = frequency.schedule
    doses_per_day = schedule[1] if schedule is not None and schedule[0] == 1 else 1
    cycle_seconds = SECONDS_PER_DAY / doses_per_day

    seconds_of_day = np.array([
        r.taken_at.hour * 3600 + r.taken_at.minute * 60 + r.taken_at.second
        for r in records
    ], dtype=float)
    phase = 2.0 * np.pi * (seconds_of_day % cycle_seconds) / cycle_seconds

    resultant = np.hypot(np.cos(phase).mean(), np.sin(phase).mean())
    return round(min(100.0, float(resultant) * 100.0), 2)


def _gap_analysis(intervals: np.ndarray, expected_interval: float) -> GapAnalysis:
    if expected_interval <= 0 or intervals.size == 0:
        return GapAnalysis()

    gaps = intervals[intervals > GAP_FACTOR * expected_interval]
    if gaps.size == 0:
        return GapAnalysis()

    return GapAnalysis(
        totalGaps=int(gaps.size),
        averageGapDays=round(float(gaps.mean()), 2),
        longestGapDays=round(float(gaps.max()), 2),
    )


def _streak_analysis(intervals: np.ndarray, record_count: int, expected_interval: float) -> StreakAnalysis:
    if expected_interval <= 0 or record_count == 0:
        return StreakAnalysis()

    streaks = []
    run = 1
    for interval in intervals:
        if interval <= STREAK_FACTOR * expected_interval:
            run += 1
        else:
            streaks.append(run)
            run = 1
    streaks.append(run)

    return StreakAnalysis(
        currentStreak=streaks[-1],
        longestStreak=max(streaks),
        averageStreak=round(float(np.mean(streaks)), 2),
    )


def quality_metrics(
    records: Iterable[MedicationIntakeRecord],
    frequency: MedicationFrequency,
    start_date: DateLike,
    end_date: DateLike,
) -> AdherenceQualityMetrics:
    start, end = _as_date(start_date), _as_date(end_date)
    qualifying = _qualifying_records(records, start, end)
    intervals = _intervals_in_days(qualifying) if len(qualifying) >= 2 else np.array([], dtype=float)
    expected_interval = frequency.expected_interval_days

    return AdherenceQualityMetrics(
        timingConsistency=_timing_consistency(qualifying, frequency),
        gapAnalysis=_gap_analysis(intervals, expected_interval),
        streakAnalysis=_streak_analysis(intervals, len(qualifying), expected_interval),
        averageIntervalDays=round(float(intervals.mean()), 2) if intervals.size else 0.0,
    )


# entry point

def calculate_adherence(
    records: Iterable[MedicationIntakeRecord],
    frequency: MedicationFrequency,
    start_date: DateLike,
    end_date: DateLike,
) -> AdherenceResult:
    """adherence of one medication's intake records over [start_date, end_date]"""
    start, end = _as_date(start_date), _as_date(end_date)
    records = list(records)
    qualifying = _qualifying_records(records, start, end)

    expected = expected_doses(frequency, start, end)
    actual = _count_actual(qualifying, frequency, start, end)
    monthly = monthly_adherence(qualifying, frequency, start, end)

    result = AdherenceResult(
        adherencePercentage=adherence_percentage(actual, expected),
        actualDoses=actual,
        expectedDoses=expected,
        monthlyAverages=monthly,
        qualityMetrics=quality_metrics(qualifying, frequency, start, end),
        trend=adherence_trend(monthly),
        frequency=frequency,
        startDate=start,
        endDate=end,
    )

    logger.debug(
        f"Adherence {frequency.display_name} {start}..{end}: "
        f"{actual}/{expected} doses ({result.adherence_percentage}%)"
    )
    return result
