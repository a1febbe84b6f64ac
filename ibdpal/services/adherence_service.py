# adherence orchestration - fetch a user's medication data, then compute
# per-medication adherence and an overall summary
# fetch is async and may raise StorageError; compute is pure

import logging
from collections import Counter
from datetime import date, datetime, time
from typing import Iterable, Optional

import numpy as np

from ibdpal.models.journal import JournalEntry
from ibdpal.models.medication import (
    AdherenceQualityMetrics,
    AdherenceResult,
    AdherenceTrend,
    GapAnalysis,
    MedicationFrequency,
    MedicationIntakeRecord,
    StreakAnalysis,
    UserAdherenceReport,
    UserMedicationData,
)
from ibdpal.services.adherence import calculate_adherence, default_frequency_for
from ibdpal.services.db import Database
from ibdpal.services.records import (
    fetch_intake_records,
    fetch_journal_entries,
    fetch_prescriptions,
)

logger = logging.getLogger(__name__)

UNSPECIFIED_MEDICATION = "unspecified"


def split_dosage_level(dosage_level: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """split a journal dosage_level like "40mg_every_4_weeks" into
    ("40", "every_4_weeks"). single values ("2400mg", "2.4g") carry no frequency."""
    if not dosage_level:
        return None, None
    if dosage_level == "0":
        return "0", None

    parts = dosage_level.split("_")
    if len(parts) >= 2:
        return parts[0].replace("mg", ""), "_".join(parts[1:])

    dosage = dosage_level
    if dosage_level.endswith("mg"):
        dosage = dosage_level[:-2]
    elif dosage_level.endswith("g"):
        try:
            dosage = str(int(round(float(dosage_level[:-1]) * 1000)))
        except ValueError:
            dosage = dosage_level
    return dosage, None


def intake_records_from_journal(
    entries: Iterable[JournalEntry],
    user_id: str,
) -> tuple[list[MedicationIntakeRecord], dict[str, str]]:
    """one intake record per journal day with medication_taken set, plus the
    latest frequency label logged for each medication"""
    records = []
    labels: dict[str, str] = {}
    for entry in sorted(entries, key=lambda e: e.entry_date):
        if not entry.medication_taken:
            continue
        name = (entry.medication_type or "").strip() or UNSPECIFIED_MEDICATION
        dosage, label = split_dosage_level(entry.dosage_level)
        records.append(MedicationIntakeRecord(
            id=entry.entry_id or f"journal-{name}-{entry.entry_date.isoformat()}",
            medication_name=name,
            taken_at=datetime.combine(entry.entry_date, time.min),
            dosage=dosage,
            notes=entry.notes,
            user_id=user_id,
        ))
        if label:
            labels[name] = label
    return records, labels


async def fetch_user_medication_data(
    db: Database,
    user_id: str,
    start: date,
    end: date,
) -> UserMedicationData:
    """intake logs and prescriptions for a user. when no explicit intake logs
    exist, journal days marked medication_taken stand in for them."""
    records = await fetch_intake_records(db, user_id, start, end)
    prescriptions = await fetch_prescriptions(db, user_id)

    labels: dict[str, str] = {}
    if not records:
        entries = await fetch_journal_entries(db, user_id, start, end)
        records, labels = intake_records_from_journal(entries, user_id)
        if records:
            logger.info(f"Using {len(records)} journal medication entries for user {user_id}")

    return UserMedicationData(
        user_id=user_id,
        records=records,
        prescriptions=prescriptions,
        frequency_labels=labels,
    )


def medication_key(name: str) -> str:
    """grouping key for a medication name: "Mesalamine " and "mesalamine" match"""
    return name.strip().casefold()


def _resolve_frequency(key: str, name: str, data: UserMedicationData) -> MedicationFrequency:
    # prescription, then journal label, then the name-based default
    for prescription in data.prescriptions:
        if medication_key(prescription.medication_name) == key and prescription.frequency is not None:
            return prescription.frequency
    labels = {medication_key(n): label for n, label in data.frequency_labels.items()}
    from_label = MedicationFrequency.from_label(labels.get(key))
    if from_label is not None:
        return from_label
    return default_frequency_for(name)


def _overall_trend(trends: list[AdherenceTrend]) -> AdherenceTrend:
    known = [t for t in trends if t != AdherenceTrend.INSUFFICIENT_DATA]
    if not known:
        return AdherenceTrend.INSUFFICIENT_DATA
    counts = Counter(known)
    improving = counts[AdherenceTrend.IMPROVING]
    declining = counts[AdherenceTrend.DECLINING]
    if improving > declining:
        return AdherenceTrend.IMPROVING
    if declining > improving:
        return AdherenceTrend.DECLINING
    return AdherenceTrend.STABLE


def overall_quality_metrics(results: Iterable[AdherenceResult]) -> Optional[AdherenceQualityMetrics]:
    """quality metrics combined across medications: mean timing consistency,
    summed gap count, longest gap and streaks, mean of the averages"""
    metrics = [r.quality_metrics for r in results]
    if not metrics:
        return None

    gaps = [m.gap_analysis for m in metrics]
    streaks = [m.streak_analysis for m in metrics]
    return AdherenceQualityMetrics(
        timingConsistency=round(float(np.mean([m.timing_consistency for m in metrics])), 2),
        gapAnalysis=GapAnalysis(
            totalGaps=sum(g.total_gaps for g in gaps),
            averageGapDays=round(float(np.mean([g.average_gap_days for g in gaps])), 2),
            longestGapDays=max(g.longest_gap_days for g in gaps),
        ),
        streakAnalysis=StreakAnalysis(
            currentStreak=max(s.current_streak for s in streaks),
            longestStreak=max(s.longest_streak for s in streaks),
            averageStreak=round(float(np.mean([s.average_streak for s in streaks])), 2),
        ),
        averageIntervalDays=round(float(np.mean([m.average_interval_days for m in metrics])), 2),
    )


def compute_user_adherence(data: UserMedicationData, start: date, end: date) -> UserAdherenceReport:
    """adherence per medication (prescribed or logged) plus the overall mean.
    names are matched ignoring case and surrounding whitespace; a prescribed
    medication is reported under its prescription spelling."""
    names: dict[str, str] = {}
    grouped: dict[str, list[MedicationIntakeRecord]] = {}
    for prescription in data.prescriptions:
        key = medication_key(prescription.medication_name)
        names.setdefault(key, prescription.medication_name.strip())
        grouped.setdefault(key, [])
    for record in data.records:
        key = medication_key(record.medication_name)
        names.setdefault(key, record.medication_name.strip())
        grouped.setdefault(key, []).append(record)

    results = {}
    for key in sorted(grouped):
        name = names[key]
        frequency = _resolve_frequency(key, name, data)
        results[name] = calculate_adherence(grouped[key], frequency, start, end)

    scored = [r.adherence_percentage for r in results.values() if r.expected_doses > 0]
    overall = round(sum(scored) / len(scored), 2) if scored else 0.0

    report = UserAdherenceReport(
        user_id=data.user_id,
        adherence_results=results,
        overall_adherence=overall,
        overall_trend=_overall_trend([r.trend for r in results.values()]),
        overall_quality_metrics=overall_quality_metrics(results.values()),
        start_date=start,
        end_date=end,
    )
    logger.info(
        f"Adherence for user {data.user_id} ({start}..{end}): "
        f"{len(results)} medications, overall {overall}%"
    )
    return report


async def calculate_user_adherence(db: Database, user_id: str, start: date, end: date) -> UserAdherenceReport:
    data = await fetch_user_medication_data(db, user_id, start, end)
    return compute_user_adherence(data, start, end)
