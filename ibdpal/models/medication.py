# medication models - intake records, dosing frequency, and adherence reports
# adherence response fields use camelCase aliases for the mobile client

import re
from datetime import date, datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator


class MedicationIntakeRecord(BaseModel):
    """a single logged dose. append-only."""
    id: str
    medication_name: str = Field(..., alias="medicationName")
    taken_at: datetime = Field(..., alias="takenAt")
    dosage: Optional[str] = None
    notes: Optional[str] = None
    user_id: Optional[str] = Field(None, alias="userId")

    model_config = {"frozen": True, "populate_by_name": True}


class FrequencyKind(str, Enum):
    DAILY = "daily"
    TWICE_DAILY = "twice_daily"
    WEEKLY = "weekly"
    BI_WEEKLY = "bi_weekly"
    MONTHLY = "monthly"
    AS_NEEDED = "as_needed"
    CUSTOM = "custom"


# (interval days, doses per period). as-needed has no schedule.
_SCHEDULES = {
    FrequencyKind.DAILY: (1, 1),
    FrequencyKind.TWICE_DAILY: (1, 2),
    FrequencyKind.WEEKLY: (7, 1),
    FrequencyKind.BI_WEEKLY: (14, 1),
    FrequencyKind.MONTHLY: (30, 1),
}

_LABELS = {
    "daily": FrequencyKind.DAILY,
    "once daily": FrequencyKind.DAILY,
    "qd": FrequencyKind.DAILY,
    "twice daily": FrequencyKind.TWICE_DAILY,
    "bid": FrequencyKind.TWICE_DAILY,
    "weekly": FrequencyKind.WEEKLY,
    "bi-weekly": FrequencyKind.BI_WEEKLY,
    "biweekly": FrequencyKind.BI_WEEKLY,
    "bi weekly": FrequencyKind.BI_WEEKLY,
    "every 2 weeks": FrequencyKind.BI_WEEKLY,
    "monthly": FrequencyKind.MONTHLY,
    "as needed": FrequencyKind.AS_NEEDED,
    "prn": FrequencyKind.AS_NEEDED,
}

_EVERY_N = re.compile(r"^every\s+(\d+)\s+(day|week)s?$")


class MedicationFrequency(BaseModel):
    """closed tagged variant for dosing cadence.
    interval_days is only meaningful (and required) for kind=custom."""
    kind: FrequencyKind
    interval_days: Optional[int] = Field(None, alias="intervalDays", ge=1)

    model_config = {"frozen": True, "populate_by_name": True}

    @model_validator(mode="after")
    def _check_interval(self):
        if self.kind == FrequencyKind.CUSTOM and self.interval_days is None:
            raise ValueError("custom frequency requires interval_days")
        if self.kind != FrequencyKind.CUSTOM and self.interval_days is not None:
            raise ValueError(f"interval_days is only valid for custom frequency, not {self.kind.value}")
        return self

    # constructors

    @classmethod
    def daily(cls) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.DAILY)

    @classmethod
    def twice_daily(cls) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.TWICE_DAILY)

    @classmethod
    def weekly(cls) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.WEEKLY)

    @classmethod
    def bi_weekly(cls) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.BI_WEEKLY)

    @classmethod
    def monthly(cls) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.MONTHLY)

    @classmethod
    def as_needed(cls) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.AS_NEEDED)

    @classmethod
    def custom(cls, interval_days: int) -> "MedicationFrequency":
        return cls(kind=FrequencyKind.CUSTOM, interval_days=interval_days)

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["MedicationFrequency"]:
        """parse a stored frequency label ("daily", "bi-weekly", "prn",
        "every 3 days", "every_4_weeks"). returns None for anything unrecognised."""
        if not label:
            return None
        text = " ".join(str(label).replace("_", " ").strip().lower().split())
        kind = _LABELS.get(text)
        if kind is not None:
            return cls(kind=kind)
        match = _EVERY_N.match(text)
        if match is None or int(match.group(1)) < 1:
            return None
        count, unit = int(match.group(1)), match.group(2)
        days = count * 7 if unit == "week" else count
        if days == 1:
            return cls.daily()
        if days == 7:
            return cls.weekly()
        if days == 14:
            return cls.bi_weekly()
        return cls.custom(days)

    # schedule

    @property
    def schedule(self) -> Optional[tuple[int, int]]:
        """(interval days, doses per period), or None for as-needed"""
        if self.kind == FrequencyKind.AS_NEEDED:
            return None
        if self.kind == FrequencyKind.CUSTOM:
            return (self.interval_days, 1)
        return _SCHEDULES[self.kind]

    @property
    def expected_interval_days(self) -> float:
        """expected time between consecutive doses. 0.0 for as-needed."""
        if self.schedule is None:
            return 0.0
        interval, per_period = self.schedule
        return interval / per_period

    @property
    def display_name(self) -> str:
        if self.kind == FrequencyKind.CUSTOM:
            return f"Every {self.interval_days} days"
        return {
            FrequencyKind.DAILY: "Daily",
            FrequencyKind.TWICE_DAILY: "Twice Daily",
            FrequencyKind.WEEKLY: "Weekly",
            FrequencyKind.BI_WEEKLY: "Bi-weekly",
            FrequencyKind.MONTHLY: "Monthly",
            FrequencyKind.AS_NEEDED: "As Needed",
        }[self.kind]


class AdherenceTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    INSUFFICIENT_DATA = "insufficient_data"


class MonthlyAdherence(BaseModel):
    """adherence for one calendar month, clipped to the calculation range"""
    month: str
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    expected_doses: int = Field(0, alias="expectedDoses")
    actual_doses: int = Field(0, alias="actualDoses")
    adherence_percentage: float = Field(0.0, alias="adherencePercentage")

    model_config = {"frozen": True, "populate_by_name": True}


class GapAnalysis(BaseModel):
    total_gaps: int = Field(0, alias="totalGaps")
    average_gap_days: float = Field(0.0, alias="averageGapDays")
    longest_gap_days: float = Field(0.0, alias="longestGapDays")

    model_config = {"frozen": True, "populate_by_name": True}


class StreakAnalysis(BaseModel):
    current_streak: int = Field(0, alias="currentStreak")
    longest_streak: int = Field(0, alias="longestStreak")
    average_streak: float = Field(0.0, alias="averageStreak")

    model_config = {"frozen": True, "populate_by_name": True}


class AdherenceQualityMetrics(BaseModel):
    timing_consistency: float = Field(0.0, alias="timingConsistency")
    gap_analysis: GapAnalysis = Field(default_factory=GapAnalysis, alias="gapAnalysis")
    streak_analysis: StreakAnalysis = Field(default_factory=StreakAnalysis, alias="streakAnalysis")
    average_interval_days: float = Field(0.0, alias="averageIntervalDays")

    model_config = {"frozen": True, "populate_by_name": True}


class AdherenceResult(BaseModel):
    """adherence report for one medication over a date range"""
    adherence_percentage: float = Field(0.0, alias="adherencePercentage")
    actual_doses: int = Field(0, alias="actualDoses")
    expected_doses: int = Field(0, alias="expectedDoses")
    monthly_averages: list[MonthlyAdherence] = Field(default_factory=list, alias="monthlyAverages")
    quality_metrics: AdherenceQualityMetrics = Field(default_factory=AdherenceQualityMetrics, alias="qualityMetrics")
    trend: AdherenceTrend = AdherenceTrend.INSUFFICIENT_DATA
    frequency: MedicationFrequency
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")

    model_config = {"frozen": True, "populate_by_name": True}


class Prescription(BaseModel):
    """a medication the user is prescribed, from the medications collection"""
    medication_name: str = Field(..., alias="medicationName")
    frequency: Optional[MedicationFrequency] = None

    model_config = {"frozen": True, "populate_by_name": True}


class UserMedicationData(BaseModel):
    """everything fetched from storage for one adherence run"""
    user_id: str = Field(..., alias="userId")
    records: list[MedicationIntakeRecord] = Field(default_factory=list)
    prescriptions: list[Prescription] = Field(default_factory=list)
    # medication name -> frequency label logged in the journal (dosage_level suffix)
    frequency_labels: dict[str, str] = Field(default_factory=dict, alias="frequencyLabels")

    model_config = {"frozen": True, "populate_by_name": True}


class UserAdherenceReport(BaseModel):
    """per-medication adherence for a user plus an overall summary"""
    user_id: str = Field(..., alias="userId")
    adherence_results: dict[str, AdherenceResult] = Field(default_factory=dict, alias="adherenceResults")
    overall_adherence: float = Field(0.0, alias="overallAdherence")
    overall_trend: AdherenceTrend = Field(AdherenceTrend.INSUFFICIENT_DATA, alias="overallTrend")
    # combined across medications; None when there are none
    overall_quality_metrics: Optional[AdherenceQualityMetrics] = Field(None, alias="overallQualityMetrics")
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")

    model_config = {"frozen": True, "populate_by_name": True}


class AdherenceCalculationRequest(BaseModel):
    """payload for calculating adherence over in-memory records"""
    records: list[MedicationIntakeRecord] = Field(default_factory=list)
    frequency: MedicationFrequency
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")

    model_config = {"populate_by_name": True}
