# disease activity models - ordered activity levels and assessment details

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ibdpal.models.journal import JournalEntry, UserDiagnosis


class DiseaseActivity(str, Enum):
    """ordinal disease activity. comparisons follow clinical order,
    not string order: remission < mild < moderate < severe."""
    REMISSION = "remission"
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

    @property
    def level(self) -> int:
        return _ACTIVITY_ORDER.index(self)

    @classmethod
    def from_level(cls, level: int) -> "DiseaseActivity":
        return _ACTIVITY_ORDER[max(0, min(len(_ACTIVITY_ORDER) - 1, level))]

    def __lt__(self, other):
        if not isinstance(other, DiseaseActivity):
            return NotImplemented
        return self.level < other.level

    def __le__(self, other):
        if not isinstance(other, DiseaseActivity):
            return NotImplemented
        return self.level <= other.level

    def __gt__(self, other):
        if not isinstance(other, DiseaseActivity):
            return NotImplemented
        return self.level > other.level

    def __ge__(self, other):
        if not isinstance(other, DiseaseActivity):
            return NotImplemented
        return self.level >= other.level


_ACTIVITY_ORDER = [
    DiseaseActivity.REMISSION,
    DiseaseActivity.MILD,
    DiseaseActivity.MODERATE,
    DiseaseActivity.SEVERE,
]


class SymptomTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class AssessmentSource(str, Enum):
    SYMPTOM_SCORE = "symptom_score"
    DIAGNOSIS = "diagnosis"
    DEFAULT = "default"


class ActivityAssessment(BaseModel):
    """disease activity plus the numbers that produced it"""
    activity: DiseaseActivity
    average_score: float = Field(0.0, alias="averageScore")
    adjusted_score: float = Field(0.0, alias="adjustedScore")
    trend: SymptomTrend = SymptomTrend.STABLE
    days_of_data: int = Field(0, alias="daysOfData")
    data_quality: float = Field(0.0, alias="dataQuality")
    source: AssessmentSource

    model_config = {"frozen": True, "populate_by_name": True}


class AssessmentRequest(BaseModel):
    """payload for assessing an in-memory window of entries"""
    entries: list[JournalEntry] = Field(default_factory=list)
    diagnosis: Optional[UserDiagnosis] = None
    fallback_to_healthy: bool = Field(True, alias="fallbackToHealthy")

    model_config = {"populate_by_name": True}
