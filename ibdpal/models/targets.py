# target models - evidence-based adherence, symptom, and health metric targets

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field

from ibdpal.models.activity import DiseaseActivity


class TargetProfile(BaseModel):
    """demographics accepted by the target engine. currently ignored so that
    targets depend on disease activity only."""
    age: Optional[int] = None
    gender: Optional[str] = None
    weight_kg: Optional[float] = Field(None, alias="weightKg")
    height_cm: Optional[float] = Field(None, alias="heightCm")

    model_config = {"frozen": True, "populate_by_name": True}


# history inputs (reserved for personalisation)

class MedicationHistoryRecord(BaseModel):
    record_date: date = Field(..., alias="date")
    medication_name: str = Field(..., alias="medicationName")
    taken: bool
    complexity_score: float = Field(0.0, alias="complexityScore")
    adherence_percentage: float = Field(0.0, alias="adherencePercentage")

    model_config = {"frozen": True, "populate_by_name": True}


class SymptomRecord(BaseModel):
    record_date: date = Field(..., alias="date")
    pain_level: float = Field(0.0, alias="painLevel")
    stress_level: float = Field(0.0, alias="stressLevel")
    fatigue_level: float = Field(0.0, alias="fatigueLevel")
    bowel_frequency: int = Field(0, alias="bowelFrequency")
    urgency_level: float = Field(0.0, alias="urgencyLevel")

    model_config = {"frozen": True, "populate_by_name": True}


class HealthMetricRecord(BaseModel):
    record_date: date = Field(..., alias="date")
    medication_adherence: float = Field(0.0, alias="medicationAdherence")
    bowel_frequency: float = Field(0.0, alias="bowelFrequency")
    pain_level: float = Field(0.0, alias="painLevel")
    urgency_level: float = Field(0.0, alias="urgencyLevel")
    weight_change: float = Field(0.0, alias="weightChange")

    model_config = {"frozen": True, "populate_by_name": True}


# targets

class MedicationAdherenceTarget(BaseModel):
    target: float
    warning_threshold: float = Field(..., alias="warningThreshold")
    critical_threshold: float = Field(..., alias="criticalThreshold")
    based_on: str = Field("", alias="basedOn")

    model_config = {"frozen": True, "populate_by_name": True}


class SymptomTargets(BaseModel):
    """upper bounds on the 0-10 symptom scales (bowel frequency in stools/day)"""
    pain: int
    stress: int
    fatigue: int
    bowel_frequency: int = Field(..., alias="bowelFrequency")
    urgency: int

    model_config = {"frozen": True, "populate_by_name": True}


class HealthMetricTargets(BaseModel):
    medication_adherence_target: float = Field(..., alias="medicationAdherenceTarget")
    bowel_frequency_target: float = Field(..., alias="bowelFrequencyTarget")
    pain_target: float = Field(..., alias="painTarget")
    urgency_target: float = Field(..., alias="urgencyTarget")
    weight_change_target: float = Field(..., alias="weightChangeTarget")

    medication_adherence_warning: float = Field(..., alias="medicationAdherenceWarning")
    bowel_frequency_warning: float = Field(..., alias="bowelFrequencyWarning")
    pain_warning: float = Field(..., alias="painWarning")
    urgency_warning: float = Field(..., alias="urgencyWarning")
    weight_change_warning: float = Field(..., alias="weightChangeWarning")

    model_config = {"frozen": True, "populate_by_name": True}


class EvidenceBasedTargetsResult(BaseModel):
    disease_activity: DiseaseActivity = Field(..., alias="diseaseActivity")
    medication_adherence: MedicationAdherenceTarget = Field(..., alias="medicationAdherence")
    symptoms: SymptomTargets
    health_metrics: HealthMetricTargets = Field(..., alias="healthMetrics")
    research_sources: list[str] = Field(default_factory=list, alias="researchSources")

    model_config = {"frozen": True, "populate_by_name": True}


class TargetsRequest(BaseModel):
    """payload for computing targets for a known disease activity"""
    profile: TargetProfile = Field(default_factory=TargetProfile)
    disease_activity: DiseaseActivity = Field(..., alias="diseaseActivity")
    medication_history: list[MedicationHistoryRecord] = Field(default_factory=list, alias="medicationHistory")
    symptom_history: list[SymptomRecord] = Field(default_factory=list, alias="symptomHistory")
    health_history: list[HealthMetricRecord] = Field(default_factory=list, alias="healthHistory")

    model_config = {"populate_by_name": True}
