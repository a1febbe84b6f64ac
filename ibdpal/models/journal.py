# journal models - daily symptom snapshots and the user's diagnosis
# mirrors the journal_entries rows written by the mobile app

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class JournalEntry(BaseModel):
    """one day of logged symptoms, lifestyle and nutrition for a user.
    only the symptom fields feed disease-activity scoring."""
    entry_id: Optional[str] = None
    user_id: Optional[str] = None
    entry_date: date

    # symptoms (scored)
    blood_present: Optional[bool] = None
    mucus_present: Optional[bool] = None
    pain_severity: Optional[int] = Field(None, description="0-10")
    urgency_level: Optional[int] = Field(None, description="0-10")
    bowel_frequency: Optional[int] = Field(None, description="stools per day")
    stress_level: Optional[int] = Field(None, description="0-10")
    fatigue_level: Optional[int] = Field(None, description="0-10")
    sleep_quality: Optional[int] = Field(None, description="0-10, 10 is best")

    # logged but never scored
    bristol_scale: Optional[int] = None
    pain_location: Optional[str] = None
    sleep_hours: Optional[float] = None
    hydration_level: Optional[int] = None
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fiber: Optional[float] = None
    medication_taken: Optional[bool] = None
    medication_type: Optional[str] = None
    dosage_level: Optional[str] = None
    notes: Optional[str] = None

    model_config = {"frozen": True, "populate_by_name": True}


class UserDiagnosis(BaseModel):
    """diagnosis captured on the my-diagnosis screen. only used as a fallback
    when there is no recent symptom data."""
    disease_type: str = Field(..., alias="diseaseType")
    disease_severity: str = Field(..., alias="diseaseSeverity")
    disease_location: Optional[str] = Field(None, alias="diseaseLocation")
    disease_behavior: Optional[str] = Field(None, alias="diseaseBehavior")
    diagnosis_date: Optional[date] = Field(None, alias="diagnosisDate")

    model_config = {"frozen": True, "populate_by_name": True}
