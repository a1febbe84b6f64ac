# evidence-based target engine - adherence, symptom, and health metric targets
# table lookups keyed by disease activity; stricter targets as activity rises
# profile and history inputs are accepted but do not change the result

import logging
from typing import Optional, Sequence

from ibdpal.models.activity import DiseaseActivity
from ibdpal.models.targets import (
    EvidenceBasedTargetsResult,
    HealthMetricRecord,
    HealthMetricTargets,
    MedicationAdherenceTarget,
    MedicationHistoryRecord,
    SymptomRecord,
    SymptomTargets,
    TargetProfile,
)

logger = logging.getLogger(__name__)

ADHERENCE_BASIS = "AGA 2024 Guidelines + Crohn's & Colitis Foundation"
ADJUSTED_BASIS = "Industry-standard calculation with evidence-based adjustments"

# measured adherence vs target: beating it by more than OUTPERFORM_MARGIN raises
# the thresholds, falling more than STRUGGLE_MARGIN below lowers them
OUTPERFORM_MARGIN = 5.0
OUTPERFORM_STEP = 2.0
STRUGGLE_MARGIN = 10.0
STRUGGLE_STEP = -5.0

# (low, high) bounds for adjusted target, warning, critical
ADJUSTED_TARGET_BOUNDS = (70.0, 100.0)
ADJUSTED_WARNING_BOUNDS = (60.0, 95.0)
ADJUSTED_CRITICAL_BOUNDS = (50.0, 90.0)

# target, warning, critical (percent of expected doses)
_ADHERENCE_TABLE = {
    DiseaseActivity.REMISSION: (90.0, 80.0, 70.0),
    DiseaseActivity.MILD: (95.0, 85.0, 75.0),
    DiseaseActivity.MODERATE: (98.0, 90.0, 80.0),
    DiseaseActivity.SEVERE: (100.0, 95.0, 90.0),
}

# pain, stress, fatigue, bowel frequency, urgency
_SYMPTOM_TABLE = {
    DiseaseActivity.REMISSION: (2, 3, 2, 1, 2),
    DiseaseActivity.MILD: (3, 4, 3, 2, 3),
    DiseaseActivity.MODERATE: (4, 5, 4, 3, 4),
    DiseaseActivity.SEVERE: (5, 6, 5, 4, 5),
}

# bowel frequency, pain, urgency, weight change (kg)
_HEALTH_WARNING_TABLE = {
    DiseaseActivity.REMISSION: (3.0, 4.0, 5.0, 2.0),
    DiseaseActivity.MILD: (4.0, 5.0, 6.0, 2.0),
    DiseaseActivity.MODERATE: (5.0, 6.0, 7.0, 3.0),
    DiseaseActivity.SEVERE: (6.0, 7.0, 8.0, 4.0),
}

WEIGHT_CHANGE_TARGET = 0.0

_RESEARCH_SOURCES = (
    "American Gastroenterological Association (AGA) 2024 Guidelines",
    "Crohn's & Colitis Foundation",
    "World Health Organization (WHO)",
    "American College of Gastroenterology",
    "European Crohn's and Colitis Organisation (ECCO)",
    "World Gastroenterology Organisation",
    "NIH Office of Dietary Supplements",
)


def adherence_target(
    profile: Optional[TargetProfile],
    activity: DiseaseActivity,
    medication_history: Sequence[MedicationHistoryRecord] = (),
) -> MedicationAdherenceTarget:
    target, warning, critical = _ADHERENCE_TABLE[activity]
    return MedicationAdherenceTarget(
        target=target,
        warningThreshold=warning,
        criticalThreshold=critical,
        basedOn=ADHERENCE_BASIS,
    )


def _adherence_adjustment(current_adherence: float, target: float) -> float:
    difference = current_adherence - target
    if difference > OUTPERFORM_MARGIN:
        return OUTPERFORM_STEP
    if difference < -STRUGGLE_MARGIN:
        return STRUGGLE_STEP
    return 0.0


def _bounded(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def adjusted_adherence_target(
    base: MedicationAdherenceTarget,
    current_adherence: float,
) -> MedicationAdherenceTarget:
    """shift the base thresholds by the user's measured overall adherence.
    +2 when they beat the target by more than 5 points, -5 when they fall
    more than 10 below it, then clamp each threshold to its band."""
    step = _adherence_adjustment(current_adherence, base.target)
    logger.debug(f"Adherence {current_adherence}% vs target {base.target}%: adjustment {step:+}")
    return MedicationAdherenceTarget(
        target=_bounded(base.target + step, ADJUSTED_TARGET_BOUNDS),
        warningThreshold=_bounded(base.warning_threshold + step, ADJUSTED_WARNING_BOUNDS),
        criticalThreshold=_bounded(base.critical_threshold + step, ADJUSTED_CRITICAL_BOUNDS),
        basedOn=ADJUSTED_BASIS,
    )


def symptom_targets(
    profile: Optional[TargetProfile],
    activity: DiseaseActivity,
    symptom_history: Sequence[SymptomRecord] = (),
) -> SymptomTargets:
    pain, stress, fatigue, bowel, urgency = _SYMPTOM_TABLE[activity]
    return SymptomTargets(
        pain=pain,
        stress=stress,
        fatigue=fatigue,
        bowelFrequency=bowel,
        urgency=urgency,
    )


def health_metric_targets(
    profile: Optional[TargetProfile],
    activity: DiseaseActivity,
    medication_history: Sequence[MedicationHistoryRecord] = (),
    symptom_history: Sequence[SymptomRecord] = (),
    health_history: Sequence[HealthMetricRecord] = (),
) -> HealthMetricTargets:
    """targets and warning levels for the dashboard health metrics.
    the target side reuses the adherence and symptom tables."""
    adherence = adherence_target(profile, activity, medication_history)
    symptoms = symptom_targets(profile, activity, symptom_history)
    bowel_warning, pain_warning, urgency_warning, weight_warning = _HEALTH_WARNING_TABLE[activity]

    return HealthMetricTargets(
        medicationAdherenceTarget=adherence.target,
        bowelFrequencyTarget=float(symptoms.bowel_frequency),
        painTarget=float(symptoms.pain),
        urgencyTarget=float(symptoms.urgency),
        weightChangeTarget=WEIGHT_CHANGE_TARGET,
        medicationAdherenceWarning=adherence.warning_threshold,
        bowelFrequencyWarning=bowel_warning,
        painWarning=pain_warning,
        urgencyWarning=urgency_warning,
        weightChangeWarning=weight_warning,
    )


def all_targets(
    profile: Optional[TargetProfile],
    activity: DiseaseActivity,
    medication_history: Sequence[MedicationHistoryRecord] = (),
    symptom_history: Sequence[SymptomRecord] = (),
    health_history: Sequence[HealthMetricRecord] = (),
) -> EvidenceBasedTargetsResult:
    """every target for a disease activity in one result"""
    logger.debug(f"Building targets for {activity.value} disease activity")
    return EvidenceBasedTargetsResult(
        diseaseActivity=activity,
        medicationAdherence=adherence_target(profile, activity, medication_history),
        symptoms=symptom_targets(profile, activity, symptom_history),
        healthMetrics=health_metric_targets(
            profile, activity, medication_history, symptom_history, health_history
        ),
        researchSources=research_sources(),
    )


def research_sources() -> list[str]:
    return list(_RESEARCH_SOURCES)
