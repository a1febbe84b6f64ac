# tests for the disease activity classifier
# fixture scores, blood override, trend adjustment, fallbacks, and window helpers

import pytest
from datetime import date, timedelta

from tests.conftest import AS_OF, make_entries, make_entry
from ibdpal.models.activity import AssessmentSource, DiseaseActivity, SymptomTrend
from ibdpal.models.journal import JournalEntry, UserDiagnosis
from ibdpal.services.disease_activity import (
    activity_trend,
    assess_disease_activity,
    assess_with_details,
    classify_score,
    daily_symptom_score,
    is_significant_change,
    recent_window,
)


def _diagnosis(severity: str) -> UserDiagnosis:
    return UserDiagnosis(disease_type="ulcerative_colitis", disease_severity=severity)


def _two_weeks(recent_profile: str, older_profile: str) -> list[JournalEntry]:
    """7 days of recent_profile ending on AS_OF, then 7 earlier days of older_profile"""
    recent = make_entries(recent_profile, 7)
    older = make_entries(older_profile, 7, end=AS_OF - timedelta(days=7))
    return recent + older


class TestDailyScore:
    """per-entry weighted symptom score"""

    @pytest.mark.parametrize("profile,expected", [
        ("remission", 1.55),
        ("mild", 3.85),
        ("moderate", 8.05),
        ("severe", 16.2),
        ("blood_mild", 6.9),
        ("no_blood_pain_urgency", 4.5),
    ])
    def test_reference_scores(self, profile, expected):
        assert daily_symptom_score(make_entry(AS_OF, profile)) == pytest.approx(expected)

    def test_missing_fields_contribute_nothing(self):
        assert daily_symptom_score(JournalEntry(entry_date=AS_OF)) == 0.0

    def test_out_of_range_values_are_clamped(self):
        capped = make_entry(AS_OF, pain_severity=10, bowel_frequency=20)
        excessive = make_entry(AS_OF, pain_severity=15, bowel_frequency=55)
        assert daily_symptom_score(excessive) == pytest.approx(daily_symptom_score(capped))

    def test_negative_values_clamp_to_zero(self):
        floor = make_entry(AS_OF, pain_severity=0, urgency_level=0)
        negative = make_entry(AS_OF, pain_severity=-4, urgency_level=-1)
        assert daily_symptom_score(negative) == pytest.approx(daily_symptom_score(floor))

    def test_poor_sleep_raises_score(self):
        rested = make_entry(AS_OF, sleep_quality=10)
        tired = make_entry(AS_OF, sleep_quality=2)
        assert daily_symptom_score(tired) > daily_symptom_score(rested)

    def test_non_symptom_fields_are_ignored(self):
        base = make_entry(AS_OF, "mild")
        noisy = make_entry(
            AS_OF, "mild",
            user_id="someone-else", notes="felt terrible", calories=3200.0,
            fiber=2.0, bristol_scale=7, medication_taken=True,
        )
        assert daily_symptom_score(noisy) == daily_symptom_score(base)


class TestClassification:
    """window assessment and cutoffs"""

    @pytest.mark.parametrize("profile,expected", [
        ("remission", DiseaseActivity.REMISSION),
        ("mild", DiseaseActivity.MILD),
        ("moderate", DiseaseActivity.MODERATE),
        ("severe", DiseaseActivity.SEVERE),
    ])
    def test_thirty_day_windows(self, profile, expected):
        assert assess_disease_activity(make_entries(profile, 30)) == expected

    def test_blood_overrides_mild_symptoms(self):
        with_blood = assess_disease_activity(make_entries("blood_mild", 5))
        without_blood = assess_disease_activity(make_entries("no_blood_pain_urgency", 5))
        assert with_blood == DiseaseActivity.MODERATE
        assert without_blood == DiseaseActivity.MILD

    def test_cutoff_boundaries(self):
        assert classify_score(2.49) == DiseaseActivity.REMISSION
        assert classify_score(2.5) == DiseaseActivity.MILD
        assert classify_score(6.0) == DiseaseActivity.MODERATE
        assert classify_score(10.0) == DiseaseActivity.SEVERE

    def test_diagnosis_ignored_when_data_present(self):
        result = assess_with_details(make_entries("remission", 10), _diagnosis("severe"))
        assert result.activity == DiseaseActivity.REMISSION
        assert result.source == AssessmentSource.SYMPTOM_SCORE

    def test_details(self):
        result = assess_with_details(make_entries("mild", 15))
        assert result.average_score == pytest.approx(3.85)
        assert result.adjusted_score == pytest.approx(3.85)
        assert result.trend == SymptomTrend.STABLE
        assert result.days_of_data == 15
        assert result.data_quality == pytest.approx(0.5)

    def test_data_quality_caps_at_one(self):
        assert assess_with_details(make_entries("mild", 45)).data_quality == 1.0

    def test_deterministic(self):
        entries = make_entries("moderate", 20) + make_entries("mild", 10, end=AS_OF - timedelta(days=20))
        assert assess_with_details(entries) == assess_with_details(list(entries))


class TestDuplicates:
    """several entries for the same date"""

    def test_highest_score_kept_per_date(self):
        entries = make_entries("severe", 10)
        with_dupes = entries + [make_entry(e.entry_date, "remission") for e in entries]
        assert assess_with_details(with_dupes) == assess_with_details(entries)

    def test_input_order_does_not_matter(self):
        entries = make_entries("mild", 10) + [make_entry(AS_OF, "severe")]
        forward = assess_with_details(entries)
        backward = assess_with_details(list(reversed(entries)))
        assert forward == backward
        assert forward.days_of_data == 10


class TestTrend:
    """week-over-week trend adjustment"""

    def test_worsening_scales_up(self):
        result = assess_with_details(_two_weeks("moderate", "remission"))
        assert result.trend == SymptomTrend.WORSENING
        assert result.average_score == pytest.approx(4.8)
        assert result.adjusted_score == pytest.approx(5.76)

    def test_improving_scales_down(self):
        result = assess_with_details(_two_weeks("remission", "moderate"))
        assert result.trend == SymptomTrend.IMPROVING
        assert result.adjusted_score == pytest.approx(3.84)

    def test_worsening_assesses_at_least_its_mirror(self):
        worsening = assess_disease_activity(_two_weeks("moderate", "mild"))
        improving = assess_disease_activity(_two_weeks("mild", "moderate"))
        assert worsening == DiseaseActivity.MODERATE
        assert improving == DiseaseActivity.MILD
        assert worsening >= improving

    def test_needs_two_full_weeks(self):
        entries = make_entries("moderate", 7) + make_entries("remission", 6, end=AS_OF - timedelta(days=7))
        assert assess_with_details(entries).trend == SymptomTrend.STABLE

    def test_small_change_is_stable(self):
        entries = _two_weeks("remission", "remission")
        assert assess_with_details(entries).trend == SymptomTrend.STABLE


class TestFallback:
    """empty window behaviour"""

    def test_no_data_defaults_to_remission(self):
        result = assess_with_details([])
        assert result.activity == DiseaseActivity.REMISSION
        assert result.source == AssessmentSource.DEFAULT
        assert result.days_of_data == 0

    def test_no_data_without_healthy_fallback_is_mild(self):
        assert assess_disease_activity([], fallback_to_healthy=False) == DiseaseActivity.MILD

    @pytest.mark.parametrize("label,expected", [
        ("moderate", DiseaseActivity.MODERATE),
        ("  Severe ", DiseaseActivity.SEVERE),
        ("In  Remission", DiseaseActivity.REMISSION),
        ("MILD", DiseaseActivity.MILD),
    ])
    def test_diagnosis_label(self, label, expected):
        result = assess_with_details([], _diagnosis(label))
        assert result.activity == expected
        assert result.source == AssessmentSource.DIAGNOSIS

    def test_unknown_label_uses_default(self):
        assert assess_disease_activity([], _diagnosis("unsure"), fallback_to_healthy=True) == DiseaseActivity.REMISSION
        assert assess_disease_activity([], _diagnosis("unsure"), fallback_to_healthy=False) == DiseaseActivity.MILD


class TestHelpers:
    """window selection, ordering, and history trend"""

    def test_recent_window_bounds(self):
        entries = [
            make_entry(AS_OF),
            make_entry(AS_OF - timedelta(days=29)),
            make_entry(AS_OF - timedelta(days=30)),
            make_entry(AS_OF + timedelta(days=1)),
        ]
        window = recent_window(entries, AS_OF)
        assert [e.entry_date for e in window] == [AS_OF, AS_OF - timedelta(days=29)]

    def test_recent_window_custom_length(self):
        entries = make_entries("mild", 10)
        assert len(recent_window(entries, AS_OF, days=7)) == 7

    def test_activity_ordering(self):
        assert DiseaseActivity.REMISSION < DiseaseActivity.MILD < DiseaseActivity.MODERATE < DiseaseActivity.SEVERE
        assert DiseaseActivity.from_level(2) == DiseaseActivity.MODERATE
        assert DiseaseActivity.from_level(9) == DiseaseActivity.SEVERE
        assert sorted([DiseaseActivity.SEVERE, DiseaseActivity.REMISSION]) == [
            DiseaseActivity.REMISSION, DiseaseActivity.SEVERE,
        ]

    def test_significant_change(self):
        assert is_significant_change(DiseaseActivity.REMISSION, DiseaseActivity.MODERATE)
        assert is_significant_change(DiseaseActivity.SEVERE, DiseaseActivity.MILD)
        assert not is_significant_change(DiseaseActivity.MILD, DiseaseActivity.MODERATE)
        assert not is_significant_change(DiseaseActivity.MILD, DiseaseActivity.MILD)

    def test_activity_trend(self):
        worsening = [DiseaseActivity.SEVERE] * 7 + [DiseaseActivity.MILD] * 7
        improving = [DiseaseActivity.MILD] * 7 + [DiseaseActivity.SEVERE] * 7
        assert activity_trend(worsening) == SymptomTrend.WORSENING
        assert activity_trend(improving) == SymptomTrend.IMPROVING
        assert activity_trend([DiseaseActivity.MILD]) == SymptomTrend.STABLE
        assert activity_trend([DiseaseActivity.MILD] * 5) == SymptomTrend.STABLE
