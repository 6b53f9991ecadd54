"""
Profile normalizer tests.

Covers defaulting, GPA scale inference, test score ranges and CV merging.
"""

import pytest

from matching.logic.normalizer import (
    canonical_country,
    normalize_degree_level,
    normalize_gpa,
    normalize_profile,
    profile_completeness,
)


def test_empty_profile_gets_defaults():
    candidate = normalize_profile(None)

    assert candidate.gpa == 0.0
    assert candidate.test_scores.gre == 0
    assert candidate.test_scores.toefl == 0
    assert candidate.test_scores.ielts == 0.0
    assert candidate.research_interests == set()
    assert candidate.preferences.countries == set()
    assert candidate.preferences.max_tuition is None
    assert candidate.cv_signals is None


def test_camel_case_web_profile():
    candidate = normalize_profile({
        "gpa": "3.6",
        "testScores": {"gre": 321, "toefl": 104, "ielts": 7.5},
        "researchInterests": ["Machine  Learning", " NLP "],
        "targetDegree": "MS Computer Science",
        "preferences": {"countries": ["US", "Canada"], "maxTuition": 45000},
    }, candidate_ref="user-42")

    assert candidate.candidate_ref == "user-42"
    assert candidate.gpa == 3.6
    assert candidate.test_scores.gre == 321
    assert candidate.test_scores.toefl == 104
    assert candidate.test_scores.ielts == 7.5
    assert candidate.research_interests == {"machine learning", "nlp"}
    assert candidate.target_degree == "MS Computer Science"
    assert candidate.preferences.countries == {"United States", "Canada"}
    assert candidate.preferences.max_tuition == 45000


def test_snake_case_database_row():
    candidate = normalize_profile({
        "user_id": 7,
        "current_gpa": 3.2,
        "gre_score": 310,
        "research_interests": "robotics, computer vision",
        "preferred_countries": ["DE"],
    })

    assert candidate.candidate_ref == "7"
    assert candidate.gpa == 3.2
    assert candidate.test_scores.gre == 310
    assert candidate.research_interests == {"robotics", "computer vision"}
    assert candidate.preferences.countries == {"Germany"}


@pytest.mark.parametrize("value, scale, expected", [
    (3.5, None, 3.5),
    (4.5, None, 3.6),
    (9.0, None, 3.6),
    (85, None, 3.4),
    (9.0, 10, 3.6),
    (3.0, 5, 2.4),
    (6.0, 5, 0.0),
    (-1, None, 0.0),
    ("n/a", None, 0.0),
    (250, None, 0.0),
])
def test_normalize_gpa(value, scale, expected):
    assert normalize_gpa(value, scale) == pytest.approx(expected)


def test_out_of_range_test_scores_become_unknown():
    candidate = normalize_profile({"testScores": {"gre": 400, "toefl": 130, "ielts": 10}})

    assert candidate.test_scores.gre == 0
    assert candidate.test_scores.toefl == 0
    assert candidate.test_scores.ielts == 0.0


def test_cv_analysis_fills_gaps():
    cv = {
        "education": [{"gpa": 3.5, "field": "Computer Science"}],
        "skills": {"technical": ["Python", "PyTorch"]},
        "experience": [{"title": "ML Intern", "description": "Built machine learning pipelines"}],
        "projects": [{"name": "Drone navigation", "technologies": ["ROS", "C++"]}],
        "publications": [{"title": "A paper"}],
        "researchAreas": ["Computer Vision"],
    }
    candidate = normalize_profile({"researchInterests": ["robotics"]}, cv)

    assert candidate.gpa == 3.5
    assert candidate.target_degree == "Computer Science"
    assert candidate.research_interests == {"robotics", "computer vision"}
    assert candidate.cv_signals is not None
    assert candidate.cv_signals.skills == ["Python", "PyTorch"]
    assert candidate.cv_signals.experience == ["ML Intern Built machine learning pipelines"]
    assert candidate.cv_signals.projects == ["Drone navigation ROS C++"]
    assert candidate.cv_signals.publication_count == 1


def test_profile_gpa_wins_over_cv():
    candidate = normalize_profile({"gpa": 3.9}, {"education": [{"gpa": 3.1}]})
    assert candidate.gpa == 3.9


def test_empty_cv_analysis_has_no_signals():
    candidate = normalize_profile({}, {"skills": [], "experience": []})
    assert candidate.cv_signals is None


def test_min_admission_rate_percentage():
    candidate = normalize_profile({"preferences": {"minAdmissionRate": 20}})
    assert candidate.preferences.min_admission_rate == pytest.approx(0.2)


def test_normalize_never_raises_on_garbage():
    candidate = normalize_profile({
        "gpa": {"weird": True},
        "testScores": "lots",
        "researchInterests": 42,
        "preferences": ["not", "a", "dict"],
    }, "not a dict")

    assert candidate.gpa == 0.0
    assert candidate.research_interests == set()


@pytest.mark.parametrize("text, expected", [
    ("MS Computer Science", "masters"),
    ("Master of Science", "masters"),
    ("Ph.D. in Physics", "phd"),
    ("Doctoral Program", "phd"),
    ("BSc Economics", "bachelors"),
    ("Graduate Diploma", "diploma"),
    ("Machine Learning", "unknown"),
    ("", "unknown"),
    (None, "unknown"),
])
def test_normalize_degree_level(text, expected):
    assert normalize_degree_level(text) == expected


def test_canonical_country():
    assert canonical_country("us") == "United States"
    assert canonical_country(" Canada ") == "Canada"
    assert canonical_country(None) == ""


def test_profile_completeness_reports_missing_inputs():
    fraction, missing = profile_completeness(normalize_profile({"gpa": 3.0}))

    assert "gpa" not in missing
    assert "research_interests" in missing
    assert "cv_analysis" in missing
    assert 0 < fraction < 1
