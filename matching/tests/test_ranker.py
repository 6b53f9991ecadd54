"""
Aggregation, classification and ranking tests.
"""

import pytest

from matching.logic.aggregator import aggregate_score, batch_score
from matching.logic.classifier import classify_match, get_category_counts
from matching.logic.config import MatchingConfig
from matching.logic.constants import FACTOR_WEIGHTS, MatchCategory
from matching.logic.contracts import MatchFactors, ScoredProgram
from matching.logic.output_assembler import calculate_confidence, match_id
from matching.logic.ranker import assign_ranks, build_match, group_by_category, rank_matches

from conftest import make_candidate, make_program, make_university


def _factors(**overrides) -> MatchFactors:
    data = {"gpa_match": 1.0, "research_alignment": 0.5, "location_preference": 1.0, "financial_fit": 1.0}
    data.update(overrides)
    return MatchFactors(**data)


# =============================================================================
# AGGREGATION
# =============================================================================

def test_aggregate_renormalizes_without_optional_factors():
    overall, effective = aggregate_score(_factors(), FACTOR_WEIGHTS)

    assert overall == pytest.approx(round(0.725 / 0.85, 4))
    assert set(effective) == {"gpa_match", "research_alignment", "location_preference", "financial_fit"}
    assert sum(effective.values()) == pytest.approx(1.0)


def test_aggregate_with_cv_uses_base_weights():
    overall, effective = aggregate_score(_factors(cv_alignment=0.2), FACTOR_WEIGHTS)

    assert overall == pytest.approx(0.755)
    assert effective["cv_alignment"] == pytest.approx(0.15)


def test_aggregate_with_ai_score():
    overall, effective = aggregate_score(_factors(cv_alignment=0.2, ai_score=1.0), FACTOR_WEIGHTS)

    assert overall == pytest.approx(round(0.955 / 1.2, 4))
    assert sum(effective.values()) == pytest.approx(1.0)


def test_aggregate_all_zero_weights():
    weights = {name: 0.0 for name in FACTOR_WEIGHTS}
    assert aggregate_score(_factors(), weights) == (0.0, {})


# =============================================================================
# CLASSIFICATION
# =============================================================================

@pytest.mark.parametrize("overall, rate, expected", [
    (0.9, 0.05, MatchCategory.REACH),
    (0.45, 0.9, MatchCategory.REACH),
    (0.75, 0.5, MatchCategory.SAFETY),
    (0.70, 0.40, MatchCategory.SAFETY),
    (0.75, 0.3, MatchCategory.TARGET),
    (0.6, 0.6, MatchCategory.TARGET),
    (0.5, 0.15, MatchCategory.TARGET),
])
def test_classify_match(overall, rate, expected):
    assert classify_match(overall, rate) == expected


def test_classify_respects_config_thresholds():
    config = MatchingConfig(safety_min_score=0.9)
    assert classify_match(0.8, 0.6, config) == MatchCategory.TARGET


def test_category_counts():
    counts = get_category_counts([MatchCategory.REACH, MatchCategory.REACH, MatchCategory.SAFETY])
    assert counts == {MatchCategory.REACH: 2, MatchCategory.TARGET: 0, MatchCategory.SAFETY: 1}


# =============================================================================
# RANKING
# =============================================================================

def test_build_match_selective_program_is_reach_despite_fit():
    candidate = make_candidate()
    university = make_university("Selective Institute")
    program = make_program("prog-a", university, admission_rate=0.05, research_areas=["machine learning"])
    scored = batch_score(candidate, [(university, program)])[0]

    match = build_match(candidate, scored)

    assert match.category == MatchCategory.REACH
    assert match.reasoning[0].startswith("Reach:")
    assert any("Research match: machine learning" in line for line in match.reasoning)
    assert match.id == match_id(candidate, program)


def test_rank_orders_by_score_then_admission_rate():
    candidate = make_candidate()
    uni_a = make_university("Alpha")
    uni_b = make_university("Beta")
    uni_c = make_university("Gamma")
    scored = [
        ScoredProgram(university=uni_a, program=make_program("a", uni_a, admission_rate=0.5),
                      factors=_factors(research_alignment=0.2)),
        ScoredProgram(university=uni_b, program=make_program("b", uni_b, admission_rate=0.6),
                      factors=_factors()),
        ScoredProgram(university=uni_c, program=make_program("c", uni_c, admission_rate=0.45),
                      factors=_factors()),
    ]

    ranked = rank_matches(candidate, scored)

    assert [m.program.id for m in ranked] == ["c", "b", "a"]
    scores = [m.overall_score for m in ranked]
    assert scores == sorted(scores, reverse=True)


def test_assign_ranks_is_one_based_and_copies():
    candidate = make_candidate()
    university = make_university()
    scored = [ScoredProgram(university=university, program=make_program("p"), factors=_factors())]
    matches = rank_matches(candidate, scored)

    ranked = assign_ranks(matches)

    assert ranked[0].rank == 1
    assert matches[0].rank == 0


def test_group_by_category_partitions_matches(wide_catalog):
    from matching.logic.engine import generate_matches

    output = generate_matches(make_candidate(), wide_catalog, limit=None)
    groups = group_by_category(output.matches)

    assert sum(len(items) for items in groups.values()) == len(output.matches)
    for category, items in groups.items():
        assert all(m.category == category for m in items)
        assert [m.rank for m in items] == sorted(m.rank for m in items)


# =============================================================================
# CONFIDENCE
# =============================================================================

def test_confidence_full_signals(cv_candidate):
    program = make_program(research_areas=["machine learning"])
    factors = _factors(cv_alignment=0.7)

    assert calculate_confidence(cv_candidate, program, factors) == (1.0, False)


def test_confidence_estimated_rate_is_low():
    program = make_program(research_areas=["machine learning"], admission_rate_estimated=True)
    confidence, low = calculate_confidence(make_candidate(), program, _factors())

    assert confidence < 1.0
    assert low is True


def test_confidence_missing_inputs_lowers_level():
    candidate = make_candidate(gpa=0.0, research_interests=set())
    confidence, low = calculate_confidence(candidate, make_program(), _factors())

    assert confidence == pytest.approx(0.65)
    assert low is False
