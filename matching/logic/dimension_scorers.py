"""
Dimension Scorers

Individual scoring functions for each match factor.
Each scorer produces a normalized score between 0.0 and 1.0.
All logic is deterministic - the AI score is only ever passed through.
"""

from typing import Iterable, List, Optional

from .config import MatchingConfig
from .constants import GPA_SCALE_MAX, SCORE_PRECISION
from .contracts import Candidate, MatchFactors, Program, University
from .normalizer import country_key

DEFAULT_CONFIG = MatchingConfig()


def score_gpa_match(
    candidate: Candidate,
    program: Program,
    config: MatchingConfig = DEFAULT_CONFIG
) -> float:
    """
    Score the GPA against the program's selectivity.

    A program's competitiveness (1 - admission rate) implies the GPA ratio
    it expects: 0.5 for an open program up to 1.0 for one admitting nobody.
    The raw ratio and the ratio measured against that bar are blended 70/30.
    Unknown GPA (0) scores neutral.
    """
    if candidate.gpa <= 0:
        return config.neutral_score

    ratio = clamp(candidate.gpa / GPA_SCALE_MAX)
    competitiveness = 1.0 - program.admission_rate
    expected_ratio = 0.5 + 0.5 * competitiveness
    competitive = min(1.0, ratio / expected_ratio)

    return clamp(config.gpa_raw_weight * ratio + (1 - config.gpa_raw_weight) * competitive)


def score_research_alignment(
    candidate: Candidate,
    program: Program,
    config: MatchingConfig = DEFAULT_CONFIG
) -> float:
    """
    Jaccard-style overlap between research interests and program research areas.

    Matching is fuzzy (substring either way); either side empty scores neutral.
    """
    interests = candidate.research_interests
    tags = program.research_areas
    if not interests or not tags:
        return config.neutral_score

    matched = len(matching_interests(interests, tags))
    union = len(interests) + len(set(tags)) - matched
    return clamp(matched / union) if union else config.neutral_score


def score_location_preference(
    candidate: Candidate,
    university: University,
    config: MatchingConfig = DEFAULT_CONFIG
) -> float:
    """Full compatibility when there is no preference or the country is preferred."""
    preferred = {country_key(c) for c in candidate.preferences.countries}
    preferred.discard("")
    if not preferred:
        return 1.0
    if country_key(university.country) in preferred:
        return 1.0
    return config.location_mismatch_score


def score_financial_fit(
    candidate: Candidate,
    program: Program,
    config: MatchingConfig = DEFAULT_CONFIG
) -> float:
    """
    Tuition against the budget cap.

    Within budget (or either side unknown) scores 1.0; above it the score
    decays linearly to the floor as tuition reaches twice the cap.
    """
    cap = candidate.preferences.max_tuition
    tuition = program.annual_tuition
    if tuition is None or cap is None or cap <= 0 or tuition <= cap:
        return 1.0

    overrun = min(1.0, ((tuition - cap) / cap) / config.financial_overrun_limit)
    score = 1.0 - (1.0 - config.financial_fit_floor) * overrun
    return clamp(max(config.financial_fit_floor, score))


def score_cv_alignment(
    candidate: Candidate,
    program: Program,
    config: MatchingConfig = DEFAULT_CONFIG
) -> Optional[float]:
    """
    CV experience and skills against the program's research areas.

    Returns None when the candidate has no CV signals so the factor drops
    out of the weighting instead of counting as zero.
    """
    signals = candidate.cv_signals
    if signals is None:
        return None

    areas = program.research_areas
    score = config.neutral_score

    entries = list(signals.experience) + list(signals.projects)
    if entries:
        relevant = sum(1 for text in entries if _mentions_any(text, areas))
        score += (relevant / len(entries)) * 0.3

    if signals.skills:
        relevant_skills = sum(
            1 for skill in signals.skills
            if any(_fuzzy_match(skill, area) for area in areas)
        )
        score += min(0.2, (relevant_skills / len(signals.skills)) * 0.2)

    return clamp(score)


def score_factors(
    candidate: Candidate,
    university: University,
    program: Program,
    ai_score: Optional[float] = None,
    config: MatchingConfig = DEFAULT_CONFIG
) -> MatchFactors:
    """
    Compute every factor for one (candidate, program) pair.

    Pure function: identical inputs always produce identical factors.
    """
    cv_alignment = score_cv_alignment(candidate, program, config)
    return MatchFactors(
        gpa_match=_round(score_gpa_match(candidate, program, config)),
        research_alignment=_round(score_research_alignment(candidate, program, config)),
        location_preference=_round(score_location_preference(candidate, university, config)),
        financial_fit=_round(score_financial_fit(candidate, program, config)),
        cv_alignment=_round(cv_alignment) if cv_alignment is not None else None,
        ai_score=_round(clamp(ai_score)) if ai_score is not None else None,
    )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if value != value:
        return low
    return max(low, min(high, value))


def matching_interests(interests: Iterable[str], tags: Iterable[str]) -> List[str]:
    """Interests that fuzzily match at least one tag, sorted."""
    tag_list = list(tags)
    return sorted(
        interest for interest in set(interests)
        if any(_fuzzy_match(interest, tag) for tag in tag_list)
    )


def _round(value: float) -> float:
    return round(value, SCORE_PRECISION)


def _fuzzy_match(term1: str, term2: str) -> bool:
    """Simple fuzzy matching - checks if terms overlap significantly."""
    t1 = term1.lower().strip()
    t2 = term2.lower().strip()
    if not t1 or not t2:
        return False
    return t1 in t2 or t2 in t1


def _mentions_any(text: str, areas: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(area and area.lower() in lowered for area in areas)
