"""
Ranker

Turns scored programs into categorized Match records and orders them.
Single source of truth for overall score, category and sort order.
"""

from typing import Dict, List, Sequence

from .aggregator import aggregate_score
from .classifier import classify_match
from .config import MatchingConfig
from .constants import MatchCategory
from .contracts import Candidate, Match, ScoredProgram
from .dimension_scorers import DEFAULT_CONFIG
from .catalog import university_key
from .output_assembler import build_reasoning, calculate_confidence, match_id


def build_match(
    candidate: Candidate,
    scored: ScoredProgram,
    config: MatchingConfig = DEFAULT_CONFIG
) -> Match:
    """Aggregate, classify and explain one scored program."""
    overall, _ = aggregate_score(scored.factors, config.weights)
    category = classify_match(overall, scored.program.admission_rate, config)
    confidence, low_confidence = calculate_confidence(candidate, scored.program, scored.factors)

    return Match(
        id=match_id(candidate, scored.program),
        candidate_ref=candidate.candidate_ref,
        program=scored.program,
        university=scored.university,
        overall_score=overall,
        category=category,
        factors=scored.factors,
        reasoning=build_reasoning(
            candidate,
            scored.university,
            scored.program,
            scored.factors,
            overall,
            category,
            config,
        ),
        confidence_level=confidence,
        low_confidence=low_confidence,
    )


def sort_key(match: Match):
    """
    Descending overall score; ties broken by ascending admission rate,
    then university name and program id for a total order.
    """
    return (
        -match.overall_score,
        match.program.admission_rate,
        university_key(match.university.name),
        match.program.id,
    )


def rank_matches(
    candidate: Candidate,
    scored: Sequence[ScoredProgram],
    config: MatchingConfig = DEFAULT_CONFIG
) -> List[Match]:
    """
    Build and order matches for every scored program.

    The global order also orders each category, since every category
    shares the same sort key.

    Args:
        candidate: Normalized candidate
        scored: Scored programs
        config: Engine configuration

    Returns:
        Sorted list of Match
    """
    return sorted((build_match(candidate, s, config) for s in scored), key=sort_key)


def assign_ranks(matches: Sequence[Match]) -> List[Match]:
    """Return copies carrying their 1-based position."""
    return [match.model_copy(update={"rank": position}) for position, match in enumerate(matches, 1)]


def group_by_category(matches: Sequence[Match]) -> Dict[MatchCategory, List[Match]]:
    """
    Group matches by category, keeping their relative order.

    Returns:
        Dict mapping category to list of matches (reach, target, safety)
    """
    by_category: Dict[MatchCategory, List[Match]] = {
        MatchCategory.REACH: [],
        MatchCategory.TARGET: [],
        MatchCategory.SAFETY: [],
    }
    for match in matches:
        by_category[MatchCategory(match.category)].append(match)
    return by_category
