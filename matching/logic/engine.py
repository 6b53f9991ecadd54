"""
Match Engine

Main orchestrator that combines all matching components into a single pipeline.
This is the primary entry point for generating matches.
"""

import logging
import time
from typing import Iterable, List, Mapping, Optional, Union

from .aggregator import batch_score, score_pair
from .catalog import UniversityCatalog
from .config import MatchingConfig
from .constants import MatchCondition, GPA_SCALE_MAX, GRE_RANGE, TOEFL_RANGE, IELTS_RANGE
from .contracts import Candidate, CatalogPair, Match, MatchOutput, Program, University
from .deduplicator import dedupe_matches
from .exceptions import InvalidCandidateData
from .normalizer import normalize_degree_level
from .output_assembler import generate_warnings
from .ranker import assign_ranks, build_match, rank_matches

logger = logging.getLogger(__name__)

CatalogInput = Union[UniversityCatalog, Iterable]


class MatchEngine:
    """
    Match engine that orchestrates the scoring pipeline.

    Pipeline flow:
    1. Validation - Range check of the normalized candidate
    2. Filtering - Degree level and minimum admission rate preferences
    3. Scoring - Score each factor independently per (university, program)
    4. Ranking - Aggregate, categorize (reach/target/safety) and sort
    5. Deduplication - One match per university
    6. Coverage - Flag runs that produced fewer than min_count matches

    The engine performs no I/O; AI scores arrive precomputed.
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        self.config = config or MatchingConfig()

    def generate_matches(
        self,
        candidate: Candidate,
        catalog: CatalogInput,
        min_count: Optional[int] = None,
        ai_scores: Optional[Mapping[str, float]] = None,
        limit: Optional[int] = None
    ) -> MatchOutput:
        """
        Generate ranked, deduplicated, categorized matches.

        Args:
            candidate: Normalized candidate
            catalog: UniversityCatalog or raw catalog entries
            min_count: Minimum distinct matches for sufficient coverage
            ai_scores: Optional precomputed AI scores keyed by program id
            limit: Maximum matches to return (defaults to config.max_results)

        Returns:
            MatchOutput with ordered matches and coverage signals

        Raises:
            InvalidCandidateData: if the candidate bypassed normalization
        """
        start_time = time.perf_counter()
        validate_candidate(candidate)

        if not isinstance(catalog, UniversityCatalog):
            catalog = UniversityCatalog.load(catalog, self.config.default_admission_rate)

        min_count = self.config.default_min_count if min_count is None else min_count
        limit = limit if limit is not None else self.config.max_results

        if catalog.is_empty():
            logger.warning("⚠️ Empty catalog - returning no matches")
            return MatchOutput(
                candidate_ref=candidate.candidate_ref,
                coverage_sufficient=False,
                conditions=[MatchCondition.EMPTY_CATALOG, MatchCondition.INSUFFICIENT_CATALOG_COVERAGE],
                min_count=min_count,
                total_universities=len(catalog),
                warnings=generate_warnings(candidate, 0, 0, min_count, skipped_entries=catalog.skipped),
                processing_time_ms=_elapsed_ms(start_time),
            )

        pairs = catalog.all_programs()
        eligible = self.filter_pairs(candidate, pairs)
        logger.debug(f"Pairs eligible after filters: {len(eligible)}/{len(pairs)}")

        scored = batch_score(candidate, eligible, ai_scores=ai_scores, config=self.config)
        ranked = rank_matches(candidate, scored, self.config)
        deduped = dedupe_matches(ranked)

        coverage_sufficient = len(deduped) >= min_count
        conditions: List[MatchCondition] = []
        if not coverage_sufficient:
            conditions.append(MatchCondition.INSUFFICIENT_CATALOG_COVERAGE)
            logger.warning(
                f"⚠️ Insufficient catalog coverage: {len(deduped)} matches (minimum {min_count})"
            )

        final = deduped[:limit] if limit is not None else deduped

        return MatchOutput(
            candidate_ref=candidate.candidate_ref,
            matches=assign_ranks(final),
            coverage_sufficient=coverage_sufficient,
            conditions=conditions,
            min_count=min_count,
            total_universities=len(catalog),
            total_programs_evaluated=len(eligible),
            total_filtered=len(pairs) - len(eligible),
            warnings=generate_warnings(
                candidate,
                len(pairs),
                len(deduped),
                min_count,
                estimated_rates=sum(1 for _, p in eligible if p.admission_rate_estimated),
                skipped_entries=catalog.skipped,
            ),
            processing_time_ms=_elapsed_ms(start_time),
        )

    def filter_pairs(
        self,
        candidate: Candidate,
        pairs: List[CatalogPair]
    ) -> List[CatalogPair]:
        """
        Apply hard preference filters.

        - Degree level: only when both the target degree and the program's
          level are known and config.enforce_degree_level is set
        - Minimum admission rate preference
        """
        target_level = normalize_degree_level(candidate.target_degree)
        min_rate = candidate.preferences.min_admission_rate

        eligible = []
        for university, program in pairs:
            if (
                self.config.enforce_degree_level
                and target_level != "unknown"
                and program.degree_level != "unknown"
                and program.degree_level != target_level
            ):
                continue
            if min_rate is not None and program.admission_rate < min_rate:
                continue
            eligible.append((university, program))
        return eligible

    def score_single_program(
        self,
        candidate: Candidate,
        university: University,
        program: Program,
        ai_score: Optional[float] = None
    ) -> Match:
        """
        Score a single program for a candidate.

        Useful for getting detailed scoring on a specific program
        the applicant is interested in.
        """
        validate_candidate(candidate)
        ai_scores = {program.id: ai_score} if ai_score is not None else None
        scored = score_pair(candidate, (university, program), ai_scores, self.config)
        return build_match(candidate, scored, self.config)


def validate_candidate(candidate: Candidate) -> None:
    """
    Range check of a normalized candidate.

    normalize_profile() guarantees these ranges; a failure here means
    normalization was bypassed.
    """
    if not 0.0 <= candidate.gpa <= GPA_SCALE_MAX:
        raise InvalidCandidateData("gpa", candidate.gpa, f"expected 0-{GPA_SCALE_MAX}")

    scores = candidate.test_scores
    for field, value, (low, high) in (
        ("test_scores.gre", scores.gre, GRE_RANGE),
        ("test_scores.toefl", scores.toefl, TOEFL_RANGE),
        ("test_scores.ielts", scores.ielts, IELTS_RANGE),
    ):
        if value != 0 and not low <= value <= high:
            raise InvalidCandidateData(field, value, f"expected 0 or {low}-{high}")

    prefs = candidate.preferences
    if prefs.max_tuition is not None and prefs.max_tuition <= 0:
        raise InvalidCandidateData("preferences.max_tuition", prefs.max_tuition, "must be positive")
    if prefs.min_admission_rate is not None and not 0.0 <= prefs.min_admission_rate <= 1.0:
        raise InvalidCandidateData(
            "preferences.min_admission_rate", prefs.min_admission_rate, "expected a fraction 0-1"
        )


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)


# Convenience function for simple usage
def generate_matches(
    candidate: Candidate,
    catalog: CatalogInput,
    min_count: Optional[int] = None,
    ai_scores: Optional[Mapping[str, float]] = None,
    limit: Optional[int] = None,
    config: Optional[MatchingConfig] = None
) -> MatchOutput:
    """
    Convenience function to generate matches.

    Args:
        candidate: Normalized candidate
        catalog: UniversityCatalog or raw entries
        min_count: Minimum match count for sufficient coverage (default 12)
        ai_scores: Optional precomputed AI scores keyed by program id
        limit: Maximum matches to return
        config: Engine configuration

    Returns:
        MatchOutput
    """
    engine = MatchEngine(config)
    return engine.generate_matches(
        candidate,
        catalog,
        min_count=min_count,
        ai_scores=ai_scores,
        limit=limit,
    )
