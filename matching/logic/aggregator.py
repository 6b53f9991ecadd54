"""
Score Aggregator

Scores every catalog pair and combines factor scores into an overall score.
Applies weighting with renormalization over the factors that are present.
"""

from concurrent.futures import ProcessPoolExecutor
from functools import partial
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .config import MatchingConfig
from .constants import SCORE_PRECISION
from .contracts import Candidate, CatalogPair, MatchFactors, ScoredProgram
from .dimension_scorers import DEFAULT_CONFIG, clamp, score_factors

logger = logging.getLogger(__name__)


def aggregate_score(
    factors: MatchFactors,
    weights: Mapping[str, float]
) -> Tuple[float, Dict[str, float]]:
    """
    Weighted mean of the present factors.

    Absent optional factors (no CV, no AI score) drop out and the remaining
    weights are renormalized to sum to 1.

    Args:
        factors: Factor scores for one pair
        weights: Factor name -> raw weight

    Returns:
        (overall score rounded to SCORE_PRECISION, effective weights used)
    """
    present = factors.present()
    raw = {name: weights.get(name, 0.0) for name in present}
    total = sum(raw.values())
    if total <= 0:
        return 0.0, {}

    effective = {name: weight / total for name, weight in raw.items()}
    overall = sum(present[name] * effective[name] for name in present)
    return round(clamp(overall), SCORE_PRECISION), effective


def score_pair(
    candidate: Candidate,
    pair: CatalogPair,
    ai_scores: Optional[Mapping[str, float]] = None,
    config: MatchingConfig = DEFAULT_CONFIG
) -> ScoredProgram:
    """Score one (university, program) pair."""
    university, program = pair
    ai_score = ai_scores.get(program.id) if ai_scores else None
    factors = score_factors(candidate, university, program, ai_score=ai_score, config=config)
    return ScoredProgram(university=university, program=program, factors=factors)


def batch_score(
    candidate: Candidate,
    pairs: Sequence[CatalogPair],
    ai_scores: Optional[Mapping[str, float]] = None,
    config: MatchingConfig = DEFAULT_CONFIG
) -> List[ScoredProgram]:
    """
    Score multiple pairs in batch.

    Each pair is independent, so large catalogs are spread over a process
    pool when config.parallel_workers > 1; results keep input order either way.

    Args:
        candidate: Normalized candidate
        pairs: (University, Program) pairs to score
        ai_scores: Optional precomputed AI scores keyed by program id
        config: Engine configuration

    Returns:
        List of ScoredProgram objects, one per pair
    """
    scorer = partial(score_pair, candidate, ai_scores=dict(ai_scores or {}), config=config)

    if config.parallel_workers > 1 and len(pairs) >= config.parallel_threshold:
        chunksize = max(1, len(pairs) // (config.parallel_workers * 4))
        logger.info(
            f"🧵 Scoring {len(pairs)} pairs across {config.parallel_workers} workers (chunksize={chunksize})"
        )
        with ProcessPoolExecutor(max_workers=config.parallel_workers) as pool:
            return list(pool.map(scorer, pairs, chunksize=chunksize))

    return [scorer(pair) for pair in pairs]
