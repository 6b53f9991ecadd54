"""
Engine Runner

Orchestrates the matching pipeline:
1. Normalizes the raw profile and CV analysis into a Candidate
2. Fetches the catalog snapshot via the repository
3. Runs the match engine
4. Optionally re-scores the top matches with AI and runs the engine again

This is a pure orchestration layer - NO scoring, NO SQL, NO business logic.
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from .catalog import UniversityCatalog
from .catalog_repository import fetch_university_catalog
from .config import MatchingConfig, load_config
from .constants import MatchCategory, MatchCondition
from .contracts import Candidate, Match, MatchOutput
from .engine import MatchEngine
from .normalizer import normalize_profile

logger = logging.getLogger(__name__)


def run_matching(
    db: Session,
    raw_profile: Optional[Dict[str, Any]],
    raw_cv_analysis: Optional[Dict[str, Any]] = None,
    min_count: Optional[int] = None,
    limit: Optional[int] = None,
    ai_scores: Optional[Mapping[str, float]] = None,
    ai_scorer: Any = None,
    config: Optional[MatchingConfig] = None,
    request_id: Optional[str] = None
) -> MatchOutput:
    """
    Main entry point: run full matching pipeline.

    Args:
        db: Database session
        raw_profile: Profile dict as sent by the client or stored
        raw_cv_analysis: Optional CV analysis dict
        min_count: Minimum distinct matches for sufficient coverage
        limit: Max matches to return
        ai_scores: Precomputed AI scores keyed by program id
        ai_scorer: Optional AIMatchScorer used to score the top matches
        config: Engine configuration (defaults to load_config())
        request_id: Caller-supplied request id

    Returns:
        MatchOutput with ranked matches and coverage signals
    """
    config = config or load_config()
    request_id = request_id or str(uuid.uuid4())

    candidate = normalize_profile(raw_profile, raw_cv_analysis)
    logger.info(f"🚀 Starting matching pipeline for candidate: {candidate.candidate_ref or 'anonymous'}")
    logger.info(f"🎯 Target degree: {candidate.target_degree or 'unspecified'}")
    logger.info(f"🌍 Preferred countries: {sorted(candidate.preferences.countries)}")

    entries = fetch_university_catalog(db)
    catalog = UniversityCatalog.load(entries, config.default_admission_rate)
    logger.info(f"📦 Catalog loaded: {len(catalog)} universities, {catalog.program_count} programs")

    engine = MatchEngine(config)
    output = engine.generate_matches(candidate, catalog, min_count=min_count, ai_scores=ai_scores, limit=limit)
    logger.info(f"📊 First pass: {len(output.matches)} matches")

    if ai_scorer is not None and config.ai_rescore_top > 0 and output.matches:
        fetched = rescore_top_matches(candidate, output.matches, ai_scorer, config.ai_rescore_top)
        if fetched:
            merged = dict(ai_scores or {})
            merged.update(fetched)
            output = engine.generate_matches(
                candidate, catalog, min_count=min_count, ai_scores=merged, limit=limit
            )
            logger.info(f"🤖 Re-ranked with {len(fetched)} AI scores")

    output = output.model_copy(update={"request_id": request_id})
    logger.info(
        f"✨ Matching pipeline complete ({output.processing_time_ms:.2f}ms, "
        f"coverage_sufficient={output.coverage_sufficient})"
    )
    return output


def rescore_top_matches(
    candidate: Candidate,
    matches: List[Match],
    ai_scorer: Any,
    top_n: int
) -> Dict[str, float]:
    """Fetch AI scores for the top N matches; failed fetches are omitted."""
    pairs = [(m.university, m.program) for m in matches[:top_n]]
    logger.info(f"🎲 Fetching AI scores for top {len(pairs)} matches...")
    return ai_scorer.score_many(candidate, pairs)


def serialize_match(match: Match) -> Dict[str, Any]:
    """Convert a Match to a JSON-serializable dict."""
    return {
        "id": match.id,
        "rank": match.rank,
        "program_id": match.program.id,
        "program_name": match.program.name,
        "degree_level": match.program.degree_level,
        "university_id": match.university.id,
        "university_name": match.university.name,
        "country": match.university.country,
        "city": match.university.city,
        "category": MatchCategory(match.category).value,
        "overall_score": match.overall_score,
        "admission_rate": match.program.admission_rate,
        "admission_rate_estimated": match.program.admission_rate_estimated,
        "annual_tuition": match.program.annual_tuition,
        "currency": match.program.currency,
        "factors": match.factors.present(),
        "reasoning": match.reasoning,
        "confidence_level": match.confidence_level,
        "low_confidence": match.low_confidence,
    }


def serialize_output(output: MatchOutput) -> Dict[str, Any]:
    """Convert a MatchOutput to the API response shape."""
    by_category = output.by_category()
    return {
        "request_id": output.request_id,
        "candidate_ref": output.candidate_ref,
        "summary": {
            "total_universities": output.total_universities,
            "total_programs_evaluated": output.total_programs_evaluated,
            "total_filtered": output.total_filtered,
            "total_matches": len(output.matches),
            "reach": len(by_category[MatchCategory.REACH]),
            "target": len(by_category[MatchCategory.TARGET]),
            "safety": len(by_category[MatchCategory.SAFETY]),
            "processing_time_ms": output.processing_time_ms,
        },
        "coverage_sufficient": output.coverage_sufficient,
        "conditions": [MatchCondition(c).value for c in output.conditions],
        "min_count": output.min_count,
        "matches": [serialize_match(m) for m in output.matches],
        "warnings": output.warnings,
        "engine_version": output.engine_version,
    }
