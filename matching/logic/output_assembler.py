"""
Output Assembler

Builds the explainable parts of a Match (reasoning lines, confidence level)
and the warnings attached to a MatchOutput.
"""

from typing import List, Tuple
import uuid

from .config import MatchingConfig
from .constants import (
    MatchCategory,
    BASE_CONFIDENCE,
    MISSING_SIGNAL_PENALTY,
    ESTIMATED_RATE_PENALTY,
    MIN_CONFIDENCE,
    LOW_CONFIDENCE_THRESHOLD,
    GPA_SCALE_MAX,
)
from .contracts import Candidate, MatchFactors, Program, University
from .dimension_scorers import DEFAULT_CONFIG, matching_interests
from .normalizer import profile_completeness


def match_id(candidate: Candidate, program: Program) -> str:
    """Stable id for a candidate x program pairing."""
    ref = candidate.candidate_ref or "anonymous"
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"match:{ref}:{program.id}"))


def build_reasoning(
    candidate: Candidate,
    university: University,
    program: Program,
    factors: MatchFactors,
    overall_score: float,
    category: MatchCategory,
    config: MatchingConfig = DEFAULT_CONFIG
) -> List[str]:
    """
    Ordered, human-readable reasons behind a match.

    Category rationale first, then one line per factor that carries signal.
    """
    reasons: List[str] = [_category_reason(overall_score, program.admission_rate, category, config)]

    # Academic fit
    if candidate.gpa > 0:
        expected = GPA_SCALE_MAX * (0.5 + 0.5 * (1.0 - program.admission_rate))
        if candidate.gpa >= expected:
            reasons.append(
                f"Your GPA ({candidate.gpa:.2f}) meets the ~{expected:.2f} this program's selectivity suggests"
            )
        else:
            reasons.append(
                f"Your GPA ({candidate.gpa:.2f}) is below the ~{expected:.2f} this program's selectivity suggests"
            )
    else:
        reasons.append("GPA not provided; academic fit scored as neutral")

    # Research alignment
    if not program.research_areas:
        reasons.append("Program lists no research areas; research fit scored as neutral")
    elif not candidate.research_interests:
        reasons.append("No research interests provided; research fit scored as neutral")
    else:
        overlap = matching_interests(candidate.research_interests, program.research_areas)
        if overlap:
            reasons.append(
                f"Research match: {', '.join(overlap[:3])} ({round(factors.research_alignment * 100)}% overlap)"
            )
        else:
            reasons.append("No overlap between your research interests and the program's research areas")

    # Location
    if candidate.preferences.countries:
        if factors.location_preference >= 1.0:
            reasons.append(f"Located in a preferred country ({university.country})")
        else:
            reasons.append(f"Outside your preferred countries ({university.country or 'country unknown'})")

    # Financial fit
    tuition = program.annual_tuition
    cap = candidate.preferences.max_tuition
    if tuition is not None and cap is not None:
        if tuition <= cap:
            reasons.append(f"Tuition {tuition:,.0f} {program.currency} is within your budget of {cap:,.0f}")
        else:
            over = (tuition - cap) / cap * 100
            reasons.append(f"Tuition {tuition:,.0f} {program.currency} exceeds your budget by {over:.0f}%")

    # CV alignment
    if factors.cv_alignment is not None:
        if factors.cv_alignment > 0.6:
            reasons.append("Your CV experience and skills align with the program's focus areas")
        else:
            reasons.append("Limited overlap between your CV and the program's focus areas")

    if factors.ai_score is not None:
        reasons.append(f"External AI assessment: {round(factors.ai_score * 100)}%")

    if program.admission_rate_estimated:
        reasons.append(
            f"Admission rate unavailable; a {program.admission_rate * 100:.0f}% estimate was used"
        )

    return reasons


def calculate_confidence(
    candidate: Candidate,
    program: Program,
    factors: MatchFactors
) -> Tuple[float, bool]:
    """
    Confidence level for a match and its low-confidence flag.

    Neutral-by-absence factors and estimated admission rates lower confidence.
    """
    confidence = BASE_CONFIDENCE

    if candidate.gpa <= 0:
        confidence -= MISSING_SIGNAL_PENALTY
    if not candidate.research_interests or not program.research_areas:
        confidence -= MISSING_SIGNAL_PENALTY
    if factors.cv_alignment is None:
        confidence -= MISSING_SIGNAL_PENALTY / 3
    if program.admission_rate_estimated:
        confidence -= ESTIMATED_RATE_PENALTY

    confidence = round(max(MIN_CONFIDENCE, min(1.0, confidence)), 3)
    low_confidence = program.admission_rate_estimated or confidence < LOW_CONFIDENCE_THRESHOLD
    return confidence, low_confidence


def generate_warnings(
    candidate: Candidate,
    total_programs: int,
    match_count: int,
    min_count: int,
    estimated_rates: int = 0,
    skipped_entries: int = 0
) -> List[str]:
    """Generate any warnings for the output."""
    warnings: List[str] = []

    if total_programs == 0:
        warnings.append("The university catalog is empty; no matches could be generated.")
    elif match_count < min_count:
        warnings.append(
            f"Only {match_count} distinct universities matched (minimum {min_count}). "
            "Consider broadening your preferences."
        )

    _, missing = profile_completeness(candidate)
    if "gpa" in missing:
        warnings.append("GPA not provided. Academic fit is scored as neutral.")
    if "research_interests" in missing:
        warnings.append("No research interests provided. Research alignment is scored as neutral.")

    if estimated_rates:
        warnings.append(
            f"{estimated_rates} program(s) have no published admission rate; a fixed estimate was used."
        )
    if skipped_entries:
        warnings.append(f"{skipped_entries} catalog entries were malformed and skipped.")

    return warnings


def _category_reason(
    overall_score: float,
    admission_rate: float,
    category: MatchCategory,
    config: MatchingConfig
) -> str:
    pct_score = round(overall_score * 100)
    pct_rate = admission_rate * 100
    if category == MatchCategory.REACH:
        if admission_rate < config.reach_max_admission_rate:
            return f"Reach: a {pct_rate:.1f}% admission rate makes admission uncertain regardless of fit"
        return f"Reach: overall fit of {pct_score}% is below the target range"
    if category == MatchCategory.SAFETY:
        return f"Safety: strong overall fit ({pct_score}%) with a {pct_rate:.1f}% admission rate"
    return f"Target: solid overall fit ({pct_score}%) with a {pct_rate:.1f}% admission rate"
