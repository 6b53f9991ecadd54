"""
Classifier

Classifies matches into admissions-risk categories:
- Reach (low admission rate or weak fit)
- Target (realistic match)
- Safety (strong fit at a program that admits many applicants)

The admission rate dominates: a very selective program is a reach
whatever the fit score says.
"""

from typing import Dict, Iterable

from .config import MatchingConfig
from .constants import MatchCategory
from .dimension_scorers import DEFAULT_CONFIG


def classify_match(
    overall_score: float,
    admission_rate: float,
    config: MatchingConfig = DEFAULT_CONFIG
) -> MatchCategory:
    """
    Classify a single match into a category.

    Args:
        overall_score: Aggregated score in [0, 1]
        admission_rate: Program admission rate in [0, 1]
        config: Thresholds

    Returns:
        MatchCategory enum value
    """
    # Reach is checked first so admission risk overrides fit
    if overall_score < config.reach_max_score or admission_rate < config.reach_max_admission_rate:
        return MatchCategory.REACH

    if overall_score >= config.safety_min_score and admission_rate >= config.safety_min_admission_rate:
        return MatchCategory.SAFETY

    return MatchCategory.TARGET


def get_category_counts(categories: Iterable[MatchCategory]) -> Dict[MatchCategory, int]:
    """Count matches in each category."""
    counts = {cat: 0 for cat in MatchCategory}
    for category in categories:
        counts[MatchCategory(category)] += 1
    return counts
