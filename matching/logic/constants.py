"""
Match Engine Constants

Defines weights, category thresholds, defaults and enums used by the match engine.
All values are deterministic; runtime overrides live in MatchingConfig.
"""

from enum import Enum
from typing import Dict

ENGINE_VERSION = "1.0.0"

# =============================================================================
# FACTOR WEIGHTS
# =============================================================================

# Weights for each match factor. Absent optional factors (cv_alignment,
# ai_score) drop out and the remaining weights are renormalized.
FACTOR_WEIGHTS: Dict[str, float] = {
    "gpa_match": 0.30,            # GPA vs program selectivity
    "research_alignment": 0.25,   # Research interests vs program research areas
    "location_preference": 0.15,  # Country preference
    "financial_fit": 0.15,        # Tuition vs budget
    "cv_alignment": 0.15,         # CV experience/skills vs program focus
    "ai_score": 0.20,             # External AI assessment (optional)
}

# =============================================================================
# CATEGORY THRESHOLDS
# =============================================================================

class MatchCategory(str, Enum):
    """Admissions-risk categories, ordered by decreasing difficulty."""
    REACH = "reach"
    TARGET = "target"
    SAFETY = "safety"


class MatchCondition(str, Enum):
    """Non-fatal conditions reported alongside a match run."""
    EMPTY_CATALOG = "empty_catalog"
    INSUFFICIENT_CATALOG_COVERAGE = "insufficient_catalog_coverage"


SAFETY_MIN_SCORE = 0.70
SAFETY_MIN_ADMISSION_RATE = 0.40
REACH_MAX_SCORE = 0.50             # overall below this is a reach
REACH_MAX_ADMISSION_RATE = 0.15    # admission rate below this is a reach

# =============================================================================
# SCORING PARAMETERS
# =============================================================================

NEUTRAL_SCORE = 0.5
GPA_SCALE_MAX = 4.0
GPA_RAW_WEIGHT = 0.7               # raw GPA ratio vs selectivity-adjusted share
LOCATION_MISMATCH_SCORE = 0.3
FINANCIAL_FIT_FLOOR = 0.2
FINANCIAL_OVERRUN_LIMIT = 1.0      # decay reaches the floor at 2x the budget

# =============================================================================
# CATALOG DEFAULTS
# =============================================================================

DEFAULT_ADMISSION_RATE = 0.3
DEFAULT_CURRENCY = "USD"

# =============================================================================
# ENGINE DEFAULTS
# =============================================================================

DEFAULT_MIN_COUNT = 12
SCORE_PRECISION = 4
PARALLEL_THRESHOLD = 5000
AI_RESCORE_TOP = 10

# =============================================================================
# CONFIDENCE
# =============================================================================

BASE_CONFIDENCE = 1.0
MISSING_SIGNAL_PENALTY = 0.15
ESTIMATED_RATE_PENALTY = 0.2
MIN_CONFIDENCE = 0.3
LOW_CONFIDENCE_THRESHOLD = 0.5

# =============================================================================
# NORMALIZATION RANGES
# =============================================================================

GRE_RANGE = (130, 340)     # section (130-170) or total (260-340)
TOEFL_RANGE = (0, 120)
IELTS_RANGE = (0.0, 9.0)

# Country code to name mapping
COUNTRY_CODE_MAP: Dict[str, str] = {
    "AU": "Australia",
    "CA": "Canada",
    "CH": "Switzerland",
    "DE": "Germany",
    "GB": "United Kingdom",
    "UK": "United Kingdom",
    "IE": "Ireland",
    "US": "United States",
    "USA": "United States",
    "NZ": "New Zealand",
    "SG": "Singapore",
    "NL": "Netherlands",
    "FR": "France",
    "SE": "Sweden",
    "JP": "Japan",
}

# Degree label tokens, matched as whole words
DEGREE_LEVEL_TOKENS: Dict[str, tuple] = {
    "phd": ("phd", "ph.d", "doctorate", "doctoral", "dphil"),
    "masters": ("master", "masters", "msc", "ms", "ma", "mba", "meng", "mtech", "m.sc", "m.a", "m.eng", "mphil"),
    "bachelors": ("bachelor", "bachelors", "bsc", "ba", "bs", "beng", "btech", "b.sc", "b.a", "b.eng", "undergraduate"),
    "diploma": ("diploma", "certificate", "pgdip", "foundation"),
}
