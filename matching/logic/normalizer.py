"""
Profile Normalizer

Converts heterogeneous applicant data (web profile, academic profile rows,
CV analysis) into one canonical Candidate record.

This is a pure TRANSFORM layer:
- NO scoring logic
- NEVER raises: every missing or malformed field gets an explicit default
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from .contracts import Candidate, CvSignals, Preferences, TestScores
from .constants import (
    COUNTRY_CODE_MAP,
    DEGREE_LEVEL_TOKENS,
    GPA_SCALE_MAX,
    GRE_RANGE,
    TOEFL_RANGE,
    IELTS_RANGE,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_WORD = re.compile(r"[a-z.]+")


# =============================================================================
# PUBLIC API
# =============================================================================

def normalize_profile(
    raw_profile: Optional[Dict[str, Any]],
    raw_cv_analysis: Optional[Dict[str, Any]] = None,
    candidate_ref: Optional[str] = None,
) -> Candidate:
    """
    Build a complete Candidate from raw profile and CV analysis dicts.

    Accepts camelCase keys (web client) and snake_case keys (database rows).
    The CV analysis fills gaps the profile leaves (GPA, target degree,
    test scores) and contributes research areas and CV signals.

    Args:
        raw_profile: Profile dict, may be None or partial
        raw_cv_analysis: CV analysis dict, may be None
        candidate_ref: Optional caller identifier

    Returns:
        Candidate with defaults substituted for every missing field
    """
    profile = raw_profile if isinstance(raw_profile, dict) else {}
    cv = raw_cv_analysis if isinstance(raw_cv_analysis, dict) else {}
    education = _first_education(cv)

    ref = candidate_ref or _first(profile, "candidate_ref", "user_id", "student_id", "id")

    gpa_raw = _first(profile, "gpa", "current_gpa")
    if _to_float(gpa_raw) <= 0:
        gpa_raw = education.get("gpa")
    gpa = normalize_gpa(gpa_raw, _first(profile, "gpa_scale", "gpaScale") or education.get("gpa_scale"))

    target_degree = _clean_text(
        _first(profile, "targetDegree", "target_degree", "target_degree_level", "targetDegreeLevel")
    ) or _clean_text(education.get("field"))

    return Candidate(
        candidate_ref=str(ref) if ref not in (None, "") else None,
        gpa=gpa,
        test_scores=_normalize_test_scores(profile, cv),
        research_interests=_merge_interests(
            _first(profile, "researchInterests", "research_interests"),
            _first(cv, "researchAreas", "research_areas", "research_interests"),
        ),
        target_degree=target_degree,
        preferences=_normalize_preferences(profile),
        cv_signals=_extract_cv_signals(cv),
    )


def normalize_gpa(value: Any, scale: Any = None) -> float:
    """
    Map a GPA onto the 4.0 scale.

    An explicit scale wins. Without one, values in (4, 5] are read as a
    5-point scale, (5, 10] as 10-point and (10, 100] as a percentage.
    Anything unparseable, negative or beyond 100 becomes 0 (unknown).
    """
    gpa = _to_float(value)
    if gpa <= 0:
        return 0.0

    scale_value = _to_float(scale)
    if scale_value > 0:
        if gpa > scale_value:
            return 0.0
        return round(min(GPA_SCALE_MAX, gpa * GPA_SCALE_MAX / scale_value), 3)

    if gpa <= GPA_SCALE_MAX:
        return gpa
    for inferred_scale in (5.0, 10.0, 100.0):
        if gpa <= inferred_scale:
            return round(gpa * GPA_SCALE_MAX / inferred_scale, 3)
    return 0.0


def normalize_interest(value: Any) -> str:
    """Lower-case, trim and collapse whitespace of a research interest."""
    if isinstance(value, dict):
        value = value.get("name") or value.get("field") or value.get("area")
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub(" ", value).strip().lower()


def canonical_country(value: Any) -> str:
    """Convert a country code to its full name; pass names through trimmed."""
    if not isinstance(value, str):
        return ""
    stripped = value.strip()
    if not stripped:
        return ""
    return COUNTRY_CODE_MAP.get(stripped.upper(), stripped)


def country_key(value: Any) -> str:
    """Case-insensitive comparison key for a country code or name."""
    return canonical_country(value).lower()


def normalize_degree_level(raw_degree_text: Optional[str]) -> str:
    """
    Normalize inconsistent degree labels to standard categories.

    Returns one of: 'phd', 'masters', 'bachelors', 'diploma', 'unknown'.
    Tokens are matched as whole words so 'Machine Learning' is not read
    as an MA.
    """
    if not isinstance(raw_degree_text, str) or not raw_degree_text.strip():
        return "unknown"

    words = set(_WORD.findall(raw_degree_text.lower()))
    words |= {w.replace(".", "") for w in words}
    for level, tokens in DEGREE_LEVEL_TOKENS.items():
        if words & set(tokens):
            return level
    return "unknown"


def profile_completeness(candidate: Candidate) -> Tuple[float, List[str]]:
    """
    Report which scoring inputs are missing from a candidate.

    Returns:
        (fraction of inputs present, list of missing input names)
    """
    checks = {
        "gpa": candidate.gpa > 0,
        "research_interests": bool(candidate.research_interests),
        "test_scores": any((
            candidate.test_scores.gre,
            candidate.test_scores.toefl,
            candidate.test_scores.ielts,
        )),
        "target_degree": bool(candidate.target_degree),
        "preferred_countries": bool(candidate.preferences.countries),
        "max_tuition": candidate.preferences.max_tuition is not None,
        "cv_analysis": candidate.cv_signals is not None,
    }
    missing = [name for name, ok in checks.items() if not ok]
    return round(1 - len(missing) / len(checks), 3), missing


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _first(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among keys."""
    for key in keys:
        value = data.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def _to_float(value: Any) -> float:
    """Parse to float; failures, NaN and negatives become 0."""
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number or number < 0 or number == float("inf"):
        return 0.0
    return number


def _in_range(value: float, bounds: Tuple[float, float]) -> float:
    low, high = bounds
    return value if low <= value <= high else 0


def _clean_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub(" ", value).strip()


def _first_education(cv: Dict[str, Any]) -> Dict[str, Any]:
    education = cv.get("education")
    if isinstance(education, list) and education and isinstance(education[0], dict):
        return education[0]
    return {}


def _normalize_test_scores(profile: Dict[str, Any], cv: Dict[str, Any]) -> TestScores:
    nested = _first(profile, "testScores", "test_scores")
    nested = nested if isinstance(nested, dict) else {}
    cv_scores = _first(cv, "test_scores", "testScores")
    cv_scores = cv_scores if isinstance(cv_scores, dict) else {}

    def pick(*keys: str) -> float:
        for source in (nested, profile, cv_scores):
            number = _to_float(_first(source, *keys))
            if number > 0:
                return number
        return 0.0

    gre = _in_range(pick("gre", "gre_total", "gre_quantitative", "gre_score"), GRE_RANGE)
    toefl = _in_range(pick("toefl", "toefl_score"), TOEFL_RANGE)
    ielts = _in_range(pick("ielts", "ielts_score"), IELTS_RANGE)

    return TestScores(gre=int(round(gre)), toefl=int(round(toefl)), ielts=float(ielts))


def _merge_interests(*sources: Any) -> Set[str]:
    interests: Set[str] = set()
    for source in sources:
        for item in as_list(source):
            interest = normalize_interest(item)
            if interest:
                interests.add(interest)
    return interests


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part for part in value.split(",")]
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _normalize_preferences(profile: Dict[str, Any]) -> Preferences:
    prefs = profile.get("preferences")
    prefs = prefs if isinstance(prefs, dict) else {}

    countries_raw = _first(prefs, "countries", "preferred_countries") or _first(
        profile, "preferred_countries", "preferredCountries"
    )
    countries = {c for c in (canonical_country(x) for x in as_list(countries_raw)) if c}

    max_tuition = _to_float(
        _first(prefs, "maxTuition", "max_tuition") or _first(profile, "max_tuition", "maxTuition")
    )

    min_rate = _to_float(_first(prefs, "minAdmissionRate", "min_admission_rate"))
    if min_rate > 1:
        min_rate = min_rate / 100
    if min_rate > 1:
        min_rate = 0.0

    return Preferences(
        countries=countries,
        max_tuition=max_tuition if max_tuition > 0 else None,
        min_admission_rate=min_rate if min_rate > 0 else None,
    )


def _extract_cv_signals(cv: Dict[str, Any]) -> Optional[CvSignals]:
    if not cv:
        return None

    skills_raw = cv.get("skills")
    if isinstance(skills_raw, dict):
        skills_raw = skills_raw.get("technical") or []
    skills = [s for s in (_clean_text(x) for x in as_list(skills_raw)) if s]

    experience = [t for t in (_entry_text(e) for e in as_list(cv.get("experience"))) if t]
    projects = [t for t in (_entry_text(p) for p in as_list(cv.get("projects"))) if t]
    publications = cv.get("publications")
    publication_count = len(publications) if isinstance(publications, list) else 0

    if not (skills or experience or projects or publication_count):
        return None

    return CvSignals(
        skills=skills,
        experience=experience,
        projects=projects,
        publication_count=publication_count,
    )


def _entry_text(entry: Any) -> str:
    """Flatten an experience/project entry into searchable text."""
    if isinstance(entry, str):
        return _clean_text(entry)
    if not isinstance(entry, dict):
        return ""
    parts: List[str] = []
    for key in ("title", "position", "name", "description"):
        text = _clean_text(entry.get(key))
        if text:
            parts.append(text)
    parts.extend(_clean_text(t) for t in _iter_strings(entry.get("technologies")))
    return " ".join(p for p in parts if p)


def _iter_strings(value: Any) -> Iterable[str]:
    for item in as_list(value):
        if isinstance(item, str):
            yield item
