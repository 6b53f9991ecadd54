"""
Data Contracts for the Match Engine

Defines Pydantic models for Candidate (input), the catalog records,
and Match / MatchOutput (output).
These contracts are the API boundary for the match engine.
"""

from typing import List, Optional, Dict, Set, Tuple
from pydantic import BaseModel, Field

from .constants import (
    MatchCategory,
    MatchCondition,
    DEFAULT_CURRENCY,
    DEFAULT_MIN_COUNT,
    ENGINE_VERSION,
)


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

class TestScores(BaseModel):
    """Standardized test scores. 0 means not provided."""
    __test__ = False  # keep pytest from collecting this model

    gre: int = 0
    toefl: int = 0
    ielts: float = 0.0


class Preferences(BaseModel):
    """Applicant preferences used for location and financial fit."""
    countries: Set[str] = Field(default_factory=set)
    max_tuition: Optional[float] = None
    min_admission_rate: Optional[float] = None


class CvSignals(BaseModel):
    """
    Evidence extracted from a CV analysis.
    Only present when the analysis carried something usable.
    """
    skills: List[str] = Field(default_factory=list)
    experience: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)
    publication_count: int = 0


class Candidate(BaseModel):
    """
    Normalized applicant profile.

    Missing numeric fields are 0, never None, so scorers need no
    null-branching. Built by normalizer.normalize_profile().
    """
    candidate_ref: Optional[str] = None

    # Academic Background
    gpa: float = 0.0
    test_scores: TestScores = Field(default_factory=TestScores)
    research_interests: Set[str] = Field(default_factory=set)
    target_degree: str = ""

    # Preferences
    preferences: Preferences = Field(default_factory=Preferences)

    # CV-derived evidence
    cv_signals: Optional[CvSignals] = None


# =============================================================================
# CATALOG CONTRACTS
# =============================================================================

class University(BaseModel):
    """A university in the catalog snapshot."""
    id: str
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    website_url: Optional[str] = None
    acceptance_rate: float = Field(ge=0.0, le=1.0)
    ranking_global: Optional[int] = None
    acceptance_rate_estimated: bool = False

    class Config:
        frozen = True


class Program(BaseModel):
    """A specific degree offering at a university."""
    id: str
    university_id: str
    name: str
    duration_months: int = 0
    admission_rate: float = Field(ge=0.0, le=1.0)
    annual_tuition: Optional[float] = None
    currency: str = DEFAULT_CURRENCY
    research_areas: List[str] = Field(default_factory=list)
    degree_level: str = "unknown"
    admission_rate_estimated: bool = False

    class Config:
        frozen = True


class CatalogEntry(BaseModel):
    """One university with its programs, as fetched from the catalog source."""
    university: University
    programs: List[Program] = Field(default_factory=list)


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class MatchFactors(BaseModel):
    """
    Explainability record: one named sub-score per factor.
    cv_alignment and ai_score are None when there is no signal for them.
    """
    gpa_match: float = Field(ge=0.0, le=1.0)
    research_alignment: float = Field(ge=0.0, le=1.0)
    location_preference: float = Field(ge=0.0, le=1.0)
    financial_fit: float = Field(ge=0.0, le=1.0)
    cv_alignment: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    ai_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    class Config:
        frozen = True

    def present(self) -> Dict[str, float]:
        """Factor name -> value for every factor that carries a signal."""
        return {
            name: value
            for name, value in (
                ("gpa_match", self.gpa_match),
                ("research_alignment", self.research_alignment),
                ("location_preference", self.location_preference),
                ("financial_fit", self.financial_fit),
                ("cv_alignment", self.cv_alignment),
                ("ai_score", self.ai_score),
            )
            if value is not None
        }


class Match(BaseModel):
    """
    One scored Candidate x Program pairing.
    Never mutated after creation.
    """
    id: str
    candidate_ref: Optional[str] = None
    program: Program
    university: University

    overall_score: float = Field(ge=0.0, le=1.0)
    category: MatchCategory
    factors: MatchFactors
    reasoning: List[str] = Field(default_factory=list)

    confidence_level: float = Field(default=1.0, ge=0.0, le=1.0)
    low_confidence: bool = False

    # Ranking metadata
    rank: int = 0

    class Config:
        frozen = True


class MatchOutput(BaseModel):
    """
    Output envelope for one engine run.
    Contains the ordered, deduplicated matches with coverage signals.
    """
    # Request tracking
    request_id: Optional[str] = None
    candidate_ref: Optional[str] = None

    matches: List[Match] = Field(default_factory=list)

    # Coverage
    coverage_sufficient: bool = False
    conditions: List[MatchCondition] = Field(default_factory=list)
    min_count: int = DEFAULT_MIN_COUNT

    # Summary Statistics
    total_universities: int = 0
    total_programs_evaluated: int = 0
    total_filtered: int = 0

    # Processing metadata
    processing_time_ms: Optional[float] = None
    engine_version: str = ENGINE_VERSION

    warnings: List[str] = Field(default_factory=list)

    def by_category(self) -> Dict[MatchCategory, List[Match]]:
        from .ranker import group_by_category
        return group_by_category(self.matches)


# =============================================================================
# INTERMEDIATE DATA STRUCTURES
# =============================================================================

class ScoredProgram(BaseModel):
    """
    A (university, program) pair with computed factors.
    Used between scoring and ranking stages.
    """
    university: University
    program: Program
    factors: MatchFactors


CatalogPair = Tuple[University, Program]
