"""
Match Logic Module

Provides the deterministic scoring engine that matches applicants to
university programs.
"""

from .contracts import (
    Candidate,
    TestScores,
    Preferences,
    CvSignals,
    University,
    Program,
    CatalogEntry,
    MatchFactors,
    Match,
    MatchOutput,
)
from .catalog import UniversityCatalog
from .config import MatchingConfig, load_config
from .constants import MatchCategory, MatchCondition
from .deduplicator import dedupe_matches
from .engine import MatchEngine, generate_matches
from .exceptions import MatchingError, InvalidCandidateData, CatalogError, AIScoringError
from .normalizer import normalize_profile

__all__ = [
    # Main engine
    "MatchEngine",
    "generate_matches",
    "normalize_profile",
    "dedupe_matches",
    "UniversityCatalog",

    # Configuration
    "MatchingConfig",
    "load_config",

    # Contracts
    "Candidate",
    "TestScores",
    "Preferences",
    "CvSignals",
    "University",
    "Program",
    "CatalogEntry",
    "MatchFactors",
    "Match",
    "MatchOutput",

    # Enums
    "MatchCategory",
    "MatchCondition",

    # Errors
    "MatchingError",
    "InvalidCandidateData",
    "CatalogError",
    "AIScoringError",
]
