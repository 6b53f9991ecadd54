"""
Match Engine Configuration

Weights and thresholds are a tunable policy, not fixed law. MatchingConfig
carries the defaults from constants.py; load_config() applies MATCH_*
environment overrides (read through .env when present).
"""

import json
import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from .constants import (
    FACTOR_WEIGHTS,
    SAFETY_MIN_SCORE,
    SAFETY_MIN_ADMISSION_RATE,
    REACH_MAX_SCORE,
    REACH_MAX_ADMISSION_RATE,
    NEUTRAL_SCORE,
    GPA_RAW_WEIGHT,
    LOCATION_MISMATCH_SCORE,
    FINANCIAL_FIT_FLOOR,
    FINANCIAL_OVERRUN_LIMIT,
    DEFAULT_ADMISSION_RATE,
    DEFAULT_MIN_COUNT,
    PARALLEL_THRESHOLD,
    AI_RESCORE_TOP,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "MATCH_"


class MatchingConfig(BaseModel):
    """Every tunable knob of the match engine."""

    weights: Dict[str, float] = Field(default_factory=lambda: dict(FACTOR_WEIGHTS))

    # Category thresholds
    safety_min_score: float = Field(default=SAFETY_MIN_SCORE, ge=0.0, le=1.0)
    safety_min_admission_rate: float = Field(default=SAFETY_MIN_ADMISSION_RATE, ge=0.0, le=1.0)
    reach_max_score: float = Field(default=REACH_MAX_SCORE, ge=0.0, le=1.0)
    reach_max_admission_rate: float = Field(default=REACH_MAX_ADMISSION_RATE, ge=0.0, le=1.0)

    # Scoring parameters
    neutral_score: float = Field(default=NEUTRAL_SCORE, ge=0.0, le=1.0)
    gpa_raw_weight: float = Field(default=GPA_RAW_WEIGHT, ge=0.0, le=1.0)
    location_mismatch_score: float = Field(default=LOCATION_MISMATCH_SCORE, ge=0.0, le=1.0)
    financial_fit_floor: float = Field(default=FINANCIAL_FIT_FLOOR, ge=0.0, le=1.0)
    financial_overrun_limit: float = Field(default=FINANCIAL_OVERRUN_LIMIT, gt=0.0)

    # Catalog defaults
    default_admission_rate: float = Field(default=DEFAULT_ADMISSION_RATE, ge=0.0, le=1.0)

    # Engine behaviour
    default_min_count: int = Field(default=DEFAULT_MIN_COUNT, ge=0)
    max_results: Optional[int] = Field(default=None, ge=1)
    enforce_degree_level: bool = True
    parallel_workers: int = Field(default=1, ge=1)
    parallel_threshold: int = Field(default=PARALLEL_THRESHOLD, ge=1)
    ai_rescore_top: int = Field(default=AI_RESCORE_TOP, ge=0)

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, value: Dict[str, float]) -> Dict[str, float]:
        unknown = set(value) - set(FACTOR_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown factor weights: {sorted(unknown)}")
        if any(w < 0 for w in value.values()):
            raise ValueError("Factor weights must be non-negative")
        # Unspecified factors keep their default weight
        merged = dict(FACTOR_WEIGHTS)
        merged.update(value)
        if sum(merged.values()) <= 0:
            raise ValueError("Factor weights must have a positive sum")
        return merged

    @model_validator(mode="after")
    def _check_thresholds(self) -> "MatchingConfig":
        if self.reach_max_score > self.safety_min_score:
            raise ValueError("reach_max_score cannot exceed safety_min_score")
        return self


def load_config(env_file: Optional[str] = None, **overrides) -> MatchingConfig:
    """
    Build a MatchingConfig from MATCH_* environment variables.

    MATCH_WEIGHTS is parsed as JSON; every other field is read by name,
    e.g. MATCH_SAFETY_MIN_SCORE=0.75. Keyword overrides win over the environment.
    """
    load_dotenv(env_file)

    values: Dict[str, object] = {}
    for name in MatchingConfig.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is None or raw == "":
            continue
        if name == "weights":
            try:
                values[name] = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValueError(f"{ENV_PREFIX}WEIGHTS is not valid JSON: {e}") from e
        else:
            values[name] = raw

    values.update(overrides)
    if values:
        logger.info(f"⚙️ Match config overrides: {sorted(values)}")
    return MatchingConfig(**values)
