"""
Configuration tests.
"""

import pytest
from pydantic import ValidationError

from matching.logic.config import MatchingConfig, load_config
from matching.logic.constants import FACTOR_WEIGHTS


def test_defaults():
    config = MatchingConfig()

    assert config.weights == FACTOR_WEIGHTS
    assert config.safety_min_score == 0.70
    assert config.reach_max_admission_rate == 0.15
    assert config.default_min_count == 12


def test_partial_weights_merge_with_defaults():
    config = MatchingConfig(weights={"ai_score": 0.0})

    assert config.weights["ai_score"] == 0.0
    assert config.weights["gpa_match"] == FACTOR_WEIGHTS["gpa_match"]


@pytest.mark.parametrize("weights", [
    {"prestige": 0.5},
    {"gpa_match": -0.1},
    {name: 0.0 for name in FACTOR_WEIGHTS},
])
def test_invalid_weights(weights):
    with pytest.raises(ValidationError):
        MatchingConfig(weights=weights)


def test_reach_cannot_exceed_safety():
    with pytest.raises(ValidationError):
        MatchingConfig(reach_max_score=0.8, safety_min_score=0.7)


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("MATCH_SAFETY_MIN_SCORE", "0.8")
    monkeypatch.setenv("MATCH_WEIGHTS", '{"ai_score": 0.1}')
    monkeypatch.setenv("MATCH_ENFORCE_DEGREE_LEVEL", "false")

    config = load_config()

    assert config.safety_min_score == 0.8
    assert config.weights["ai_score"] == 0.1
    assert config.enforce_degree_level is False


def test_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("MATCH_DEFAULT_MIN_COUNT", "20")
    assert load_config(default_min_count=5).default_min_count == 5


def test_bad_weights_json(monkeypatch):
    monkeypatch.setenv("MATCH_WEIGHTS", "{not json")
    with pytest.raises(ValueError):
        load_config()
