"""
AI collaborator tests.

No network: the OpenAI client is replaced by a fake that replays responses.
"""

import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from matching.ai.explainer import AIExplainer
from matching.ai.prompt_builder import build_explanation_prompt, build_scoring_prompt, summarize_candidate
from matching.ai.scorer import AIMatchScorer, parse_score
from matching.logic.exceptions import AIScoringError
from matching.logic.engine import generate_matches

from conftest import make_candidate, make_program, make_university


class FakeCompletions:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=response))])


class FakeClient:
    def __init__(self, responses):
        self.completions = FakeCompletions(responses)
        self.chat = SimpleNamespace(completions=self.completions)


def _timeout_error():
    return openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


def _scorer(responses, **kwargs):
    return AIMatchScorer(client=FakeClient(responses), backoff_multiplier=0, **kwargs)


# =============================================================================
# SCORE PARSING
# =============================================================================

@pytest.mark.parametrize("content, expected", [
    ('{"score": 0.72}', 0.72),
    ('{"score": 85}', 0.85),
    ('{"score": "0.4", "rationale": "ok"}', 0.4),
])
def test_parse_score(content, expected):
    assert parse_score(content) == pytest.approx(expected)


@pytest.mark.parametrize("content", [None, "", "not json", '{"rating": 1}', '{"score": 150}', '{"score": -1}'])
def test_parse_score_rejects_unusable_responses(content):
    with pytest.raises(AIScoringError):
        parse_score(content)


# =============================================================================
# SCORER
# =============================================================================

def test_fetch_score_sends_timeout_and_json_mode():
    scorer = _scorer(['{"score": 0.6}'], timeout=5.0)
    university = make_university()

    score = scorer.fetch_ai_match_score(make_candidate(), university, make_program(university=university))

    call = scorer.client.completions.calls[0]
    assert score == 0.6
    assert call["timeout"] == 5.0
    assert call["response_format"] == {"type": "json_object"}


def test_transient_errors_are_retried():
    scorer = _scorer([_timeout_error(), _timeout_error(), '{"score": 0.8}'])
    university = make_university()

    score = scorer.fetch_ai_match_score(make_candidate(), university, make_program(university=university))

    assert score == 0.8
    assert len(scorer.client.completions.calls) == 3


def test_retries_stop_after_max_attempts():
    scorer = _scorer([_timeout_error()] * 3 + ['{"score": 0.8}'])
    university = make_university()

    with pytest.raises(openai.APITimeoutError):
        scorer.fetch_ai_match_score(make_candidate(), university, make_program(university=university))
    assert len(scorer.client.completions.calls) == 3


def test_unparseable_response_is_not_retried():
    scorer = _scorer(["garbage", '{"score": 0.8}'])
    university = make_university()

    with pytest.raises(AIScoringError):
        scorer.fetch_ai_match_score(make_candidate(), university, make_program(university=university))
    assert len(scorer.client.completions.calls) == 1


def test_score_many_omits_failures():
    university = make_university()
    pairs = [
        (university, make_program("p-1", university)),
        (university, make_program("p-2", university)),
        (university, make_program("p-3", university)),
    ]
    scorer = _scorer(['{"score": 0.9}', "garbage"] + [_timeout_error()] * 3, max_attempts=3)

    scores = scorer.score_many(make_candidate(), pairs)

    assert scores == {"p-1": 0.9}


def test_scorer_without_client_is_unavailable(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    scorer = AIMatchScorer()
    university = make_university()

    assert scorer.available is False
    assert scorer.score_many(make_candidate(), [(university, make_program())]) == {}
    with pytest.raises(AIScoringError):
        scorer.fetch_ai_match_score(make_candidate(), university, make_program())


# =============================================================================
# PROMPTS & EXPLAINER
# =============================================================================

def test_prompts_carry_no_identifiers(cv_candidate):
    university = make_university("Alpha University")
    prompt = build_scoring_prompt(cv_candidate, university, make_program(university=university))

    assert "Alpha University" in prompt
    assert "cand-1" not in prompt
    assert summarize_candidate(cv_candidate)["skills"] == ["Python", "Machine Learning", "Statistics"]


def test_explainer_cache_is_shared_across_request_ids(candidate, example_catalog):
    output = generate_matches(candidate, example_catalog, min_count=1)
    payload = {"summary_explanation": "Solid list.", "match_explanations": [], "general_guidance": []}
    explainer = AIExplainer(client=FakeClient([json.dumps(payload)]))

    first = explainer.get_explanation("req-1", candidate, output)
    second = explainer.get_explanation("req-2", candidate, output)

    assert first == payload
    assert second == payload
    assert len(explainer.client.completions.calls) == 1
    assert "prog-a" in build_explanation_prompt(candidate, output)


def test_explainer_cache_is_bounded(candidate, example_catalog):
    output = generate_matches(candidate, example_catalog, min_count=1)
    responses = [json.dumps({"summary_explanation": str(i)}) for i in range(5)]
    explainer = AIExplainer(client=FakeClient(responses), cache_size=2)

    for gpa in (3.0, 3.2, 3.4):
        explainer.get_explanation("req", make_candidate(gpa=gpa), output)
    assert len(explainer.cache) == 2

    # Oldest entry was evicted and is fetched again
    explainer.get_explanation("req", make_candidate(gpa=3.0), output)
    assert len(explainer.client.completions.calls) == 4
    assert len(explainer.cache) == 2


def test_explainer_returns_none_on_failure(candidate, example_catalog):
    output = generate_matches(candidate, example_catalog, min_count=1)
    explainer = AIExplainer(client=FakeClient([_timeout_error()]))

    assert explainer.get_explanation("req-2", candidate, output) is None


def test_explainer_without_client(monkeypatch, candidate, example_catalog):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    output = generate_matches(candidate, example_catalog, min_count=1)

    assert AIExplainer().get_explanation("req-3", candidate, output) is None
