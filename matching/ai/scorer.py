import os
import json
import logging
from typing import Any, Dict, Iterable, Optional

import openai
from dotenv import load_dotenv
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..logic.contracts import Candidate, CatalogPair, Program, University
from ..logic.exceptions import AIScoringError
from .prompt_builder import build_scorer_system_prompt, build_scoring_prompt

# Load env vars (if not already loaded)
load_dotenv()

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a warning before each retry sleep."""
    exc = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    logger.warning(
        "Transient AI scoring error (attempt %s). Waiting %.1fs before retry. Details: %s",
        retry_state.attempt_number, wait, exc,
    )


def _llm_retry(max_attempts: int, backoff_multiplier: float):
    """Return a tenacity @retry decorator for scoring calls."""
    return retry(
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        wait=wait_exponential(multiplier=backoff_multiplier, min=0, max=10),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        reraise=True,
    )


def parse_score(content: Optional[str]) -> float:
    """
    Extract the 0-1 score from a JSON completion.

    Percentages (1 < score <= 100) are scaled down; anything else outside
    [0, 1] is rejected.
    """
    if not content:
        raise AIScoringError("Empty AI response")
    try:
        payload = json.loads(content)
        score = float(payload["score"])
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise AIScoringError(f"Unparseable AI response: {content[:200]}") from e

    if 1.0 < score <= 100.0:
        score = score / 100.0
    if not 0.0 <= score <= 1.0:
        raise AIScoringError(f"AI score out of range: {score}")
    return round(score, 4)


class AIMatchScorer:
    """
    Fetches an external AI fit score per program.

    Scores are gathered before the engine runs and passed in as a
    program id -> score mapping; the engine itself performs no I/O.
    """

    def __init__(
        self,
        client: Any = None,
        model: str = "gpt-4o-mini",
        timeout: float = 20.0,
        max_attempts: int = 3,
        backoff_multiplier: float = 1.0,
    ):
        self.api_key = os.getenv("OPENAI_API_KEY")
        self.client = client
        if self.client is None and self.api_key:
            self.client = openai.OpenAI(api_key=self.api_key)

        self.model = model
        self.timeout = timeout
        self.max_tokens = 150
        self.temperature = 0.0
        self._request_with_retry = _llm_retry(max_attempts, backoff_multiplier)(self._request)

    @property
    def available(self) -> bool:
        return self.client is not None

    def fetch_ai_match_score(
        self,
        candidate: Candidate,
        university: University,
        program: Program
    ) -> float:
        """
        Score one program for the candidate.

        Transient OpenAI errors are retried with exponential backoff; the last
        one is re-raised once attempts run out.

        Raises:
            AIScoringError: no client configured, or the response is unusable
        """
        if not self.client:
            raise AIScoringError("OpenAI API key not configured")

        content = self._request_with_retry(
            build_scorer_system_prompt(),
            build_scoring_prompt(candidate, university, program),
        )
        return parse_score(content)

    def score_many(self, candidate: Candidate, pairs: Iterable[CatalogPair]) -> Dict[str, float]:
        """
        Score several programs, omitting every one whose score could not be fetched.

        Returns:
            Dict mapping program id to AI score
        """
        scores: Dict[str, float] = {}
        if not self.client:
            logger.info("ℹ️ OpenAI API key not found. Skipping AI scoring.")
            return scores

        for university, program in pairs:
            try:
                scores[program.id] = self.fetch_ai_match_score(candidate, university, program)
            except (AIScoringError, openai.OpenAIError) as e:
                logger.warning(f"⚠️ AI score unavailable for {program.id} ({university.name}): {e}")

        logger.info(f"🤖 AI scores fetched: {len(scores)}")
        return scores

    def _request(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            timeout=self.timeout,
        )
        return response.choices[0].message.content


# Singleton instance
ai_scorer = AIMatchScorer()
