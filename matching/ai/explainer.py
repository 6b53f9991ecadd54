import os
import json
import hashlib
import logging
from collections import OrderedDict
from typing import Any, Dict, Optional

import openai
from dotenv import load_dotenv

from ..logic.contracts import Candidate, MatchOutput
from .prompt_builder import build_explainer_system_prompt, build_explanation_prompt

# Load env vars (if not already loaded)
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SIZE = 256


def prompt_fingerprint(prompt: str) -> str:
    """Stable cache key for an explanation prompt."""
    return hashlib.sha256(prompt.encode("utf-8")).hexdigest()


class AIExplainer:
    def __init__(self, client: Any = None, cache_size: int = DEFAULT_CACHE_SIZE):
        self.api_key = os.getenv("OPENAI_API_KEY")
        self.client = client
        if self.client is None and self.api_key:
            self.client = openai.OpenAI(api_key=self.api_key)

        self.model = "gpt-4o-mini"
        self.max_tokens = 700
        self.temperature = 0.3

        # LRU cache: prompt fingerprint -> response
        self.cache_size = cache_size
        self.cache: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()

    def get_explanation(
        self,
        request_id: str,
        candidate: Candidate,
        output: MatchOutput
    ) -> Optional[Dict[str, Any]]:
        """
        Generates an explanation for the match results.

        Identical candidate summaries and match lists share one cached
        response, whatever the request id.
        Returns None if API key is missing or error occurs.
        """
        if not self.client:
            logger.warning("OpenAI API key not found. Skipping AI explanation.")
            return None

        prompt = build_explanation_prompt(candidate, output)
        key = prompt_fingerprint(prompt)
        if key in self.cache:
            self.cache.move_to_end(key)
            logger.debug(f"Explanation cache hit for request {request_id}")
            return self.cache[key]

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_explainer_system_prompt()},
                    {"role": "user", "content": prompt}
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"}
            )

            content = response.choices[0].message.content
            if not content:
                return None

            parsed_content = json.loads(content)
            self._remember(key, parsed_content)
            return parsed_content

        except (openai.OpenAIError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error generating AI explanation for request {request_id}: {e}")
            return None

    def _remember(self, key: str, value: Dict[str, Any]) -> None:
        if self.cache_size <= 0:
            return
        self.cache[key] = value
        self.cache.move_to_end(key)
        while len(self.cache) > self.cache_size:
            self.cache.popitem(last=False)


# Singleton instance
explainer = AIExplainer()
