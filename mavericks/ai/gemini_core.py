"""
Gemini content provider with API key rotation
Every content kind maps to a prompt template and a JSON response schema
"""

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from mavericks.ai.prompts import PROMPTS
from mavericks.ai.schemas import SCHEMAS
from mavericks.core.config import GEMINI_KEY_COOLDOWN_SECONDS
from mavericks.core.errors import ContentGenerationError

logger = logging.getLogger(__name__)


@dataclass
class TokenUsage:
    """Track token usage per key"""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class KeyStats:
    key_name: str
    requests: int = 0
    rate_limited_until: float = 0.0
    consecutive_429s: int = 0
    tokens: TokenUsage = field(default_factory=TokenUsage)

    def is_available(self, now: float) -> bool:
        return now >= self.rate_limited_until

    def record_request(self, input_tokens: int, output_tokens: int):
        self.requests += 1
        self.consecutive_429s = 0
        self.tokens.input_tokens += input_tokens
        self.tokens.output_tokens += output_tokens

    def record_429(self, now: float):
        self.consecutive_429s += 1
        self.rate_limited_until = now + GEMINI_KEY_COOLDOWN_SECONDS

    def to_dict(self) -> dict:
        return {
            "key_name": self.key_name,
            "requests": self.requests,
            "rate_limited": self.rate_limited_until > time.time(),
            "consecutive_429s": self.consecutive_429s,
            "tokens": asdict(self.tokens),
        }


def _is_rate_limit(error: Exception) -> bool:
    if isinstance(error, google_exceptions.ResourceExhausted):
        return True
    error_str = str(error)
    return "429" in error_str or "RESOURCE_EXHAUSTED" in error_str or "quota" in error_str.lower()


def parse_json_object(raw_output: str) -> dict:
    """
    Pull the JSON object out of a model reply.
    Tolerates prose or ```json fences around it.
    """
    if not raw_output or not raw_output.strip():
        raise ContentGenerationError("Empty response from content provider")
    try:
        return json.loads(raw_output)
    except json.JSONDecodeError:
        pass
    match = re.search(r'\{.*\}', raw_output, re.DOTALL)
    if not match:
        raise ContentGenerationError("No JSON object in content provider response")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ContentGenerationError(f"Malformed JSON from content provider: {e}") from e


def build_prompt(kind: str, params: Dict[str, Any]) -> str:
    if kind not in PROMPTS:
        raise ValueError(f"Unsupported content kind: {kind}")
    try:
        return PROMPTS[kind].format(**params)
    except KeyError as e:
        raise ValueError(f"Missing prompt parameter {e} for {kind}") from e


class GeminiProvider:
    """
    Round-robins over the configured API keys.
    A key that hits a rate limit is benched for a cool-down and the next key is
    tried; each key is tried at most once per call.
    """

    def __init__(self, api_keys: List[str], model_name: str = "gemini-2.5-flash"):
        if not api_keys:
            raise ValueError("At least one Gemini API key is required")
        self.api_keys = api_keys
        self.model_name = model_name
        self.key_stats = [KeyStats(key_name=f"key_{i + 1}") for i in range(len(api_keys))]
        self.key_index = 0
        self._configure_lock = asyncio.Lock()

    def _next_keys(self) -> List[int]:
        """Key indexes to try for one call, starting at the round-robin cursor"""
        now = time.time()
        order = [(self.key_index + i) % len(self.api_keys) for i in range(len(self.api_keys))]
        self.key_index = (self.key_index + 1) % len(self.api_keys)
        return [i for i in order if self.key_stats[i].is_available(now)]

    async def _call_model(self, api_key: str, prompt: str, schema: Optional[dict]):
        # genai.configure is process-wide; the key must stay set until the reply arrives
        async with self._configure_lock:
            genai.configure(api_key=api_key)
            generation_config = genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=schema,
            )
            model = genai.GenerativeModel(self.model_name, generation_config=generation_config)
            return await model.generate_content_async(prompt)

    async def generate(self, kind: str, params: Dict[str, Any]) -> dict:
        """
        Generate structured content of `kind`.

        Raises:
            ValueError: unknown kind or missing prompt parameter
            ContentGenerationError: every key failed, or the output was not valid JSON
        """
        prompt = build_prompt(kind, params)
        schema = SCHEMAS.get(kind)

        candidates = self._next_keys()
        if not candidates:
            raise ContentGenerationError("All Gemini API keys are rate limited")

        for index in candidates:
            stats = self.key_stats[index]
            try:
                response = await self._call_model(self.api_keys[index], prompt, schema)
                text = response.text
            except Exception as e:
                if _is_rate_limit(e):
                    stats.record_429(time.time())
                    logger.warning("%s hit rate limit, trying next key", stats.key_name)
                    continue
                logger.error("Gemini %s generation failed on %s: %s", kind, stats.key_name, e)
                raise ContentGenerationError(f"Failed to generate {kind}") from e

            usage = getattr(response, "usage_metadata", None)
            input_tokens = getattr(usage, "prompt_token_count", None) or len(prompt) // 4
            output_tokens = getattr(usage, "candidates_token_count", None) or len(text or "") // 4
            stats.record_request(input_tokens, output_tokens)
            logger.info("Gemini %s via %s | tokens %d+%d", kind, stats.key_name, input_tokens, output_tokens)

            return parse_json_object(text)

        raise ContentGenerationError(f"Failed to generate {kind}: all keys rate limited")

    def usage(self) -> List[dict]:
        return [stats.to_dict() for stats in self.key_stats]
