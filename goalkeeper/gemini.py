"""
Google Gemini generator for end-of-day scoring.

- Reads the API key from the environment variable named in config.yaml
- JSON-only output constrained by RESPONSE_SCHEMA
- Request timeout; a timeout is just another failure for the scoring adapter
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import google.generativeai as genai

from goalkeeper.models import ScoringConfig
from goalkeeper.scoring import ScoringRequest, ScoringService

logger = logging.getLogger("goalkeeper.gemini")

SYSTEM_PROMPT = """You are a strict but fair daily performance coach. Output VALID JSON ONLY.

Rules:
- No markdown
- No text outside the JSON object
- score is an integer from 0 to 100
- message is at most 50 words"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "NUMBER"},
        "message": {"type": "STRING"},
        "tone": {"type": "STRING", "enum": ["danger", "warning", "success"]},
    },
    "required": ["score", "message", "tone"],
}


class GeminiGenerator:
    """Callable generator: ScoringRequest -> raw JSON text from Gemini."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout: float = 30.0,
        client: Optional[Any] = None,
    ) -> None:
        self.model_name = model
        self.timeout = timeout
        if client is None:
            genai.configure(api_key=api_key)
            client = genai.GenerativeModel(model, system_instruction=SYSTEM_PROMPT)
        self.client = client

    def __call__(self, request: ScoringRequest) -> str:
        logger.debug("Requesting score from %s for %d goals", self.model_name, request.total_goals)
        response = self.client.generate_content(
            request.to_prompt(),
            generation_config=genai.GenerationConfig(
                temperature=0.3,
                max_output_tokens=512,
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
            request_options={"timeout": self.timeout},
        )
        if not response or not response.text:
            raise ValueError("Empty response from Gemini")
        return response.text


def build_scoring_service(config: ScoringConfig | None = None) -> ScoringService:
    """Build the scoring service for the configured provider.

    Falls back to a generator-less (offline) service when the provider is
    'offline' or no API key is available.
    """
    if config is None:
        config = ScoringConfig()

    if config.provider == "offline":
        logger.info("Scoring provider is offline; using local fallback only")
        return ScoringService(None)

    if config.provider != "gemini":
        logger.warning("Unknown scoring provider %r; using local fallback only", config.provider)
        return ScoringService(None)

    api_key = os.environ.get(config.api_key_env, "")
    if not api_key:
        logger.warning("%s not set; using local fallback only", config.api_key_env)
        return ScoringService(None)

    try:
        generator = GeminiGenerator(api_key, model=config.model, timeout=config.timeout_seconds)
    except Exception as e:
        logger.error("Gemini init failed: %s", e)
        return ScoringService(None)

    key_preview = f"{api_key[:4]}...{api_key[-4:]}" if len(api_key) > 12 else "***"
    logger.info("Gemini scorer ready: model=%s key=%s", config.model, key_preview)
    return ScoringService(generator)
