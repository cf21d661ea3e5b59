"""
LLM Client for violation enrichment.

Handles all interactions with the Anthropic Claude API including:
- Retry logic with exponential backoff
- Prompt caching of the system prompt
- JSON reply extraction (markdown code fences stripped)
"""

import json
import os
import time
from typing import Any, Dict, Optional

from anthropic import Anthropic, APIError, RateLimitError

from a11y_intelligence.config import (
    LLM_MAX_RETRIES,
    LLM_MAX_TOKENS,
    LLM_MODEL,
    LLM_TEMPERATURE,
)
from runner.logging_setup import get_logger

logger = get_logger("llm_client")


class LLMUnavailableError(RuntimeError):
    """Raised when the API could not produce a reply after all retries."""


def extract_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from a model reply.

    Args:
        text: Raw reply, possibly wrapped in ```json fences

    Returns:
        Parsed dict

    Raises:
        ValueError: If the reply is not a JSON object
    """
    # Handle potential markdown code blocks
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]

    try:
        parsed = json.loads(text.strip())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON response: {e}")

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class LLMClient:
    """
    Claude API client used by the enricher.

    Features:
    - Prompt caching for the system prompt
    - Exponential backoff retry on rate limits and API errors
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = LLM_MODEL,
        max_tokens: int = LLM_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
        max_retries: int = LLM_MAX_RETRIES,
        client: Optional[Anthropic] = None,
    ):
        """
        Initialize LLM client.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY env var)
            model: Model name
            max_tokens: Default reply budget
            temperature: Sampling temperature
            max_retries: Attempts per request
            client: Pre-built Anthropic client (tests)
        """
        if client is None:
            api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
            if not api_key:
                raise ValueError("ANTHROPIC_API_KEY not found in environment")
            client = Anthropic(api_key=api_key)

        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_retries = max(1, max_retries)

        logger.info(f"LLMClient initialized (model={self.model})")

    def complete(self, system_prompt: str, prompt: str, max_tokens: Optional[int] = None) -> str:
        """
        Send one prompt and return the reply text.

        Args:
            system_prompt: System instructions (cached)
            prompt: User message
            max_tokens: Reply budget override

        Returns:
            Reply text

        Raises:
            LLMUnavailableError: If every attempt failed
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                response = self.client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens or self.max_tokens,
                    temperature=self.temperature,
                    system=[
                        {
                            "type": "text",
                            "text": system_prompt,
                            "cache_control": {"type": "ephemeral"}  # Cache system prompt
                        }
                    ],
                    messages=[{"role": "user", "content": prompt}],
                )

                content_blocks = response.content
                if not content_blocks:
                    raise LLMUnavailableError("Empty response from Claude")
                return content_blocks[0].text

            except RateLimitError as e:
                last_error = e
                logger.warning(f"Rate limit hit (attempt {attempt + 1}/{self.max_retries})")
            except APIError as e:
                last_error = e
                logger.error(f"API error (attempt {attempt + 1}/{self.max_retries}): {e}")

            if attempt < self.max_retries - 1:
                time.sleep(2 ** attempt)  # Exponential backoff

        raise LLMUnavailableError(f"Claude API unavailable after {self.max_retries} attempts: {last_error}")

    def complete_json(self, system_prompt: str, prompt: str, max_tokens: Optional[int] = None) -> Dict[str, Any]:
        """Like complete(), but parse the reply as a JSON object (ValueError if it is not)."""
        return extract_json(self.complete(system_prompt, prompt, max_tokens))
