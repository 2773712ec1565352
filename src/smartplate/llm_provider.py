"""
Text completion providers for recipe suggestions.

The suggestion adapter only needs "prompt in, text out", so providers expose
a single complete() call:
- AnthropicProvider: live Claude messages API
- NullLLMProvider: offline stand-in; suggest_by_style() sees is_null and
  synthesizes recipes instead of calling it
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 4000


@dataclass
class Completion:
    """Text reply from a provider."""

    text: str
    model: str
    stop_reason: Optional[str] = None


class LLMProvider(ABC):
    """Something that turns a prompt into text."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> Completion:
        """Send one user prompt and return the joined text of the reply."""

    @property
    @abstractmethod
    def is_null(self) -> bool:
        """True if this provider never reaches a real model."""


class AnthropicProvider(LLMProvider):
    """Claude via the anthropic SDK."""

    def __init__(self, api_key: str):
        from anthropic import Anthropic

        if not api_key:
            raise ValueError("An Anthropic API key is required")
        self.client = Anthropic(api_key=api_key)

    def complete(self, prompt, system=None, model=DEFAULT_MODEL, max_tokens=DEFAULT_MAX_TOKENS):
        params = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            params["system"] = system

        response = self.client.messages.create(**params)
        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(f"[LLM] {model} replied with {len(text)} chars ({response.stop_reason})")
        return Completion(text=text, model=model, stop_reason=response.stop_reason)

    @property
    def is_null(self) -> bool:
        return False


class NullLLMProvider(LLMProvider):
    """
    Offline provider.

    Keeps the prompts it was given and answers with an empty recipe list.
    """

    def __init__(self):
        self.prompts: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def complete(self, prompt, system=None, model=DEFAULT_MODEL, max_tokens=DEFAULT_MAX_TOKENS):
        self.prompts.append(prompt)
        return Completion(text='{"recipes": []}', model="null-llm", stop_reason="end_turn")

    @property
    def is_null(self) -> bool:
        return True


def get_llm_provider(api_key: Optional[str] = None, use_null: bool = False) -> LLMProvider:
    """
    Pick a provider.

    Args:
        api_key: Anthropic key; falls back to ANTHROPIC_API_KEY
        use_null: Force the offline provider

    Returns:
        NullLLMProvider when forced (or USE_NULL_LLM=true) or no key is set,
        otherwise AnthropicProvider
    """
    if use_null or os.environ.get("USE_NULL_LLM", "").lower() == "true":
        logger.info("[LLM] Offline mode, suggestions will be synthesized locally")
        return NullLLMProvider()

    api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        logger.warning("[LLM] No ANTHROPIC_API_KEY found, falling back to offline suggestions")
        return NullLLMProvider()

    return AnthropicProvider(api_key)
