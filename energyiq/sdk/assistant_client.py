"""
AI assistant client.

Answers free-form questions and generates personalised tips through an
OpenAI-compatible chat completions API, falling back to fixed messages
and rule-based tips whenever the backend cannot deliver.
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from openai import APIError, OpenAI, RateLimitError

from ..core.tips import (
    QUESTION_SYSTEM_PROMPT,
    EnergyTip,
    TipsReport,
    build_tips_prompt,
    estimated_savings_label,
    fallback_tips,
)
from ..storage.models import CalculationResult

logger = logging.getLogger(__name__)

NOT_CONFIGURED_ANSWER = (
    "I'm sorry, the AI service is not configured yet. Set an API key to enable "
    "AI-powered answers."
)
RATE_LIMITED_ANSWER = (
    "The AI service is temporarily busy due to high usage. Please wait a few "
    "seconds and try again."
)
UNREACHABLE_ANSWER = "Sorry, I couldn't reach the AI service right now. Please try again in a moment."
EMPTY_ANSWER = "I wasn't able to generate an answer. Could you rephrase your question?"

_CODE_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


@dataclass(frozen=True)
class AssistantReply:
    """Answer to a free-form question.

    source is "ai" when the model answered, otherwise one of
    "not_configured", "rate_limited", "error" or "empty".
    """
    text: str
    source: str


class EnergyAssistant:
    """Chat completions client with a fallback for every failure.

    Rate-limited calls are retried once after a fixed delay. Any other
    API failure, an empty completion or an unusable tips payload falls
    back immediately. Callers never see an exception from the backend.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 800,
        retry_delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize the assistant.

        Args:
            model: Chat model name (required)
            api_key: API key; without one every call uses the fallback
            base_url: Optional OpenAI-compatible endpoint
            temperature: Sampling temperature
            max_tokens: Maximum tokens for question answers
            retry_delay_seconds: Delay before the single rate-limit retry
            sleep: Delay function, replaceable in tests

        Raises:
            ValueError: If model is missing/empty
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry_delay_seconds = retry_delay_seconds
        self._sleep = sleep
        self.client = OpenAI(api_key=api_key, base_url=base_url) if api_key else None

    @classmethod
    def from_config(cls, config) -> "EnergyAssistant":
        """Build an assistant from an AssistantConfig."""
        return cls(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            retry_delay_seconds=config.retry_delay_seconds
        )

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _create(self, messages: List[Dict[str, str]], max_tokens: int) -> Any:
        return self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=max_tokens
        )

    def _complete(self, messages: List[Dict[str, str]], max_tokens: int) -> str:
        """Run one completion, retrying once if rate limited.

        Raises:
            RateLimitError: If the retry is rate limited too
            APIError: For any other backend failure
        """
        try:
            response = self._create(messages, max_tokens)
        except RateLimitError:
            logger.warning("AI backend rate limited, retrying after %.1fs", self.retry_delay_seconds)
            self._sleep(self.retry_delay_seconds)
            response = self._create(messages, max_tokens)

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    def answer_question(self, question: str) -> AssistantReply:
        """Answer a free-form question, or explain why it can't."""
        if not self.configured:
            return AssistantReply(NOT_CONFIGURED_ANSWER, "not_configured")

        messages = [
            {"role": "system", "content": QUESTION_SYSTEM_PROMPT},
            {"role": "user", "content": question.strip()},
        ]
        try:
            text = self._complete(messages, self.max_tokens)
        except RateLimitError:
            logger.warning("AI backend still rate limited after retry")
            return AssistantReply(RATE_LIMITED_ANSWER, "rate_limited")
        except APIError as e:
            logger.error("AI backend error: %s", e)
            return AssistantReply(UNREACHABLE_ANSWER, "error")

        if not text:
            return AssistantReply(EMPTY_ANSWER, "empty")
        return AssistantReply(text, "ai")

    def generate_tips(self, result: CalculationResult) -> TipsReport:
        """Personalised tips for a result, or rule-based tips on any failure."""
        if not result.devices:
            return fallback_tips(result)
        if not self.configured:
            logger.info("No API key configured, using fallback tips")
            return fallback_tips(result)

        messages = [{"role": "user", "content": build_tips_prompt(result)}]
        try:
            text = self._complete(messages, max(self.max_tokens, 1024))
        except APIError as e:
            logger.error("AI tips request failed: %s", e)
            return fallback_tips(result)

        if not text:
            logger.error("Empty tips response from AI backend")
            return fallback_tips(result)

        try:
            return parse_tips_response(text, result)
        except ValueError as e:
            logger.error("Failed to parse AI tips response: %s", e)
            logger.debug("Raw tips response: %s", text)
            return fallback_tips(result)


def parse_tips_response(text: str, result: CalculationResult) -> TipsReport:
    """Parse the model's JSON tips payload.

    Markdown code fences are stripped first. Missing tip fields get
    defaults; a payload without any usable tip is rejected.

    Raises:
        ValueError: If the payload is not JSON or has no tips
    """
    cleaned = _CODE_FENCE.sub("", text).strip()
    parsed = json.loads(cleaned)  # JSONDecodeError is a ValueError

    tips = parsed.get("tips") if isinstance(parsed, dict) else None
    if not isinstance(tips, list) or not tips:
        raise ValueError("response contains no tips")

    energy_tips = [
        EnergyTip(
            icon=tip.get("icon") or "💡",
            title=tip.get("title") or "Energy Tip",
            description=tip.get("description") or "",
            savings=tip.get("savings")
        )
        for tip in tips
        if isinstance(tip, dict)
    ]
    if not energy_tips:
        raise ValueError("response contains no usable tips")

    return TipsReport(
        tips=energy_tips,
        estimated_savings=parsed.get("estimated_savings") or estimated_savings_label(result),
        generated_at=datetime.now(),
        source="ai"
    )
