"""
Unit tests for SDK layer.

Tests the AI assistant client, its retry behaviour and fallbacks.
"""

import json
from datetime import datetime
from unittest.mock import Mock, patch

import httpx
import pytest
from openai import APIConnectionError, RateLimitError

from energyiq.config.loader import AssistantConfig
from energyiq.core.calculator import calculate_all_devices
from energyiq.core.devices import DeviceType
from energyiq.sdk.assistant_client import (
    EMPTY_ANSWER,
    NOT_CONFIGURED_ANSWER,
    RATE_LIMITED_ANSWER,
    UNREACHABLE_ANSWER,
    EnergyAssistant,
    parse_tips_response,
)
from energyiq.storage.models import Device

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _rate_limit_error() -> RateLimitError:
    return RateLimitError("Rate limit exceeded", response=httpx.Response(429, request=_REQUEST), body=None)


def _completion(content):
    response = Mock()
    response.choices = [Mock(message=Mock(content=content))]
    return response


def _result():
    device = Device(id="d1", type=DeviceType.AC, quantity=2, wattage=1500, hours_per_day=2.0)
    return calculate_all_devices([device], 8.0, "₹", "India")


TIPS_JSON = json.dumps({
    "tips": [
        {"icon": "❄️", "title": "Raise AC set point", "description": "Set it to 24°C.", "savings": "₹200/mo"},
        {"title": "Use a timer", "description": "Let the AC switch off at night."},
    ],
    "estimated_savings": "₹300/mo",
})


class TestEnergyAssistantInit:
    """Test assistant construction."""

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_init_with_key(self, mock_openai_class):
        """An API key creates a client with the configured endpoint."""
        assistant = EnergyAssistant(model="gpt-4o-mini", api_key="sk-test", base_url="http://localhost:8080/v1")

        assert assistant.configured
        mock_openai_class.assert_called_once_with(api_key="sk-test", base_url="http://localhost:8080/v1")

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_init_without_key(self, mock_openai_class):
        """Without a key no client is created."""
        assistant = EnergyAssistant(model="gpt-4o-mini")

        assert not assistant.configured
        mock_openai_class.assert_not_called()

    def test_init_missing_model(self):
        """Test initialization fails with missing model."""
        with pytest.raises(ValueError, match="model is required"):
            EnergyAssistant(model="")

        with pytest.raises(ValueError, match="model is required"):
            EnergyAssistant(model=None)

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_from_config(self, mock_openai_class, monkeypatch):
        """Settings and the API key come from AssistantConfig."""
        monkeypatch.setenv("ENERGYIQ_SDK_TEST_KEY", "sk-config")
        config = AssistantConfig(model="gpt-4o", api_key_env="ENERGYIQ_SDK_TEST_KEY", temperature=0.1)

        assistant = EnergyAssistant.from_config(config)

        assert assistant.model == "gpt-4o"
        assert assistant.temperature == 0.1
        mock_openai_class.assert_called_once_with(api_key="sk-config", base_url=None)


class TestAnswerQuestion:
    """Test free-form question answering."""

    def _assistant(self, mock_openai_class, sleep=None):
        mock_client = Mock()
        mock_openai_class.return_value = mock_client
        assistant = EnergyAssistant(model="gpt-4o-mini", api_key="sk-test", sleep=sleep or Mock())
        return assistant, mock_client.chat.completions.create

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_successful_answer(self, mock_openai_class):
        """The model's answer is returned with source ai."""
        assistant, create = self._assistant(mock_openai_class)
        create.return_value = _completion("  A 1.5 ton AC uses about 1.5 kWh per hour.  ")

        reply = assistant.answer_question("How much does an AC use?")

        assert reply.source == "ai"
        assert reply.text == "A 1.5 ton AC uses about 1.5 kWh per hour."
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"][0]["role"] == "system"
        assert kwargs["messages"][1] == {"role": "user", "content": "How much does an AC use?"}

    def test_not_configured(self):
        """Without a key the fixed not-configured message is returned."""
        reply = EnergyAssistant(model="gpt-4o-mini").answer_question("Hi?")

        assert reply.source == "not_configured"
        assert reply.text == NOT_CONFIGURED_ANSWER

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_rate_limit_retried_once(self, mock_openai_class):
        """A rate-limited call is retried once after the delay."""
        sleep = Mock()
        assistant, create = self._assistant(mock_openai_class, sleep)
        create.side_effect = [_rate_limit_error(), _completion("Answer after retry")]

        reply = assistant.answer_question("Hi?")

        assert reply.source == "ai"
        assert reply.text == "Answer after retry"
        assert create.call_count == 2
        sleep.assert_called_once_with(2.0)

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_rate_limit_twice_falls_back(self, mock_openai_class):
        """A second rate limit gives the busy message."""
        sleep = Mock()
        assistant, create = self._assistant(mock_openai_class, sleep)
        create.side_effect = [_rate_limit_error(), _rate_limit_error()]

        reply = assistant.answer_question("Hi?")

        assert reply.source == "rate_limited"
        assert reply.text == RATE_LIMITED_ANSWER
        assert create.call_count == 2
        sleep.assert_called_once()

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_connection_error_not_retried(self, mock_openai_class):
        """Other API errors fall back immediately."""
        sleep = Mock()
        assistant, create = self._assistant(mock_openai_class, sleep)
        create.side_effect = APIConnectionError(request=_REQUEST)

        reply = assistant.answer_question("Hi?")

        assert reply.source == "error"
        assert reply.text == UNREACHABLE_ANSWER
        assert create.call_count == 1
        sleep.assert_not_called()

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_empty_answer(self, mock_openai_class):
        """An empty completion asks the user to rephrase."""
        assistant, create = self._assistant(mock_openai_class)
        create.return_value = _completion(None)

        reply = assistant.answer_question("Hi?")

        assert reply.source == "empty"
        assert reply.text == EMPTY_ANSWER


class TestGenerateTips:
    """Test personalised tips generation."""

    def _assistant(self, mock_openai_class):
        mock_client = Mock()
        mock_openai_class.return_value = mock_client
        assistant = EnergyAssistant(model="gpt-4o-mini", api_key="sk-test", sleep=Mock())
        return assistant, mock_client.chat.completions.create

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_ai_tips(self, mock_openai_class):
        """Valid JSON becomes an ai tips report."""
        assistant, create = self._assistant(mock_openai_class)
        create.return_value = _completion(TIPS_JSON)

        report = assistant.generate_tips(_result())

        assert report.source == "ai"
        assert report.estimated_savings == "₹300/mo"
        assert report.tips[0].title == "Raise AC set point"
        assert report.tips[1].icon == "💡"
        assert report.tips[1].savings is None

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_code_fences_stripped(self, mock_openai_class):
        """JSON wrapped in markdown fences is still parsed."""
        assistant, create = self._assistant(mock_openai_class)
        create.return_value = _completion(f"```json\n{TIPS_JSON}\n```")

        assert assistant.generate_tips(_result()).source == "ai"

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_unparseable_json_falls_back(self, mock_openai_class):
        """Text that isn't JSON gives the rule-based tips."""
        assistant, create = self._assistant(mock_openai_class)
        create.return_value = _completion("Here are some tips: turn things off.")

        report = assistant.generate_tips(_result())

        assert report.source == "fallback"
        assert report.tips[0].title == "Optimize AC Usage"

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_api_error_falls_back(self, mock_openai_class):
        """Backend failures give the rule-based tips."""
        assistant, create = self._assistant(mock_openai_class)
        create.side_effect = [_rate_limit_error(), _rate_limit_error()]

        assert assistant.generate_tips(_result()).source == "fallback"

    def test_not_configured_falls_back(self):
        """Without a key the rule-based tips are used."""
        report = EnergyAssistant(model="gpt-4o-mini").generate_tips(_result())

        assert report.source == "fallback"


class TestParseTipsResponse:
    """Test tips payload parsing."""

    def test_missing_tips_rejected(self):
        """A payload without tips is an error."""
        with pytest.raises(ValueError, match="no tips"):
            parse_tips_response('{"estimated_savings": "₹10/mo"}', _result())

    def test_tips_without_objects_rejected(self):
        """A tips list with no tip objects is an error."""
        with pytest.raises(ValueError, match="no usable tips"):
            parse_tips_response('{"tips": ["use LEDs", 3]}', _result())

    @patch('energyiq.sdk.assistant_client.OpenAI')
    def test_tips_without_objects_fall_back(self, mock_openai_class):
        """Unusable tip entries give the rule-based tips."""
        mock_client = Mock()
        mock_openai_class.return_value = mock_client
        mock_client.chat.completions.create.return_value = _completion('{"tips": ["use LEDs", 3]}')
        assistant = EnergyAssistant(model="gpt-4o-mini", api_key="sk-test", sleep=Mock())

        report = assistant.generate_tips(_result())

        assert report.source == "fallback"
        assert report.tips

    def test_default_estimated_savings(self):
        """Missing totals default to 18% of the monthly cost."""
        report = parse_tips_response('{"tips": [{"title": "Tip"}]}', _result())

        assert report.estimated_savings == "₹259/mo"
        assert isinstance(report.generated_at, datetime)
