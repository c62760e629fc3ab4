"""Tests for the OpenAI-backed generation service."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest

from order_extractor.exceptions import GenerationError
from order_extractor.processing.generative_adapter import GenerativeExtractionAdapter
from order_extractor.processing.learning_store import LearningStore
from order_extractor.services.generation_service import (
    OpenAIGenerationService,
    create_generation_service,
)


class TestOpenAIGenerationService:
    """Test suite for OpenAIGenerationService with the chain mocked."""

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError):
            OpenAIGenerationService()

    def test_generate_passes_prompt_as_variable(self):
        service = OpenAIGenerationService(api_key="test-key")
        service.chain = MagicMock()
        service.chain.invoke.return_value = '{"orderNumber": "PO-1"}'

        response = service.generate('Reply with {"orderNumber": ...}')

        assert response == '{"orderNumber": "PO-1"}'
        service.chain.invoke.assert_called_once_with({"prompt": 'Reply with {"orderNumber": ...}'})

    def test_client_errors_become_generation_errors(self):
        service = OpenAIGenerationService(api_key="test-key")
        service.chain = MagicMock()
        service.chain.invoke.side_effect = TimeoutError("read timeout")

        with pytest.raises(GenerationError):
            service.generate("prompt")

    def test_client_settings(self):
        with patch("order_extractor.services.generation_service.ChatOpenAI") as chat, \
                patch("order_extractor.services.generation_service.ChatPromptTemplate"):
            OpenAIGenerationService(api_key="test-key")

        kwargs = chat.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_retries"] == 0
        assert kwargs["timeout"] == 30.0
        assert kwargs["model_kwargs"] == {"response_format": {"type": "json_object"}}


def test_create_generation_service_without_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert create_generation_service() is None


@pytest.mark.skipif(not os.getenv("OPENAI_API_KEY"), reason="OpenAI API key not set")
def test_live_extraction():
    """Test a real model call returns a parseable record."""
    adapter = GenerativeExtractionAdapter(LearningStore(), generator=create_generation_service())

    outcome = adapter.generate("注文書\n注文番号: PO-2024-001\n品番: XYZ-123\n数量: 10個")

    assert outcome.status.value == "success"
    assert outcome.record.order_number
    assert json.loads(json.dumps(outcome.record.to_dict()))["extractionMethod"] == "AI"
