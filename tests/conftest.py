"""Shared fixtures for the order extractor tests."""

import pytest

from order_extractor.processing.format_registry import FormatRegistry
from order_extractor.processing.generative_adapter import GenerativeExtractionAdapter
from order_extractor.processing.learning_store import LearningStore
from order_extractor.services.kv_store import InMemoryKeyValueStore


class StubGenerator:
    """Generation capability returning a canned response."""

    def __init__(self, response="", error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def storage():
    """Create an in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def registry():
    """Create a registry with the built-in partner formats."""
    return FormatRegistry.with_builtin_formats()


@pytest.fixture
def learning_store(storage):
    """Create an empty learning store."""
    return LearningStore(storage)


@pytest.fixture
def simulated_adapter(learning_store):
    """Create an adapter with no generation capability."""
    return GenerativeExtractionAdapter(learning_store, generator=None)


@pytest.fixture
def make_generator():
    """Factory for stub generation capabilities."""
    return StubGenerator
