"""
Pytest Configuration and Shared Fixtures

Provides common fixtures for message translation unit and API tests.
"""

# Standard library
import json
import os
import sys
from unittest.mock import AsyncMock, MagicMock

# Third-party
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Keep imports of the app from reaching real providers
os.environ.setdefault("TEST_MODE", "true")

from message_translation.model_client import ModelCall  # noqa: E402
from message_translation.schemas import WordTranslation  # noqa: E402


# ============================================================================
# Sample Data
# ============================================================================

@pytest.fixture
def hello_world_words():
    """Word translations for "你好，世界！"."""
    return [
        WordTranslation(original_word="你好", translation="hello"),
        WordTranslation(original_word="世界", translation="world"),
    ]


@pytest.fixture
def model_call_factory():
    """Builds ModelCall objects the way invoke_model returns them."""

    def _build(text, usage=None):
        response = MagicMock()
        response.content = text
        response.usage_metadata = usage or {
            "input_tokens": 10,
            "output_tokens": 5,
            "total_tokens": 15,
        }
        return ModelCall(
            request={"model": "gemini-test", "messages": [], "temperature": 0.1},
            text=text,
            response=response,
        )

    return _build


@pytest.fixture
def json_model_call(model_call_factory):
    """Builds a ModelCall whose text is the JSON dump of a payload."""

    def _build(payload):
        return model_call_factory(json.dumps(payload, ensure_ascii=False))

    return _build


# ============================================================================
# Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_supabase():
    """A MagicMock standing in for the Supabase client."""
    return MagicMock()


@pytest.fixture
def async_noop():
    """An AsyncMock that returns None."""
    return AsyncMock(return_value=None)
