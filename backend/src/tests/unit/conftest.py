"""
Shared pytest fixtures and path setup for unit tests.
"""

import os
import sys
from pathlib import Path

# Set environment variables BEFORE any modelbridge imports so Settings never
# picks up a developer's real configuration. These are test-only defaults.
os.environ.setdefault("MODELBRIDGE_ENVIRONMENT", "development")
os.environ.setdefault("MODELBRIDGE_LOG_LEVEL", "DEBUG")
os.environ.setdefault("MODELBRIDGE_OPENAI_API_BASE", "https://llm.test/v1")
os.environ.setdefault("MODELBRIDGE_OPENAI_API_KEY", "test-api-key")

# Add backend/src to sys.path so modelbridge.* imports work when running pytest from repo root.
PROJECT_SRC = Path(__file__).resolve().parents[2]
if str(PROJECT_SRC) not in sys.path:
    sys.path.insert(0, str(PROJECT_SRC))

import pytest

from modelbridge.core.config import Settings


@pytest.fixture
def test_settings():
    """Provide a Settings object with deterministic values for tests that need custom configuration."""
    return Settings(
        _env_file=None,
        MODELBRIDGE_OPENAI_API_BASE="https://llm.test/v1",
        MODELBRIDGE_OPENAI_API_KEY="test-api-key",
        MODELBRIDGE_DEFAULT_LLM_MODEL="gpt-test",
        MODELBRIDGE_GATEWAY_DEFAULT_MODEL="cohere.command-text-v14",
        MODELBRIDGE_LLM_TEMPERATURE_DEFAULT=0.5,
    )
