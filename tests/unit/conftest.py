"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- Environment variable isolation (prevents credential leakage)
- Pinned pipeline settings so tests don't depend on a local .env

These fixtures apply automatically to ALL tests in tests/unit/.
"""

import os
import sys
from pathlib import Path

import pytest

# Make tests/helpers importable as `helpers`
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment BEFORE any imports to prevent Config from loading real values
os.environ["OPENAI_API_KEY"] = "sk-test-mock-key"
os.environ["LLM_PROVIDER"] = "openai"

from brag_pipeline.common.config import Config  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    This prevents:
    - Real API keys being used if tests accidentally call LLMs
    - Per-step LLM_* overrides from a developer shell leaking into tests
    """
    for key in list(os.environ):
        if key.startswith(("LLM_MODEL_", "LLM_TIMEOUT_", "LLM_TEMPERATURE_", "LLM_RETRIES_")):
            monkeypatch.delenv(key, raising=False)

    # Use mock API keys to prevent accidental real API calls
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-mock-key")
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "sk-ant-test-mock-key")
    monkeypatch.setattr(Config, "OPENAI_BASE_URL", "")
    monkeypatch.setattr(Config, "LLM_PROVIDER", "openai")

    # Pin the budgets the tests are written against
    monkeypatch.setattr(Config, "CHAT_HISTORY_MAX_TURNS", 20)
    monkeypatch.setattr(Config, "CHAT_HISTORY_MAX_CHARS", 12000)
    monkeypatch.setattr(Config, "COMMIT_BATCH_SIZE", 10)
    monkeypatch.setattr(Config, "MAX_COMMITS_PER_REQUEST", 100)
    monkeypatch.setattr(Config, "DEFAULT_IMPACT", 5)
    monkeypatch.setattr(Config, "EVAL_TRIAL_COUNT", 3)
    monkeypatch.setattr(Config, "EVAL_MAX_CONCURRENCY", 3)
