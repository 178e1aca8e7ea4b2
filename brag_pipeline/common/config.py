"""
Configuration loader for the achievement pipeline.

Loads all settings from environment variables (.env file).
Validates required settings and provides type-safe access.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


class Config:
    """
    Centralized configuration for all pipeline components.

    All values loaded from environment variables - NO SECRETS IN CODE.
    """

    # ===== LLM APIs =====
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "")
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")

    # Provider used for every step unless a step overrides its model
    # Supported: "openai", "anthropic"
    LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "openai").lower()

    # ===== LLM Model Configuration =====
    EXTRACTION_MODEL: str = os.getenv("EXTRACTION_MODEL", "gpt-4o")
    DOCUMENT_MODEL: str = os.getenv("DOCUMENT_MODEL", "gpt-4o")
    JUDGE_MODEL: str = os.getenv("JUDGE_MODEL", "gpt-4o-mini")

    # Temperature settings
    EXTRACTION_TEMPERATURE: float = _env_float("EXTRACTION_TEMPERATURE", 0.0)  # Deterministic extraction
    DOCUMENT_TEMPERATURE: float = _env_float("DOCUMENT_TEMPERATURE", 0.5)
    JUDGE_TEMPERATURE: float = 0.0

    # Default deadline for a single model invocation (seconds)
    LLM_TIMEOUT_SECONDS: int = _env_int("LLM_TIMEOUT_SECONDS", 60)

    # ===== Context Windows =====
    # Chat history kept in extraction prompts (oldest turns dropped first)
    CHAT_HISTORY_MAX_TURNS: int = _env_int("CHAT_HISTORY_MAX_TURNS", 20)
    CHAT_HISTORY_MAX_CHARS: int = _env_int("CHAT_HISTORY_MAX_CHARS", 12000)

    # Commits rendered into a single extraction prompt
    COMMIT_BATCH_SIZE: int = _env_int("COMMIT_BATCH_SIZE", 10)
    # Hard cap on commits accepted for one extraction request
    MAX_COMMITS_PER_REQUEST: int = _env_int("MAX_COMMITS_PER_REQUEST", 100)

    # ===== Extraction =====
    # Impact assigned when the model does not judge one (tagged impact_source="default")
    DEFAULT_IMPACT: int = _env_int("DEFAULT_IMPACT", 5)

    # ===== Evaluation Harness =====
    EVAL_TRIAL_COUNT: int = _env_int("EVAL_TRIAL_COUNT", 3)
    EVAL_MAX_CONCURRENCY: int = _env_int("EVAL_MAX_CONCURRENCY", 3)
    EVAL_REPORTS_DIR: str = os.getenv("EVAL_REPORTS_DIR", "reports/evals")

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required configuration is present.
        Raises ValueError if critical settings are missing.
        """
        if cls.LLM_PROVIDER not in ("openai", "anthropic"):
            raise ValueError(
                f"Unsupported LLM_PROVIDER '{cls.LLM_PROVIDER}'. "
                f"Expected 'openai' or 'anthropic'."
            )

        if not cls.get_llm_api_key():
            raise ValueError(
                f"Missing API key for provider '{cls.LLM_PROVIDER}'. "
                f"Please check your .env file."
            )

        if cls.COMMIT_BATCH_SIZE < 1:
            raise ValueError("COMMIT_BATCH_SIZE must be at least 1")

        if cls.COMMIT_BATCH_SIZE > cls.MAX_COMMITS_PER_REQUEST:
            raise ValueError("COMMIT_BATCH_SIZE cannot exceed MAX_COMMITS_PER_REQUEST")

        if not 1 <= cls.DEFAULT_IMPACT <= 10:
            raise ValueError("DEFAULT_IMPACT must be between 1 and 10")

    @classmethod
    def get_llm_api_key(cls) -> str:
        """Get the API key for the configured provider."""
        if cls.LLM_PROVIDER == "anthropic":
            return cls.ANTHROPIC_API_KEY
        return cls.OPENAI_API_KEY

    @classmethod
    def get_llm_base_url(cls) -> Optional[str]:
        """Get the OpenAI-compatible base URL override, if any."""
        return cls.OPENAI_BASE_URL or None
