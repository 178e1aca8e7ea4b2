"""
Per-Step LLM Configuration System.

Each pipeline step (extraction, document writing, eval judging) resolves its
model, temperature, timeout and schema-retry budget here, with environment
variable overrides for experimentation.

Usage:
    from brag_pipeline.common.llm_config import get_step_config

    config = get_step_config("extract_achievements")
    print(config.get_model())        # "gpt-4o"
    print(config.timeout_seconds)    # 60

    # Environment variable overrides:
    # LLM_MODEL_extract_achievements=gpt-4o-mini   -> Explicit model override
    # LLM_TIMEOUT_generate_document=180            -> Override timeout for a step
    # LLM_TEMPERATURE_generate_document=0.2        -> Override temperature
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Optional, Dict

from brag_pipeline.common.config import Config

logger = logging.getLogger(__name__)


# Model "role" of a step decides which Config model it defaults to
_ROLE_TO_MODEL_SETTING = {
    "extraction": "EXTRACTION_MODEL",
    "document": "DOCUMENT_MODEL",
    "judge": "JUDGE_MODEL",
}


@dataclass
class StepConfig:
    """
    Configuration for a single LLM invocation step.

    Attributes:
        role: Which configured model family the step uses ("extraction", "document", "judge")
        model: Explicit model override (None uses the role default from Config)
        temperature: Sampling temperature
        timeout_seconds: Deadline for one model invocation
        max_schema_retries: Corrective retries after a schema violation
    """

    role: str = "extraction"
    model: Optional[str] = None
    temperature: float = 0.0
    timeout_seconds: int = Config.LLM_TIMEOUT_SECONDS
    max_schema_retries: int = 1

    def get_model(self) -> str:
        """
        Get the model to use for this step.

        Returns the explicit model if set, otherwise the default model
        configured for the step's role.
        """
        if self.model:
            return self.model
        setting = _ROLE_TO_MODEL_SETTING.get(self.role, "EXTRACTION_MODEL")
        return getattr(Config, setting)


# ===== DEFAULT STEP CONFIGURATIONS =====

STEP_CONFIGS: Dict[str, StepConfig] = {
    # Extraction Engine
    "extract_achievements": StepConfig(
        role="extraction", temperature=Config.EXTRACTION_TEMPERATURE
    ),
    "extract_commit_achievements": StepConfig(
        role="extraction", temperature=Config.EXTRACTION_TEMPERATURE
    ),

    # Document Generation Engine
    "generate_document": StepConfig(
        role="document", temperature=Config.DOCUMENT_TEMPERATURE, timeout_seconds=180
    ),
    "standup_summary": StepConfig(role="document", temperature=0.7),

    # Evaluation Harness
    "eval_judge": StepConfig(role="judge", temperature=Config.JUDGE_TEMPERATURE),
}


def _get_env_override(step_name: str, setting: str) -> Optional[str]:
    """
    Get environment variable override for a step setting.

    Checks for environment variable in format: LLM_{SETTING}_{step_name}
    Example: LLM_MODEL_extract_achievements, LLM_TIMEOUT_generate_document
    """
    env_var = f"LLM_{setting}_{step_name}"
    value = os.getenv(env_var)
    if value:
        logger.debug(f"Using env override {env_var}={value}")
    return value


def get_step_config(step_name: str) -> StepConfig:
    """
    Get configuration for a step, with environment variable overrides.

    Unknown steps fall back to a default extraction-role config. The
    returned object is a copy, so overrides never leak into STEP_CONFIGS.

    Environment Variable Overrides:
        - LLM_MODEL_{step_name}: Override model
        - LLM_TIMEOUT_{step_name}: Override timeout in seconds
        - LLM_TEMPERATURE_{step_name}: Override temperature
        - LLM_RETRIES_{step_name}: Override schema retries

    Args:
        step_name: The pipeline step identifier (e.g., "extract_achievements")

    Returns:
        StepConfig with all settings resolved
    """
    config = replace(STEP_CONFIGS.get(step_name, StepConfig()))

    model_override = _get_env_override(step_name, "MODEL")
    if model_override:
        config.model = model_override

    timeout_override = _get_env_override(step_name, "TIMEOUT")
    if timeout_override:
        try:
            config.timeout_seconds = int(timeout_override)
        except ValueError:
            logger.warning(f"Invalid timeout override for {step_name}: {timeout_override}")

    temperature_override = _get_env_override(step_name, "TEMPERATURE")
    if temperature_override:
        try:
            config.temperature = float(temperature_override)
        except ValueError:
            logger.warning(f"Invalid temperature override for {step_name}: {temperature_override}")

    retries_override = _get_env_override(step_name, "RETRIES")
    if retries_override:
        try:
            config.max_schema_retries = int(retries_override)
        except ValueError:
            logger.warning(f"Invalid retries override for {step_name}: {retries_override}")

    return config


def get_all_step_configs() -> Dict[str, StepConfig]:
    """Get all step configurations with environment overrides applied."""
    return {name: get_step_config(name) for name in STEP_CONFIGS.keys()}
