"""
LLM Factory Module.

Provides factory functions for creating chat model instances per pipeline
step. All engines should use these factories instead of direct
ChatOpenAI/ChatAnthropic instantiation.

Usage:
    from brag_pipeline.common.llm_factory import create_llm

    # Extraction LLM (model/temperature from the step config)
    llm = create_llm("extract_achievements")

    # Eval run against an explicit model
    llm = create_llm("generate_document", model="gpt-4o-mini")
"""

import logging
from typing import Any, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI

from brag_pipeline.common.config import Config
from brag_pipeline.common.llm_config import get_step_config

logger = logging.getLogger(__name__)


def _provider_for_model(model: str) -> str:
    """Infer provider from the model name, defaulting to the configured one."""
    if model.lower().startswith("claude"):
        return "anthropic"
    if model.lower().startswith(("gpt-", "o1", "o3", "o4")):
        return "openai"
    return Config.LLM_PROVIDER


def create_llm(
    step_name: str,
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    **kwargs: Any,
) -> BaseChatModel:
    """
    Create a chat model for a pipeline step.

    Args:
        step_name: Step identifier from llm_config.STEP_CONFIGS
        model: Explicit model override (defaults to the step's model)
        temperature: Explicit temperature override (defaults to the step's)
        **kwargs: Additional chat model parameters

    Returns:
        ChatOpenAI or ChatAnthropic instance
    """
    step_config = get_step_config(step_name)
    effective_model = model or step_config.get_model()
    effective_temperature = temperature if temperature is not None else step_config.temperature
    provider = _provider_for_model(effective_model)

    if provider == "anthropic":
        # Import here to avoid loading Anthropic client when only OpenAI is used
        from langchain_anthropic import ChatAnthropic

        llm = ChatAnthropic(
            model=effective_model,
            temperature=effective_temperature,
            api_key=Config.ANTHROPIC_API_KEY,
            **kwargs,
        )
    else:
        llm = ChatOpenAI(
            model=effective_model,
            temperature=effective_temperature,
            api_key=Config.OPENAI_API_KEY,
            base_url=Config.get_llm_base_url(),
            **kwargs,
        )

    logger.debug(
        f"Created {provider} LLM: model={effective_model}, "
        f"temperature={effective_temperature}, step={step_name}"
    )

    return llm


def message_text(message: BaseMessage) -> str:
    """
    Flatten a chat model message (or stream chunk) to text.

    Providers return either a string or a list of content blocks
    (strings or {"type": "text", "text": ...} dicts).
    """
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type", "text") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
