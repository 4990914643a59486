"""
app/services/analysis_service.py

Wires the analysis orchestrator to blob storage and the configured
text-generation adapter.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from analysis.orchestrator import AnalysisOrchestrator
from app.config import LLMSettings, get_llm_settings
from app.errors import GenerationConfigError
from app.services.upload_service import get_blob_storage
from llm_synthesis.adapter import (
    BaseLLMAdapter,
    LLMAuthenticationError,
    MockLLMAdapter,
    OpenAILLMAdapter,
)

logger = logging.getLogger(__name__)


def build_llm_adapter(settings: LLMSettings) -> BaseLLMAdapter:
    """
    Instantiate the adapter selected by LLM_ADAPTER.

    LLM_ADAPTER=mock   -> MockLLMAdapter  (no API key required)
    LLM_ADAPTER=openai -> OpenAILLMAdapter (default)
    """
    if settings.adapter == "mock":
        logger.info("Using mock text-generation adapter")
        return MockLLMAdapter()

    try:
        return OpenAILLMAdapter(
            model=settings.model,
            max_tokens=settings.max_tokens,
            temperature=settings.temperature,
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout_seconds=settings.timeout_seconds,
        )
    except LLMAuthenticationError as exc:
        raise GenerationConfigError("The AI service API key is not configured.") from exc


@lru_cache(maxsize=1)
def get_analysis_orchestrator() -> AnalysisOrchestrator:
    """
    Build and cache the orchestrator with env-driven settings.
    """
    return AnalysisOrchestrator(
        storage=get_blob_storage(),
        adapter=build_llm_adapter(get_llm_settings()),
    )
