"""Summarizer factory."""

import logging

from dialogue_store.config import SummarizerSettings
from dialogue_store.summarizers.base import BaseSummarizer
from dialogue_store.summarizers.local import LocalSummarizer
from dialogue_store.summarizers.openai import OpenAISummarizer

logger = logging.getLogger(__name__)

PROVIDERS = {
    "openai": OpenAISummarizer,
    "local": LocalSummarizer,
}


def create_summarizer(config: SummarizerSettings) -> BaseSummarizer | None:
    """
    Create the configured summarizer.

    Returns:
        Summarizer instance, or None when summaries are disabled

    Raises:
        ValueError: If the provider is unknown or required config is missing
    """
    if not config.enabled:
        logger.info("Summarizer disabled")
        return None

    if config.provider not in PROVIDERS:
        raise ValueError(
            f"Unknown summarizer provider: {config.provider}. "
            f"Available providers: {list(PROVIDERS.keys())}"
        )

    if config.provider == "openai":
        if not config.openai_api_key:
            raise ValueError("OpenAI API key not configured")
        return OpenAISummarizer(
            api_key=config.openai_api_key,
            model=config.openai_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    return LocalSummarizer(
        base_url=config.local_base_url,
        model=config.local_model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )
