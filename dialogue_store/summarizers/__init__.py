"""
Summarizer Module

Adapters for the external conversation summarizer.

Usage:
    from dialogue_store.summarizers import create_summarizer
    from dialogue_store.config import get_settings

    summarizer = create_summarizer(get_settings().summarizer)
    text = await summarizer.summarize(conversation.messages)
"""

from dialogue_store.summarizers.base import BaseSummarizer
from dialogue_store.summarizers.factory import create_summarizer
from dialogue_store.summarizers.local import LocalSummarizer
from dialogue_store.summarizers.openai import OpenAISummarizer

__all__ = [
    "BaseSummarizer",
    "LocalSummarizer",
    "OpenAISummarizer",
    "create_summarizer",
]
