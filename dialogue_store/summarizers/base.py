"""
Base Summarizer

Abstract interface for the external text-summarization collaborator, plus
the transcript rendering shared by the HTTP-backed adapters.
"""

import logging
from abc import ABC, abstractmethod

from dialogue_store.models import Message

logger = logging.getLogger(__name__)

SUMMARY_INSTRUCTION = (
    "You summarize role-play conversations between a user and a character. "
    "Write a short summary (3 sentences at most) in the language of the "
    "conversation, covering the main topics and how the mood developed."
)


def transcript_messages(messages: list[Message]) -> list[dict[str, str]]:
    """Chat-completion messages: instruction first, then one entry per dialogue message."""
    rendered = [{"role": "system", "content": SUMMARY_INSTRUCTION}]
    for message in messages:
        if not message.text.strip():
            continue
        rendered.append(
            {
                "role": "user" if message.sender == "user" else "assistant",
                "content": message.text,
            }
        )
    rendered.append({"role": "user", "content": "Summarize the conversation above."})
    return rendered


class BaseSummarizer(ABC):
    """
    Abstract summarizer.

    Attributes:
        provider_name: Identifier used in logs and errors
        temperature: Sampling temperature
        max_tokens: Maximum tokens in the summary
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        temperature: float = 0.3,
        max_tokens: int = 500,
        timeout: int = 30,
    ):
        self.provider_name = provider_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} summarizer",
            extra={"provider": provider_name, "max_tokens": max_tokens},
        )

    @abstractmethod
    async def summarize(self, messages: list[Message]) -> str:
        """
        Summarize a conversation transcript.

        Args:
            messages: Messages in dialogue order

        Returns:
            Summary text

        Raises:
            SummarizationError: On provider failure or empty output
        """
        pass  # pragma: no cover - abstract method

    async def close(self) -> None:
        return None
