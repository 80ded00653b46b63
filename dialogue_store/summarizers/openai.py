"""
OpenAI Summarizer

Summarizes conversation transcripts with an OpenAI chat model through the
official async SDK.
"""

import logging

import openai
from openai import AsyncOpenAI

from dialogue_store.errors import SummarizationError
from dialogue_store.models import Message
from dialogue_store.summarizers.base import BaseSummarizer, transcript_messages

logger = logging.getLogger(__name__)


class OpenAISummarizer(BaseSummarizer):
    """Summarizer backed by OpenAI chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 500,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="openai",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout))

    async def summarize(self, messages: list[Message]) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=transcript_messages(messages),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APITimeoutError as e:
            logger.error(f"OpenAI summary timeout: {e}")
            raise SummarizationError(self.provider_name, f"timeout: {e}") from e
        except openai.APIError as e:
            logger.error(f"OpenAI summary error: {e}")
            raise SummarizationError(self.provider_name, str(e)) from e

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise SummarizationError(self.provider_name, "empty summary returned")

        logger.debug(
            "OpenAI summary generated",
            extra={
                "model": response.model,
                "message_count": len(messages),
                "total_tokens": response.usage.total_tokens if response.usage else None,
            },
        )
        return content

    async def close(self) -> None:
        await self.client.close()
