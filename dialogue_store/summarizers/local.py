"""
Local Summarizer

Summarizes conversation transcripts with a local model server. Tries the
Ollama chat endpoint first, then an OpenAI-compatible endpoint (vLLM,
llama.cpp server).
"""

import logging

import httpx

from dialogue_store.errors import SummarizationError
from dialogue_store.models import Message
from dialogue_store.summarizers.base import BaseSummarizer, transcript_messages

logger = logging.getLogger(__name__)


class LocalSummarizer(BaseSummarizer):
    """Summarizer backed by a local model server."""

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.3,
        max_tokens: int = 500,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="local",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = httpx.AsyncClient(timeout=float(timeout))

    async def summarize(self, messages: list[Message]) -> str:
        payload = {
            "model": self.model,
            "messages": transcript_messages(messages),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }

        try:
            response = await self._call_ollama(payload)
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Ollama endpoint unavailable, trying OpenAI-compatible: {e}")
            try:
                response = await self._call_openai_compatible(payload)
            except (httpx.HTTPError, ValueError) as fallback_error:
                logger.error(f"Local summary error: {fallback_error}")
                raise SummarizationError(self.provider_name, str(fallback_error)) from fallback_error

        try:
            content = (
                response.get("message", {}).get("content", "")
                or (response.get("choices") or [{}])[0].get("message", {}).get("content", "")
            ).strip()
        except (AttributeError, TypeError) as e:
            raise SummarizationError(self.provider_name, f"unexpected response shape: {e}") from e
        if not content:
            raise SummarizationError(self.provider_name, "empty summary returned")
        return content

    async def close(self) -> None:
        await self.client.aclose()

    async def _call_ollama(self, payload: dict) -> dict:
        response = await self.client.post(f"{self.base_url}/api/chat", json=payload)
        response.raise_for_status()
        return response.json()

    async def _call_openai_compatible(self, payload: dict) -> dict:
        response = await self.client.post(f"{self.base_url}/v1/chat/completions", json=payload)
        response.raise_for_status()
        return response.json()
