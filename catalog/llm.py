"""
Language model client for the catalog AI features
"""
import logging
from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from google import genai
from google.genai import types

from .config import AI_TEMPERATURE, GEMINI_API_KEY, GEMINI_MODEL
from .errors import ModelInvocationError

logger = logging.getLogger(__name__)

ChatMessage = Dict[str, str]  # {"role": "system" | "user" | "assistant", "content": str}


def build_contents(messages: List[ChatMessage]) -> Tuple[str, List[types.Content]]:
    """
    Split chat messages into (system text, Gemini contents).

    Gemma models reject system_instruction, so the system text is folded into
    the first user turn instead.
    """
    system_parts = [m["content"] for m in messages if m.get("role") == "system"]
    system = "\n\n".join(system_parts)

    contents = []
    for m in messages:
        role = m.get("role")
        if role == "system":
            continue
        text = m.get("content", "")
        if role == "user" and system and not contents:
            text = f"{system}\n\n{text}"
        contents.append(
            types.Content(
                role="model" if role == "assistant" else "user",
                parts=[types.Part(text=text)],
            )
        )

    if not contents and system:
        contents.append(types.Content(role="user", parts=[types.Part(text=system)]))
    return system, contents


class GeminiClient:
    """Async text-generation client. invoke() returns the raw reply text."""

    def __init__(self, api_key: Optional[str] = GEMINI_API_KEY, model: str = GEMINI_MODEL):
        self.api_key = api_key
        self.model = model
        self._client: Optional[genai.Client] = None

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise ModelInvocationError("GEMINI_API_KEY is not set")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def invoke(
        self,
        messages: List[ChatMessage],
        temperature: float = AI_TEMPERATURE,
        max_tokens: Optional[int] = None,
    ) -> str:
        client = self._get_client()
        _, contents = build_contents(messages)

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )

        logger.debug(f"Model request: model={self.model} temperature={temperature} max_tokens={max_tokens}")
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            logger.error(f"Model call failed: {e}")
            raise ModelInvocationError("AI service unavailable") from e

        reply = response.text or ""
        logger.debug(f"Model raw reply: {reply}")
        return reply


@lru_cache()
def get_llm() -> GeminiClient:
    """Shared model client (FastAPI dependency)."""
    return GeminiClient()
