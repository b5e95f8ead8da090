"""
LLM Client - wraps the async OpenAI SDK to talk to an OpenAI-compatible endpoint.

The default endpoint is Gemini's OpenAI-compatible API, so the same client
works against any provider that speaks /chat/completions.

Response format:
    {"message": {"role": "assistant", "content": "..."}}

Key translations:
- Turns: {"role", "text"} history entries → OpenAI {"role", "content"}
- Thinking: <think>...</think> inline tags are stripped from content
- Options: max_output_tokens→max_tokens
"""

import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

VALID_ROLES = {"system", "user", "assistant"}


def _translate_messages_for_openai(messages: List[Dict]) -> List[Dict]:
    """Translate internal message format to OpenAI API format.

    Accepts either "content" or "text" as the body key; unknown roles are
    sent as user turns.
    """
    translated = []
    for msg in messages:
        role = msg.get("role", "user")
        if role not in VALID_ROLES:
            role = "user"
        content = msg.get("content")
        if content is None:
            content = msg.get("text", "")
        translated.append({"role": role, "content": content})
    return translated


THINK_PATTERN = re.compile(r"<think>(.*?)</think>", re.DOTALL)


def _strip_thinking(content: str) -> str:
    """Remove <think>...</think> tags from content.

    Reasoning models on compatible servers can return thinking inline.
    """
    if not content:
        return ""
    return THINK_PATTERN.sub("", content).strip()


class LLMClient:
    """Wraps AsyncOpenAI pointing at an OpenAI-compatible endpoint."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Args:
            base_url: API base URL (e.g. the Gemini OpenAI-compatible endpoint)
            api_key: Provider API key
            timeout: SDK-level request timeout in seconds
            client: Pre-built SDK client (tests inject one)
        """
        self.base_url = base_url
        self._timeout = timeout
        self._openai = client or AsyncOpenAI(
            base_url=base_url,
            api_key=api_key or "not-configured",
            timeout=timeout,
            max_retries=0,  # Retries would stack on top of the gateway timeout
        )

    async def chat(
        self,
        model: str,
        messages: List[Dict],
        options: Optional[Dict] = None,
    ) -> Dict[str, Any]:
        """Call the chat completions endpoint.

        Args:
            model: Model name
            messages: List of message dicts
            options: Generation options (temperature, max_tokens)

        Returns:
            Dict with "message" key
        """
        options = options or {}

        kwargs: Dict[str, Any] = {
            "model": model,
            "messages": _translate_messages_for_openai(messages),
        }
        if "temperature" in options:
            kwargs["temperature"] = options["temperature"]
        if "max_tokens" in options:
            kwargs["max_tokens"] = options["max_tokens"]

        response = await self._openai.chat.completions.create(stream=False, **kwargs)

        raw_content = ""
        if response.choices:
            raw_content = response.choices[0].message.content or ""
        content = _strip_thinking(raw_content)

        return {
            "message": {
                "role": "assistant",
                "content": content,
            }
        }

    async def close(self) -> None:
        await self._openai.close()
