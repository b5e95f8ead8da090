"""
AI Gateway - one question in, one answer out.

Sends a prompt plus a context's history to the generative backend and, on
success, records the exchange in that context. The backend call itself runs
outside the context lock; only the final append is serialized, so two public
questions can be in flight together and still land as two intact pairs.
"""

import asyncio
import logging
import time
from typing import Dict, List

from config import RuntimeConfig, runtime_config
from errors import AiUnavailableError
from logging_config import log_llm
from services.conversation_store import ConversationContext, ConversationStore
from services.llm_client import LLMClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a friendly assistant inside a group chat room. "
    "Keep replies short, concise and conversational, like a chat message."
)


class AiGateway:
    """Stateless adapter over LLMClient; the only state it touches is the context passed in."""

    def __init__(self, client: LLMClient, store: ConversationStore, config: RuntimeConfig = runtime_config):
        self.client = client
        self.store = store
        self.config = config

    def build_messages(self, context: ConversationContext, prompt: str) -> List[Dict[str, str]]:
        """System instruction, then the context history, then the new user turn."""
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        for turn in context.history():
            messages.append({"role": turn["role"], "content": turn["text"]})
        messages.append({"role": "user", "content": prompt})
        return messages

    async def ask(self, context: ConversationContext, prompt: str) -> str:
        """Ask the backend and record the exchange.

        Returns:
            The assistant reply text

        Raises:
            AiUnavailableError: timeout, backend failure or empty reply.
                The context is left untouched.
        """
        model = self.config.model_chat
        timeout_seconds = self.config.llm_timeout_s
        messages = self.build_messages(context, prompt)

        start_time = time.time()
        log_llm(logger, "start", model=model)

        try:
            response = await asyncio.wait_for(
                self.client.chat(model=model, messages=messages, options=self.config.get_llm_params()),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            duration = time.time() - start_time
            logger.warning(f"LLM call timed out after {duration:.2f}s (limit={timeout_seconds}s, model={model})")
            raise AiUnavailableError(
                message=f"Model response timed out after {timeout_seconds}s",
                error_type="timeout",
                model=model,
            ) from None
        except Exception as e:
            logger.warning(f"LLM call failed ({model}): {type(e).__name__}: {e}")
            raise AiUnavailableError(
                message="Generative backend request failed",
                details=type(e).__name__,
                model=model,
            ) from e

        try:
            reply = response["message"]["content"]
        except (KeyError, TypeError):
            reply = None
        if not isinstance(reply, str) or not reply.strip():
            raise AiUnavailableError(
                message="Model returned an empty or malformed reply",
                error_type="invalid",
                model=model,
            )

        reply = reply.strip()
        log_llm(logger, "end", model=model, duration=time.time() - start_time)

        await self.store.append_exchange(context, prompt, reply)
        return reply
