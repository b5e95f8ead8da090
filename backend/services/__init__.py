"""
World Chat Services - Session state and upstream clients.

- participant_registry: Connected participants and presence notifications
- conversation_store: Public and private AI conversation histories
- ai_gateway: Timed AI requests that record completed exchanges
- llm_client: OpenAI-compatible chat completions client
- gif_proxy / gif_cache: GIF search forwarding with a TTL cache
"""

from .ai_gateway import AiGateway
from .conversation_store import ConversationContext, ConversationStore
from .gif_cache import GifCache
from .gif_proxy import GifProxy
from .llm_client import LLMClient
from .participant_registry import Participant, ParticipantRegistry

__all__ = [
    "AiGateway",
    "ConversationContext",
    "ConversationStore",
    "GifCache",
    "GifProxy",
    "LLMClient",
    "Participant",
    "ParticipantRegistry",
]
