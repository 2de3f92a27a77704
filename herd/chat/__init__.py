"""Gift recommendation chat: name extraction, prompting, retries and reply parsing."""

from .catalog import ProductCatalog
from .completion import CompletionClient, CompletionServiceError, OpenAICompletionClient
from .names import extract_candidate_names
from .orchestrator import Conversation, GiftChatOrchestrator
from .prompt import build_prompt
from .replies import ParseError, fallback_reply, generic_reply, parse_reply
from .retry import RetryingCall, RetryOutcome, RetryPolicy, RetryState

__all__ = [
    "CompletionClient",
    "CompletionServiceError",
    "Conversation",
    "GiftChatOrchestrator",
    "OpenAICompletionClient",
    "ParseError",
    "ProductCatalog",
    "RetryOutcome",
    "RetryPolicy",
    "RetryState",
    "RetryingCall",
    "build_prompt",
    "extract_candidate_names",
    "fallback_reply",
    "generic_reply",
    "parse_reply",
]
