"""Gift chat orchestration: one user message in, one structured reply out."""
from __future__ import annotations

import logging
import time
from typing import List, Optional, Sequence

from ..models import ChatReply, ChatTurn, ContactRecord
from ..pacing import Sleeper
from ..storage.base import ContactStore, StorageError
from .catalog import ProductCatalog
from .completion import CompletionClient, CompletionServiceError
from .names import extract_candidate_names
from .prompt import build_prompt
from .replies import (
    ParseError,
    UNAVAILABLE_MESSAGE,
    WELCOME_ACTIONS,
    WELCOME_MESSAGE,
    fallback_reply,
    generic_reply,
    parse_reply,
)
from .retry import RetryingCall, RetryPolicy

LOGGER = logging.getLogger(__name__)

LOOKUP_LIMIT = 10
SAMPLE_SIZE = 5


class GiftChatOrchestrator:
    """Resolves the contact a message is about and asks the completion service for gift ideas."""

    def __init__(
        self,
        store: ContactStore,
        completion: CompletionClient,
        catalog: Optional[ProductCatalog] = None,
        *,
        model: str = "gpt-4.1-mini",
        max_tokens: int = 1000,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._store = store
        self._completion = completion
        self._catalog = catalog or ProductCatalog.default()
        self._model = model
        self._max_tokens = max_tokens
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @property
    def catalog(self) -> ProductCatalog:
        return self._catalog

    def reply(self, message: str, user_id: str) -> ChatReply:
        """Answer ``message`` for ``user_id``.

        Raises :class:`CompletionServiceError` only for failures other than
        the overloaded status; exhaustion and unparseable output degrade to
        fixed replies.
        """

        if not message or not user_id:
            raise ValueError("Both a message and a user id are required")

        candidates = extract_candidate_names(message)
        LOGGER.debug("Search terms: %s", candidates)

        contact = self.resolve_contact(candidates, user_id)
        sample: Sequence[ContactRecord] = () if contact is not None else self.sample_contacts(user_id)
        prompt = build_prompt(message, self._catalog, contact=contact, sample=sample)

        outcome = RetryingCall(
            lambda: self._completion.complete(prompt, model=self._model, max_tokens=self._max_tokens),
            self._retry_policy,
            sleep=self._sleep,
        ).run()

        if not outcome.succeeded:
            LOGGER.warning("Completion service overloaded after %s attempts; using fallback reply", outcome.attempts)
            return fallback_reply(contact, self._catalog)

        try:
            return parse_reply(outcome.value or "", self._catalog)
        except ParseError as exc:
            LOGGER.warning("Could not parse completion output: %s", exc)
            return generic_reply()

    def resolve_contact(self, candidates: Sequence[str], user_id: str) -> Optional[ContactRecord]:
        """Return the best contact for the first candidate name that matches anything."""

        for term in candidates:
            try:
                results = self._store.select(user_id, name_contains=term, limit=LOOKUP_LIMIT)
            except StorageError as exc:
                LOGGER.error("Contact search for %r failed: %s", term, exc)
                continue
            LOGGER.debug("Search results for %r: %s", term, [record.name for record in results])
            if not results:
                continue
            lowered = term.lower()
            best = next((record for record in results if record.first_name.lower() == lowered), results[0])
            LOGGER.info("Best match for %r: %s", term, best.name)
            return best
        return None

    def sample_contacts(self, user_id: str) -> List[ContactRecord]:
        """Fetch a few of the user's contacts as generic context."""

        try:
            return self._store.select(user_id, limit=SAMPLE_SIZE)
        except StorageError as exc:
            LOGGER.error("Could not sample contacts for %s: %s", user_id, exc)
            return []


class Conversation:
    """Append-only chat history for one user, opened with a welcome turn."""

    def __init__(self, orchestrator: GiftChatOrchestrator, user_id: str) -> None:
        self._orchestrator = orchestrator
        self._user_id = user_id
        self._turns: List[ChatTurn] = [
            ChatTurn(role="assistant", content=WELCOME_MESSAGE, suggested_actions=WELCOME_ACTIONS)
        ]

    @property
    def turns(self) -> tuple:
        return tuple(self._turns)

    def ask(self, message: str) -> ChatTurn:
        """Append the user's message and the assistant's answer; return the answer."""

        if not message.strip():
            raise ValueError("Cannot send an empty message")
        self._turns.append(ChatTurn(role="user", content=message))
        try:
            reply = self._orchestrator.reply(message, self._user_id)
        except CompletionServiceError:
            LOGGER.exception("Chat error")
            answer = ChatTurn(role="assistant", content=UNAVAILABLE_MESSAGE)
        else:
            answer = ChatTurn.from_reply(reply)
        self._turns.append(answer)
        return answer


__all__ = ["Conversation", "GiftChatOrchestrator", "LOOKUP_LIMIT", "SAMPLE_SIZE"]
