import json

import pytest

from herd.chat.catalog import ProductCatalog
from herd.chat.completion import CompletionServiceError
from herd.chat.orchestrator import Conversation, GiftChatOrchestrator
from herd.chat.replies import UNAVAILABLE_MESSAGE, WELCOME_MESSAGE
from herd.models import ContactRecord
from herd.storage.base import StorageError
from herd.storage.memory import InMemoryContactStore


class ScriptedCompletion:
    """Completion client returning scripted outcomes and recording prompts."""

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.prompts = []

    def complete(self, prompt, *, model, max_tokens):
        self.prompts.append(prompt)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class BrokenStore(InMemoryContactStore):
    def select(self, owner_id, **kwargs):
        if kwargs.get("name_contains"):
            raise StorageError("connection reset")
        return super().select(owner_id, **kwargs)


def _reply_json(**overrides):
    payload = {
        "response": "Sarah would love coffee.",
        "recommendedProducts": [{"id": 3, "reason": "She loves coffee", "contactName": "Sarah Jones"}],
        "suggestedActions": ["Show me other gift options"],
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture()
def store():
    return InMemoryContactStore(
        [
            ContactRecord(name="Sarah Jones", owner_id="user-1", interests=["Coffee"]),
            ContactRecord(name="Bob Sarahson", owner_id="user-1"),
            ContactRecord(name="Sarah Other", owner_id="user-2"),
        ]
    )


def _orchestrator(store, completion, waits=None):
    return GiftChatOrchestrator(
        store,
        completion,
        ProductCatalog.default(),
        sleep=(waits.append if waits is not None else lambda _: None),
    )


def test_named_contact_is_resolved_and_embedded_in_prompt(store):
    completion = ScriptedCompletion(_reply_json())
    orchestrator = _orchestrator(store, completion)

    reply = orchestrator.reply("What should I get Sarah for her birthday?", "user-1")

    assert reply.response == "Sarah would love coffee."
    assert reply.recommended_products[0].product_id == 3
    prompt = completion.prompts[0]
    assert 'FOUND CONTACT: {"name": "Sarah Jones", "owner_id": "user-1", "id": 1,' in prompt
    assert "Sarah Other" not in prompt
    assert 'USER: "What should I get Sarah for her birthday?"' in prompt


def test_resolution_prefers_exact_first_name(store):
    orchestrator = _orchestrator(store, ScriptedCompletion())

    contact = orchestrator.resolve_contact(["Sarah"], "user-1")

    assert contact.id == 1
    assert contact.name == "Sarah Jones"


def test_resolution_falls_back_to_first_result(store):
    orchestrator = _orchestrator(store, ScriptedCompletion())

    contact = orchestrator.resolve_contact(["Sarahs"], "user-1")

    assert contact.name == "Bob Sarahson"


def test_resolution_stops_at_first_matching_candidate(store):
    store.insert([ContactRecord(name="Tom Baker", owner_id="user-1")])
    orchestrator = _orchestrator(store, ScriptedCompletion())

    contact = orchestrator.resolve_contact(["Nobody", "Tom", "Sarah"], "user-1")

    assert contact.name == "Tom Baker"


def test_message_without_names_uses_contact_sample(store):
    completion = ScriptedCompletion(_reply_json())
    orchestrator = _orchestrator(store, completion)

    orchestrator.reply("help me find a gift", "user-1")

    prompt = completion.prompts[0]
    assert "CONTACTS SAMPLE" in prompt
    assert "FOUND CONTACT" not in prompt
    assert "Sarah Other" not in prompt


def test_sample_is_capped_at_five(store):
    store.insert([ContactRecord(name=f"Friend {index}", owner_id="user-1") for index in range(8)])
    orchestrator = _orchestrator(store, ScriptedCompletion())

    assert len(orchestrator.sample_contacts("user-1")) == 5


def test_lookup_failure_degrades_to_sample():
    store = BrokenStore([ContactRecord(name="Sarah Jones", owner_id="user-1")])
    completion = ScriptedCompletion(_reply_json())
    orchestrator = _orchestrator(store, completion)

    reply = orchestrator.reply("What should I get Sarah?", "user-1")

    assert reply.response
    assert "CONTACTS SAMPLE" in completion.prompts[0]


def test_overloaded_twice_then_success_returns_parsed_reply(store):
    waits = []
    overloaded = CompletionServiceError("Overloaded", status=529)
    completion = ScriptedCompletion(overloaded, overloaded, _reply_json())
    orchestrator = _orchestrator(store, completion, waits)

    reply = orchestrator.reply("What should I get Sarah for her birthday?", "user-1")

    assert reply.response == "Sarah would love coffee."
    assert waits == [2.0, 4.0]
    assert len(completion.prompts) == 3


def test_exhausted_retries_return_fallback_with_contact_name(store):
    overloaded = CompletionServiceError("Overloaded", status=529)
    orchestrator = _orchestrator(store, ScriptedCompletion(overloaded, overloaded, overloaded))

    reply = orchestrator.reply("What should I get Sarah for her birthday?", "user-1")

    assert "Sarah Jones" in reply.response
    assert len(reply.recommended_products) == 1
    assert reply.recommended_products[0].contact_name == "Sarah Jones"


def test_exhausted_retries_without_contact_use_generic_phrase(store):
    overloaded = CompletionServiceError("Overloaded", status=529)
    orchestrator = _orchestrator(store, ScriptedCompletion(overloaded, overloaded, overloaded))

    reply = orchestrator.reply("help me find a gift", "user-1")

    assert "some contacts" in reply.response
    assert len(reply.recommended_products) == 1
    assert reply.as_dict()["recommendedProducts"][0]["contactName"] == ""


def test_non_retryable_failure_propagates(store):
    orchestrator = _orchestrator(store, ScriptedCompletion(CompletionServiceError("unauthorized", status=401)))

    with pytest.raises(CompletionServiceError):
        orchestrator.reply("help me find a gift", "user-1")


def test_unparseable_output_becomes_generic_reply(store):
    orchestrator = _orchestrator(store, ScriptedCompletion("Sure! Here are some ideas..."))

    reply = orchestrator.reply("help me find a gift", "user-1")

    assert reply.response == "I'd be happy to help with gift recommendations!"
    assert reply.recommended_products == ()
    assert reply.suggested_actions == ("Ask about gift recommendations",)


def test_message_and_user_are_required(store):
    orchestrator = _orchestrator(store, ScriptedCompletion())

    with pytest.raises(ValueError):
        orchestrator.reply("", "user-1")


def test_conversation_appends_turns(store):
    completion = ScriptedCompletion(_reply_json(), CompletionServiceError("boom", status=500))
    conversation = Conversation(_orchestrator(store, completion), "user-1")

    first = conversation.ask("What should I get Sarah?")
    second = conversation.ask("And for Bob?")

    turns = conversation.turns
    assert turns[0].content == WELCOME_MESSAGE
    assert [turn.role for turn in turns] == ["assistant", "user", "assistant", "user", "assistant"]
    assert first.recommended_products[0].product_id == 3
    assert second.content == UNAVAILABLE_MESSAGE
