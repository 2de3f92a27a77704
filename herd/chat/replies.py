"""Parsing of completion output and the fixed replies used when it is unusable."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from ..models import ChatReply, ContactRecord, ProductRecommendation
from .catalog import ProductCatalog

LOGGER = logging.getLogger(__name__)

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

WELCOME_MESSAGE = (
    "Hi! I'm your AI gift assistant. I can help you find perfect gifts for your contacts based on "
    "their interests and your relationship. Try asking 'What should I get [contact name] for their birthday?'"
)
WELCOME_ACTIONS = (
    "What should I get for a birthday?",
    "Show me my work contacts",
    "Help me find a gift under $100",
)
UNAVAILABLE_MESSAGE = "Sorry, I'm having trouble connecting right now. Please try again in a moment."


class ParseError(ValueError):
    """Raised when completion output does not have the expected reply shape."""


def parse_reply(text: str, catalog: ProductCatalog) -> ChatReply:
    """Parse completion ``text`` into a :class:`ChatReply`, raising :class:`ParseError`."""

    stripped = (text or "").strip()
    fenced = _FENCE.match(stripped)
    if fenced:
        stripped = fenced.group(1)
    try:
        payload = json.loads(stripped or "{}")
    except json.JSONDecodeError as exc:
        raise ParseError(f"Completion output is not JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise ParseError("Completion output must be a JSON object")
    response = payload.get("response")
    if not isinstance(response, str):
        raise ParseError("Completion output is missing a 'response' string")

    return ChatReply(
        response=response,
        recommended_products=tuple(_parse_recommendations(payload.get("recommendedProducts"), catalog)),
        suggested_actions=tuple(_parse_actions(payload.get("suggestedActions"))),
    )


def _parse_recommendations(value: Any, catalog: ProductCatalog) -> List[ProductRecommendation]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParseError("'recommendedProducts' must be a list")
    recommendations: List[ProductRecommendation] = []
    for item in value:
        if not isinstance(item, dict):
            raise ParseError("Each recommended product must be an object")
        try:
            product_id = int(item.get("id"))
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Invalid product id {item.get('id')!r}") from exc
        if product_id not in catalog:
            LOGGER.warning("Dropping recommendation for unknown product %s", product_id)
            continue
        contact_name = item.get("contactName") or None
        recommendations.append(
            ProductRecommendation(
                product_id=product_id,
                reason=str(item.get("reason") or ""),
                contact_name=str(contact_name) if contact_name else None,
            )
        )
    return recommendations


def _parse_actions(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ParseError("'suggestedActions' must be a list of strings")
    return list(value)


def generic_reply() -> ChatReply:
    """Reply used when the completion output cannot be parsed."""

    return ChatReply(
        response="I'd be happy to help with gift recommendations!",
        recommended_products=(),
        suggested_actions=("Ask about gift recommendations",),
    )


def fallback_reply(contact: Optional[ContactRecord], catalog: ProductCatalog) -> ChatReply:
    """Deterministic reply used when the completion service stays overloaded."""

    product = catalog.fallback_product
    subject = contact.name if contact is not None else "some contacts"
    return ChatReply(
        response=(
            f"I found {subject} in your list! Based on their profile, I'd recommend checking out our "
            f"curated gift options. The {product.name} would make a great birthday gift."
        ),
        recommended_products=(
            ProductRecommendation(
                product_id=product.id,
                reason=f"{product.pitch or product.name} makes a universally appreciated gift",
                contact_name=contact.name if contact is not None else None,
            ),
        ),
        suggested_actions=("Tell me more about their interests", "Show me other gift options"),
    )


__all__ = [
    "ParseError",
    "UNAVAILABLE_MESSAGE",
    "WELCOME_ACTIONS",
    "WELCOME_MESSAGE",
    "fallback_reply",
    "generic_reply",
    "parse_reply",
]
