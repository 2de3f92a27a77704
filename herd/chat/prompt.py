"""Prompt construction for the gift recommendation assistant."""
from __future__ import annotations

import json
from typing import Optional, Sequence

from ..models import ContactRecord
from .catalog import ProductCatalog


def build_prompt(
    message: str,
    catalog: ProductCatalog,
    *,
    contact: Optional[ContactRecord] = None,
    sample: Sequence[ContactRecord] = (),
) -> str:
    """Embed the contact context, the catalog and the user message in one prompt."""

    if contact is not None:
        context = f"FOUND CONTACT: {_dumps(contact.as_row())}"
        focus = "Focus on this specific contact and their details for personalized recommendations."
        contact_name = contact.name
    else:
        context = f"CONTACTS SAMPLE: {_dumps([record.as_row() for record in sample])}"
        focus = "Provide general guidance or ask for more details about who they want to shop for."
        contact_name = ""

    example_product_id = catalog.fallback_product.id
    return f"""You are a gift recommendation assistant.

{context}

PRODUCTS: {_dumps(catalog.as_dicts())}
USER: "{message}"

{focus}

Respond with ONLY valid JSON:
{{
  "response": "Your helpful response",
  "recommendedProducts": [{{"id": {example_product_id}, "reason": "why this fits", "contactName": {json.dumps(contact_name)}}}],
  "suggestedActions": ["Ask about someone specific", "Browse products"]
}}"""


def _dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


__all__ = ["build_prompt"]
