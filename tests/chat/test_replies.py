import json

import pytest

from herd.chat.catalog import ProductCatalog
from herd.chat.prompt import build_prompt
from herd.chat.replies import ParseError, fallback_reply, parse_reply
from herd.config import ConfigurationError
from herd.models import ContactRecord


@pytest.fixture()
def catalog():
    return ProductCatalog.default()


def test_parse_reply_reads_expected_shape(catalog):
    text = json.dumps(
        {
            "response": "Try the candle.",
            "recommendedProducts": [{"id": 1, "reason": "Loves design", "contactName": "Ana"}],
            "suggestedActions": ["Browse products"],
        }
    )

    reply = parse_reply(text, catalog)

    assert reply.as_dict() == {
        "response": "Try the candle.",
        "recommendedProducts": [{"id": 1, "reason": "Loves design", "contactName": "Ana"}],
        "suggestedActions": ["Browse products"],
    }


def test_parse_reply_accepts_code_fence(catalog):
    reply = parse_reply('```json\n{"response": "Hi"}\n```', catalog)

    assert reply.response == "Hi"
    assert reply.recommended_products == ()


def test_unknown_products_are_dropped(catalog):
    text = json.dumps({"response": "x", "recommendedProducts": [{"id": 99, "reason": "?"}, {"id": "2", "reason": "wine"}]})

    reply = parse_reply(text, catalog)

    assert [item.product_id for item in reply.recommended_products] == [2]


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "",
        "[1, 2]",
        '{"recommendedProducts": []}',
        '{"response": "x", "recommendedProducts": "candle"}',
        '{"response": "x", "suggestedActions": [1]}',
        '{"response": "x", "recommendedProducts": [{"id": "abc"}]}',
    ],
)
def test_malformed_output_raises_parse_error(text, catalog):
    with pytest.raises(ParseError):
        parse_reply(text, catalog)


def test_fallback_reply_names_contact_and_recommends_fallback_product(catalog):
    reply = fallback_reply(ContactRecord(name="Sarah Jones"), catalog)

    assert reply.response.startswith("I found Sarah Jones in your list!")
    assert "Artisan Coffee Set" in reply.response
    assert [item.product_id for item in reply.recommended_products] == [3]
    assert reply.recommended_products[0].reason == "Coffee makes a universally appreciated gift"


def test_prompt_without_contact_embeds_sample_and_catalog(catalog):
    prompt = build_prompt("help me find a gift", catalog, sample=[ContactRecord(name="Ana Diaz")])

    assert 'CONTACTS SAMPLE: [{"name": "Ana Diaz"' in prompt
    assert '"name": "Tuberose Candle"' in prompt
    assert "Respond with ONLY valid JSON" in prompt


def test_catalog_from_config():
    catalog = ProductCatalog.from_config(
        {
            "catalog": [{"id": 7, "name": "Tea Sampler", "price": "30", "interests": ["Tea"]}],
            "fallback_product_id": 7,
        }
    )

    assert len(catalog) == 1
    assert catalog.fallback_product.name == "Tea Sampler"
    assert catalog.get(7).price == 30.0


def test_catalog_rejects_unknown_fallback():
    with pytest.raises(ConfigurationError):
        ProductCatalog.from_config({"catalog": [{"id": 1, "name": "Mug"}], "fallback_product_id": 2})


def test_fallback_reason_uses_product_name_without_pitch():
    catalog = ProductCatalog.from_config({"catalog": [{"id": 7, "name": "Tea Sampler"}]})

    reply = fallback_reply(None, catalog)

    assert reply.recommended_products[0].reason == "Tea Sampler makes a universally appreciated gift"
