import json

import pytest

from adorchestrator.ai.brand_extraction import (
    MAX_PDF_CHARS,
    BrandExtractionError,
    build_extraction_prompt,
    extract_brand_from_text,
    parse_brand_response,
)

BRAND_JSON = {
    "name": "Northwind",
    "description": "Outdoor gear for everyone",
    "colors": [
        {"hex_code": "#0A3D62", "name": "Deep Blue", "usage": "Headers", "is_primary": True},
        {"hex_code": "#F8EFBA", "name": "Sand"},
    ],
    "fonts": [{"font_family": "Inter", "font_weight": "Bold", "is_primary": True}],
    "tone": [{"descriptor": "Adventurous", "example": "Go further."}],
}


def test_parses_bare_json() -> None:
    data = parse_brand_response(json.dumps(BRAND_JSON))

    assert data.name == "Northwind"
    assert [c.hex_code for c in data.colors] == ["#0A3D62", "#F8EFBA"]
    assert data.colors[1].is_primary is False
    assert data.fonts[0].font_family == "Inter"
    assert data.tone[0].descriptor == "Adventurous"


def test_parses_fenced_json() -> None:
    raw = f"```json\n{json.dumps(BRAND_JSON, indent=2)}\n```"
    assert parse_brand_response(raw).name == "Northwind"


def test_parses_json_surrounded_by_prose() -> None:
    raw = f"Here is the data you asked for:\n{json.dumps(BRAND_JSON)}\nLet me know!"
    assert parse_brand_response(raw).description == "Outdoor gear for everyone"


def test_missing_categories_default_to_empty() -> None:
    data = parse_brand_response('{"name": "Solo"}')
    assert data.colors == []
    assert data.fonts == []
    assert data.tone == []


@pytest.mark.parametrize(
    "raw",
    [
        "I could not find any brand information.",
        '{"name": "Broken", "colors": [}',
        '{"name": "Bad", "colors": [{"name": "no hex"}]}',
        '{"name": "Bad", "fonts": "Inter"}',
    ],
)
def test_malformed_replies_raise_typed_error(raw) -> None:
    with pytest.raises(BrandExtractionError) as exc_info:
        parse_brand_response(raw)
    assert exc_info.value.raw == raw


def test_prompt_truncates_pdf_text() -> None:
    prompt = build_extraction_prompt("A" * (MAX_PDF_CHARS + 500) + "TAIL")

    assert "A" * MAX_PDF_CHARS in prompt
    assert "A" * (MAX_PDF_CHARS + 1) not in prompt
    assert "TAIL" not in prompt
    assert '"hex_code": "#FFFFFF"' in prompt


async def test_extract_brand_from_text(fake_provider) -> None:
    provider = fake_provider(text=json.dumps(BRAND_JSON))

    data, result = await extract_brand_from_text(provider, "Northwind brand book")

    assert data.name == "Northwind"
    assert result.input_tokens == 120
    assert "Northwind brand book" in provider.prompts[0]


async def test_extract_brand_from_text_propagates_parse_errors(fake_provider) -> None:
    with pytest.raises(BrandExtractionError):
        await extract_brand_from_text(fake_provider(text="not json"), "text")
