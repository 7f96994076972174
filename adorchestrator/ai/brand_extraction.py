"""AdOrchestrator — Brand Guideline Extraction.

Turns the text of a brand-guidelines PDF into structured brand data:
name, description, colors, fonts and tone of voice.
"""

import json
import re
from typing import List, Optional

from pydantic import BaseModel, ValidationError

from adorchestrator.ai.base_provider import AIProvider, AIResult
from adorchestrator.core.logging import get_logger

logger = get_logger("ai.brand_extraction")

# Keeps the prompt well inside model input limits.
MAX_PDF_CHARS = 15000

BRAND_EXTRACTION_PROMPT = """Extract brand guidelines from this PDF text. Return ONLY valid JSON matching this structure:

{{
  "name": "Brand name",
  "description": "Brief brand description",
  "colors": [
    {{"hex_code": "#FFFFFF", "name": "Primary White", "usage": "Backgrounds", "is_primary": true}}
  ],
  "fonts": [
    {{"font_family": "Helvetica", "font_weight": "Bold", "usage": "Headlines", "is_primary": true}}
  ],
  "tone": [
    {{"descriptor": "Professional", "example": "We speak with authority..."}}
  ]
}}

Rules:
- Extract ALL colors mentioned (hex codes). If no hex provided, skip that color.
- Extract ALL fonts mentioned.
- Extract tone of voice descriptors and examples.
- is_primary should be true for the main/primary variant.
- Return empty arrays if category not found.
- Return ONLY the JSON, no markdown or explanation.

PDF Text:
{pdf_text}"""


class BrandExtractionError(Exception):
    """The model's reply could not be turned into valid brand data."""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class ExtractedColor(BaseModel):
    hex_code: str
    name: Optional[str] = None
    usage: Optional[str] = None
    is_primary: bool = False


class ExtractedFont(BaseModel):
    font_family: str
    font_weight: Optional[str] = None
    usage: Optional[str] = None
    is_primary: bool = False


class ExtractedTone(BaseModel):
    descriptor: str
    example: Optional[str] = None


class ExtractedBrandData(BaseModel):
    name: str = ""
    description: Optional[str] = None
    colors: List[ExtractedColor] = []
    fonts: List[ExtractedFont] = []
    tone: List[ExtractedTone] = []


def build_extraction_prompt(pdf_text: str) -> str:
    return BRAND_EXTRACTION_PROMPT.format(pdf_text=pdf_text[:MAX_PDF_CHARS])


def parse_brand_response(raw: str) -> ExtractedBrandData:
    """Parse and validate a model reply.

    Accepts bare JSON or JSON wrapped in a markdown fence or prose; the
    first ``{...}`` span is used. Raises BrandExtractionError otherwise.
    """
    clean = raw.strip()
    if clean.startswith("```"):
        clean = re.sub(r"^```+\w*\n?", "", clean).rsplit("```", 1)[0].strip()

    match = re.search(r"\{[\s\S]*\}", clean)
    if not match:
        raise BrandExtractionError("Model response contained no JSON object", raw)

    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise BrandExtractionError(f"Model returned unparseable JSON: {e}", raw) from e

    try:
        return ExtractedBrandData.model_validate(payload)
    except ValidationError as e:
        raise BrandExtractionError(
            f"Model JSON does not match the brand schema: {e.error_count()} error(s)", raw
        ) from e


async def extract_brand_from_text(
    provider: AIProvider, pdf_text: str
) -> tuple[ExtractedBrandData, AIResult]:
    """Ask ``provider`` for structured brand data extracted from ``pdf_text``."""
    result = await provider.generate(build_extraction_prompt(pdf_text), json_output=True)
    try:
        return parse_brand_response(result.text), result
    except BrandExtractionError as e:
        logger.warning(f"Brand extraction failed: {e}. Raw: {e.raw[:300]}")
        raise
