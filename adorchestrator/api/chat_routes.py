"""AdOrchestrator — Streaming Chat Route."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from adorchestrator.ai.base_provider import ChatMessage
from adorchestrator.ai.chat import ChatContext, stream_chat_response
from adorchestrator.ai.providers import select_provider
from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import is_valid_uuid
from adorchestrator.database import get_session
from adorchestrator.models.brand_models import Brand, BrandTone, Product
from adorchestrator.services.usage import create_timer, track_api_usage

logger = get_logger("api.chat")

router = APIRouter(prefix="/api", tags=["Chat"], dependencies=[Depends(require_user)])


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = []
    brand_id: Optional[str] = Field(None, alias="brandId")

    model_config = {"populate_by_name": True}


def load_chat_context(session: Session, brand_id: Optional[str]) -> ChatContext:
    """Brand name, tone descriptors and product names for ``brand_id``.

    Unknown or malformed ids give an empty context.
    """
    if not brand_id or not is_valid_uuid(brand_id):
        return ChatContext()

    brand = session.get(Brand, uuid.UUID(brand_id))
    if not brand:
        return ChatContext()

    tone = session.exec(
        select(BrandTone.descriptor).where(BrandTone.brand_id == brand.id)
    ).all()
    products = session.exec(select(Product.name).where(Product.brand_id == brand.id)).all()
    return ChatContext(
        brand_name=brand.name, brand_tone=list(tone), product_names=list(products)
    )


@router.post("/chat")
async def chat(body: ChatRequest, session: Session = Depends(get_session)):
    """Stream the assistant's reply as plain text."""
    if not body.messages:
        raise HTTPException(status_code=400, detail="Messages required")

    provider_name, provider = select_provider("auto")
    context = load_chat_context(session, body.brand_id)

    async def reply():
        elapsed = create_timer()
        try:
            async for fragment in stream_chat_response(provider, body.messages, context):
                yield fragment
        except Exception as e:
            logger.error(f"Chat stream failed: {e}", extra={"provider": provider_name})
            track_api_usage(
                session,
                api_provider=provider_name,
                api_endpoint="chat",
                model=provider.model,
                duration_ms=elapsed(),
                success=False,
                error_message=str(e),
            )
            raise

        track_api_usage(
            session,
            api_provider=provider_name,
            api_endpoint="chat",
            model=provider.model,
            duration_ms=elapsed(),
        )

    return StreamingResponse(reply(), media_type="text/plain; charset=utf-8")
