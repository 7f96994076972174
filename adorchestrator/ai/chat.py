"""AdOrchestrator — Product Discovery Chat Assistant."""

from typing import AsyncIterator, List, Optional

from pydantic import BaseModel

from adorchestrator.ai.base_provider import AIProvider, ChatMessage

CHAT_SYSTEM_PROMPT = """You are a helpful product discovery assistant for an online store.
Your goal is to understand what visitors are looking for and help them find the right products.

Guidelines:
- Be conversational and friendly
- Ask clarifying questions to understand needs
- Make specific product recommendations when you have enough information
- Keep responses concise (2-3 sentences max unless explaining products)
- Never make up product information - only recommend products from the catalog
- When you recommend products, mention them by name so the system can show product cards"""


class ChatContext(BaseModel):
    """Brand context folded into the system instruction."""

    brand_name: Optional[str] = None
    brand_tone: List[str] = []
    product_names: List[str] = []


def build_chat_system_prompt(context: ChatContext) -> str:
    prompt = CHAT_SYSTEM_PROMPT
    if context.brand_name:
        prompt += f"\n\nYou represent {context.brand_name}."
    if context.brand_tone:
        prompt += f"\n\nBrand voice: {', '.join(context.brand_tone)}."
    if context.product_names:
        prompt += f"\n\nAvailable products: {', '.join(context.product_names)}."
    return prompt


async def stream_chat_response(
    provider: AIProvider,
    messages: List[ChatMessage],
    context: ChatContext,
) -> AsyncIterator[str]:
    """Stream the assistant's reply to the last message, fragment by fragment.

    Everything before the last message is history; nothing is kept between
    calls.
    """
    if not messages:
        raise ValueError("messages must not be empty")

    system = build_chat_system_prompt(context)
    async for fragment in provider.stream_chat(
        messages[:-1], messages[-1].content, system
    ):
        if fragment:
            yield fragment
