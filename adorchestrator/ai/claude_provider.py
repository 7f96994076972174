"""AdOrchestrator — Anthropic Claude Provider."""

from typing import AsyncIterator, List, Optional
from anthropic import AsyncAnthropic

from adorchestrator.ai.base_provider import AIProvider, AIResult, ChatMessage
from adorchestrator.config import settings
from adorchestrator.core.logging import get_logger

logger = get_logger("ai.claude")

MAX_TOKENS = 4000


class ClaudeProvider(AIProvider):
    """Anthropic Claude provider."""

    name = "claude"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.claude_model
        self.client = AsyncAnthropic(api_key=api_key) if api_key else None

    def is_available(self) -> bool:
        return self.client is not None

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_output: bool = False,
    ) -> AIResult:
        if not self.is_available():
            raise RuntimeError("Claude provider not configured")

        kwargs = {"system": system} if system else {}
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except Exception as e:
            logger.error(f"Claude generation failed: {e}", extra={"provider": self.name})
            raise

        return AIResult(
            text=response.content[0].text if response.content else "",
            model=self.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

    async def stream_chat(
        self,
        history: List[ChatMessage],
        message: str,
        system: str,
    ) -> AsyncIterator[str]:
        if not self.is_available():
            raise RuntimeError("Claude provider not configured")

        # The Messages API requires the conversation to open with a user turn.
        turns = [m.model_dump() for m in history]
        while turns and turns[0]["role"] != "user":
            turns.pop(0)
        turns.append({"role": "user", "content": message})

        async with self.client.messages.stream(
            model=self.model,
            max_tokens=MAX_TOKENS,
            system=system,
            messages=turns,
        ) as stream:
            async for text in stream.text_stream:
                if text:
                    yield text
