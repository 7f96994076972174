"""AdOrchestrator — Sarvam AI Provider."""

from typing import AsyncIterator, List, Optional
from sarvamai import AsyncSarvamAI

from adorchestrator.ai.base_provider import AIProvider, AIResult, ChatMessage
from adorchestrator.config import settings
from adorchestrator.core.logging import get_logger

logger = get_logger("ai.sarvam")


class SarvamProvider(AIProvider):
    """Sarvam AI provider (model: sarvam-m).

    The completions call is not streamed; chat replies arrive as a
    single fragment.
    """

    name = "sarvam"
    model = "sarvam-m"

    def __init__(self, api_key: str | None = None):
        api_key = api_key or settings.sarvam_api_key
        self.client = AsyncSarvamAI(api_subscription_key=api_key) if api_key else None

    def is_available(self) -> bool:
        return self.client is not None

    async def _complete(self, messages: list, temperature: float) -> AIResult:
        try:
            response = await self.client.chat.completions(
                messages=messages,
                temperature=temperature,
                max_tokens=3000,
            )
        except Exception as e:
            logger.error(f"Sarvam generation failed: {e}", extra={"provider": self.name})
            raise

        usage = getattr(response, "usage", None)
        return AIResult(
            text=response.choices[0].message.content or "",
            model=self.model,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_output: bool = False,
    ) -> AIResult:
        if not self.is_available():
            raise RuntimeError("Sarvam provider not configured")

        messages = [{"role": "system", "content": system}] if system else []
        messages.append({"role": "user", "content": prompt})
        return await self._complete(messages, temperature=0.2 if json_output else 0.5)

    async def stream_chat(
        self,
        history: List[ChatMessage],
        message: str,
        system: str,
    ) -> AsyncIterator[str]:
        if not self.is_available():
            raise RuntimeError("Sarvam provider not configured")

        messages = [{"role": "system", "content": system}]
        messages.extend(m.model_dump() for m in history)
        messages.append({"role": "user", "content": message})
        result = await self._complete(messages, temperature=0.5)
        if result.text:
            yield result.text
