"""AdOrchestrator — Google Gemini Provider."""

from typing import AsyncIterator, List, Optional

import google.generativeai as genai

from adorchestrator.ai.base_provider import AIProvider, AIResult, ChatMessage
from adorchestrator.config import settings
from adorchestrator.core.logging import get_logger

logger = get_logger("ai.gemini")


class GeminiProvider(AIProvider):
    """Gemini provider, used for brand extraction and the chat assistant."""

    name = "gemini"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key or settings.google_ai_api_key
        self.model = model or settings.gemini_model
        if self.api_key:
            genai.configure(api_key=self.api_key)

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _model(self, system: Optional[str], json_output: bool = False):
        config = (
            genai.GenerationConfig(response_mime_type="application/json")
            if json_output
            else None
        )
        return genai.GenerativeModel(
            self.model, system_instruction=system, generation_config=config
        )

    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_output: bool = False,
    ) -> AIResult:
        if not self.is_available():
            raise RuntimeError("Gemini provider not configured")

        try:
            response = await self._model(system, json_output).generate_content_async(
                prompt
            )
        except Exception as e:
            logger.error(f"Gemini generation failed: {e}", extra={"provider": self.name})
            raise

        usage = getattr(response, "usage_metadata", None)
        return AIResult(
            text=response.text,
            model=self.model,
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
        )

    async def stream_chat(
        self,
        history: List[ChatMessage],
        message: str,
        system: str,
    ) -> AsyncIterator[str]:
        if not self.is_available():
            raise RuntimeError("Gemini provider not configured")

        chat = self._model(system).start_chat(
            history=[
                {
                    "role": "user" if m.role == "user" else "model",
                    "parts": [m.content],
                }
                for m in history
            ]
        )
        response = await chat.send_message_async(message, stream=True)
        async for chunk in response:
            # Trailing chunks may carry only a finish reason.
            if chunk.candidates and chunk.candidates[0].content.parts:
                yield chunk.text
