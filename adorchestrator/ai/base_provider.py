"""AdOrchestrator — Abstract AI Provider."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Literal, Optional

from pydantic import BaseModel


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AIResult(BaseModel):
    """Text returned by a provider plus token accounting for usage tracking."""

    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class AIProvider(ABC):
    """Abstract base for generative text models.

    AI features are optional: a provider without credentials reports
    ``is_available() == False`` and callers answer 503.
    """

    name: str = ""
    model: str = ""

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        json_output: bool = False,
    ) -> AIResult:
        """Single-shot completion.

        Args:
            prompt: The user prompt.
            system: Optional system instruction.
            json_output: Ask the model for a JSON document where the
                provider supports structured output.
        """
        ...

    @abstractmethod
    def stream_chat(
        self,
        history: List[ChatMessage],
        message: str,
        system: str,
    ) -> AsyncIterator[str]:
        """Send ``message`` after ``history`` and yield reply text fragments in order."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured and ready."""
        ...
