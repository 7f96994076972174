"""AdOrchestrator — AI provider selection."""

from typing import Tuple

from fastapi import HTTPException

from adorchestrator.ai.base_provider import AIProvider
from adorchestrator.ai.claude_provider import ClaudeProvider
from adorchestrator.ai.gemini_provider import GeminiProvider
from adorchestrator.ai.sarvam_provider import SarvamProvider
from adorchestrator.config import settings

PROVIDERS = {
    "gemini": GeminiProvider,
    "claude": ClaudeProvider,
    "sarvam": SarvamProvider,
}


def select_provider(provider_name: str = "auto") -> Tuple[str, AIProvider]:
    """Select and return an available AI provider.

    When provider_name is 'auto', tries DEFAULT_AI_PROVIDER first,
    then falls through remaining providers.
    """
    if provider_name == "auto":
        default = settings.default_ai_provider
        if default in PROVIDERS:
            p = PROVIDERS[default]()
            if p.is_available():
                return default, p
        for name, cls in PROVIDERS.items():
            if name == default:
                continue
            provider = cls()
            if provider.is_available():
                return name, provider
        raise HTTPException(
            status_code=503,
            detail="No AI provider configured. Set GOOGLE_AI_API_KEY, ANTHROPIC_API_KEY, or SARVAM_API_KEY.",
        )
    elif provider_name in PROVIDERS:
        provider = PROVIDERS[provider_name]()
        if not provider.is_available():
            raise HTTPException(
                status_code=503,
                detail=f"{provider_name} provider not configured.",
            )
        return provider_name, provider
    else:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown provider: {provider_name}.",
        )


def get_ai_provider() -> AIProvider:
    """Dependency — the automatically selected provider."""
    return select_provider("auto")[1]
