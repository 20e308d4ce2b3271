"""
AI Provider Adapters / AI 提供商适配器
"""

from .base import BaseLLMProvider, BaseMediaProvider
from .anthropic_provider import AnthropicProvider
from .gemini_provider import GeminiProvider
from .media_providers import (
    ElevenLabsProvider,
    FalProvider,
    ModelsLabProvider,
    ReplicateProvider,
    StabilityProvider,
)
from .openai_provider import OpenAICompatibleProvider, OpenAIImageProvider

__all__ = [
    "BaseLLMProvider",
    "BaseMediaProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAICompatibleProvider",
    "OpenAIImageProvider",
    "FalProvider",
    "StabilityProvider",
    "ReplicateProvider",
    "ModelsLabProvider",
    "ElevenLabsProvider",
]
