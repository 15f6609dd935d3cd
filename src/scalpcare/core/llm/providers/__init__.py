"""Report generator provider implementations."""

from scalpcare.core.llm.providers.anthropic import AnthropicProvider
from scalpcare.core.llm.providers.mock import MockProvider
from scalpcare.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
