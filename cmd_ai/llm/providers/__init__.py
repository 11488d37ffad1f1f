"""LLM Provider modules for CMD AI."""

from .base_provider import BaseProvider
from .groq_provider import GroqProvider

__all__ = ["BaseProvider", "GroqProvider"]
