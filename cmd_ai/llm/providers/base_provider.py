"""
Base Provider Abstract Class for LLM APIs.

Simplified for CMD AI: a single system prompt plus one user turn,
returned as a list of content blocks.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
import logging

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """
    Abstract base class for LLM providers.

    generate() returns content blocks: dicts with a "type" key. Text
    blocks are {"type": "text", "text": "..."}; anything else (refusals,
    tool calls) uses its own type and is never treated as a command.
    """

    def __init__(self, api_key: str, model: str, timeout: float = 30.0, **kwargs):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.config = kwargs
        self.client = None

    @abstractmethod
    async def initialize(self) -> bool:
        """Initialize the provider client. Returns True on success."""
        pass

    @abstractmethod
    async def generate(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: int = 256,
        temperature: float = 0.2,
        **kwargs,
    ) -> List[Dict[str, Any]]:
        """
        Generate a response from the LLM.

        Raises whatever the underlying client raises on failure.
        """
        pass

    async def cleanup(self):
        """Clean up provider resources."""
        self.client = None
