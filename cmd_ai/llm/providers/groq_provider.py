"""
Groq Provider Implementation.

OpenAI-compatible chat-completion provider. The base URL is configurable,
so any OpenAI-compatible endpoint works; Groq is the default for its
fast inference.
"""

import logging
import os
from typing import Dict, List, Optional, Any
from openai import AsyncOpenAI

from .base_provider import BaseProvider
from ..utils import convert_to_standard_messages, message_to_content_blocks

logger = logging.getLogger(__name__)


class GroqProvider(BaseProvider):
    """
    Groq provider using their OpenAI-compatible API.

    Primary model: llama-3.3-70b-versatile
    """

    def __init__(self, api_key: str, model: str = "llama-3.3-70b-versatile",
                 timeout: float = 30.0, **kwargs):
        super().__init__(api_key, model, timeout, **kwargs)
        self.base_url = kwargs.get("base_url") or "https://api.groq.com/openai/v1"

    async def initialize(self) -> bool:
        """Initialize the Groq client."""
        try:
            # Clear proxy env vars — httpx doesn't support SOCKS without
            # socksio, and local HTTP proxies may be down. This is a short-lived
            # CLI process so clearing is safe.
            for k in ["ALL_PROXY", "all_proxy", "HTTP_PROXY", "http_proxy",
                       "HTTPS_PROXY", "https_proxy"]:
                os.environ.pop(k, None)

            self.client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
            logger.debug(f"Initialized Groq client with model: {self.model}")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize Groq client: {e}")
            return False

    def format_messages(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Convert standard messages to Groq/OpenAI ChatCompletion format."""
        return [
            {"role": msg.get("role"), "content": str(msg.get("content"))}
            for msg in convert_to_standard_messages(messages, system_prompt)
            if msg.get("role") in ("system", "user", "assistant")
        ]

    async def generate(
        self,
        messages: List[Dict[str, Any]],
        system_prompt: Optional[str] = None,
        max_tokens: int = 256,
        temperature: float = 0.2,
        **kwargs,
    ) -> List[Dict[str, Any]]:
        """Generate a response using Groq API."""
        if not self.client:
            raise RuntimeError("Groq client not initialized. Call initialize() first.")

        chat_params = {
            "model": self.model,
            "messages": self.format_messages(messages, system_prompt),
            "max_tokens": max_tokens,
            "temperature": temperature,
            **kwargs,
        }

        logger.debug(f"Groq request: model={self.model}, max_tokens={max_tokens}")

        try:
            response = await self.client.chat.completions.create(**chat_params)
        except Exception as e:
            logger.error(f"Groq generate error: {e}")
            raise

        if not response.choices or not response.choices[0].message:
            raise ValueError("No content in Groq response")

        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.debug("Groq response hit max_tokens")
        return message_to_content_blocks(choice.message)

    async def cleanup(self):
        """Clean up Groq client resources."""
        if self.client:
            await self.client.close()
        self.client = None
