"""
Command generator for CMD AI.

Sends the prompt to the provider and extracts one command string.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .providers.base_provider import BaseProvider
from .providers.groq_provider import GroqProvider
from .utils import first_text_block
from . import config
from .. import config_file
from ..errors import ModelError
from ..prompts import Prompt

logger = logging.getLogger(__name__)

# Debug log directory
_DEBUG_LOG_DIR = Path.home() / ".local" / "share" / "cmd-ai"
_DEBUG_LOG_FILE = _DEBUG_LOG_DIR / "debug.log"


def _debug_enabled() -> bool:
    return bool(config_file.get("debug"))


def _debug_log(label: str, data: Any) -> None:
    """Append a timestamped entry to the debug log file."""
    if not _debug_enabled():
        return
    try:
        _DEBUG_LOG_DIR.mkdir(parents=True, exist_ok=True)
        with open(_DEBUG_LOG_FILE, "a") as f:
            ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            f.write(f"\n{'='*72}\n")
            f.write(f"[{ts}] {label}\n")
            f.write(f"{'='*72}\n")
            if isinstance(data, (dict, list)):
                f.write(json.dumps(data, indent=2, default=str))
            else:
                f.write(str(data))
            f.write("\n")
    except Exception:
        pass  # never break the CLI for debug logging


def create_default_provider() -> BaseProvider:
    """
    Create the provider from config settings.

    Raises:
        ModelError: If no API key is configured
    """
    if not config.API_KEY:
        raise ModelError("No API key set. Configure CMD_AI_API_KEY in .env or the environment.")

    return GroqProvider(
        api_key=config.API_KEY,
        model=config.MODEL,
        timeout=config.HTTP_TIMEOUT,
        base_url=config.BASE_URL,
    )


class CommandGenerator:
    """
    Turns a Prompt into a command string.

    generate() returns the trimmed text of the first text block, or None
    when the model answered with no text or whitespace only. Any failure
    of the call itself is raised as ModelError carrying the upstream message.
    """

    def __init__(
        self,
        provider: Optional[BaseProvider] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.provider = provider
        self.max_tokens = config_file.get("max_tokens") if max_tokens is None else max_tokens
        self.temperature = config_file.get("temperature") if temperature is None else temperature
        self.timeout = config.HTTP_TIMEOUT if timeout is None else timeout
        self._initialized = False

    async def _ensure_provider(self) -> BaseProvider:
        if self.provider is None:
            self.provider = create_default_provider()
        if not self._initialized:
            try:
                ok = await self.provider.initialize()
            except Exception as e:
                raise ModelError(str(e) or type(e).__name__) from e
            if not ok:
                raise ModelError("Failed to initialize the model client")
            self._initialized = True
        return self.provider

    async def generate(self, prompt: Prompt) -> Optional[str]:
        provider = await self._ensure_provider()
        messages = [{"role": "user", "content": prompt.user}]

        _debug_log("REQUEST", {
            "system_prompt": prompt.system,
            "messages": messages,
            "max_tokens": self.max_tokens,
        })

        try:
            blocks = await asyncio.wait_for(
                provider.generate(
                    messages=messages,
                    system_prompt=prompt.system,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            _debug_log("ERROR", "timeout")
            logger.error(f"Model call timed out after {self.timeout}s")
            raise ModelError(f"Request timed out after {self.timeout:g}s")
        except Exception as e:
            _debug_log("ERROR", str(e))
            logger.error(f"LLM generate error: {e}")
            raise ModelError(str(e) or type(e).__name__) from e

        _debug_log("RESPONSE", blocks)

        text = first_text_block(blocks)
        if text is None or not text.strip():
            logger.debug("Model returned no usable text")
            return None
        # Fences or quotes the model added anyway are left in place
        return text.strip()

    async def cleanup(self):
        if self.provider is not None and self._initialized:
            try:
                await self.provider.cleanup()
            except Exception as e:
                logger.error(f"Cleanup error: {e}")
        self._initialized = False
