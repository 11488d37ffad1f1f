"""Shared fixtures and fakes for CMD AI tests."""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import patch

import pytest

from cmd_ai import config_file
from cmd_ai.context import ContextProvider
from cmd_ai.history import HistoryStore, MemoryStorage
from cmd_ai.llm.providers.base_provider import BaseProvider


@pytest.fixture(autouse=True)
def no_user_config():
    """Keep the developer's own config.toml out of the tests."""
    config_file.reset()
    with patch.object(config_file, "CONFIG_PATH", Path("/nonexistent/config.toml")):
        yield
    config_file.reset()


class FakeProvider(BaseProvider):
    """Provider returning canned content blocks, or raising."""

    def __init__(self, blocks: Optional[List[Dict[str, Any]]] = None,
                 error: Optional[Exception] = None, delay: float = 0.0):
        super().__init__(api_key="test-key", model="test-model")
        self.blocks = blocks if blocks is not None else []
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, Any]] = []
        self.initialized = False
        self.cleaned_up = False

    async def initialize(self) -> bool:
        self.initialized = True
        return True

    async def generate(self, messages, system_prompt=None, max_tokens=256,
                       temperature=0.2, **kwargs):
        self.calls.append({
            "messages": messages,
            "system_prompt": system_prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.blocks

    async def cleanup(self):
        self.cleaned_up = True


def text_reply(text: str) -> List[Dict[str, Any]]:
    return [{"type": "text", "text": text}]


class FakeContextProvider(ContextProvider):
    """Context provider with fixed answers. An Exception value is raised."""

    def __init__(self, selected=None, app=None, directory=None):
        self.selected = selected
        self.app = app
        self.directory = directory
        self.directory_calls: List[str] = []

    @staticmethod
    def _answer(value):
        if isinstance(value, Exception):
            raise value
        return value

    async def selected_text(self):
        return self._answer(self.selected)

    async def foreground_app(self):
        return self._answer(self.app)

    async def terminal_directory(self, app):
        self.directory_calls.append(app)
        return self._answer(self.directory)


@pytest.fixture
def history():
    return HistoryStore(MemoryStorage())
