"""
Ambient context for CMD AI.

Collects the selected text, the foreground application and, for terminal
apps, a working-directory hint. Every lookup is best effort: a failure,
a timeout or an empty answer just leaves the field out.
"""

import asyncio
import logging
import platform
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)

TERMINAL_APPS = {"Terminal", "iTerm2", "iTerm"}

DEFAULT_QUERY_TIMEOUT = 2.0


def _clean(value: Optional[str], strip: bool = True) -> Optional[str]:
    """Blank means absent. Selections keep their own whitespace."""
    if value is None or not value.strip():
        return None
    return value.strip() if strip else value


@dataclass(frozen=True)
class Context:
    """What we know about the user's environment for one request."""

    selected_text: Optional[str] = None
    foreground_app: Optional[str] = None
    working_directory: Optional[str] = None

    def __post_init__(self):
        # Frozen, so normalise through object.__setattr__
        object.__setattr__(self, "selected_text", _clean(self.selected_text, strip=False))
        object.__setattr__(self, "foreground_app", _clean(self.foreground_app))
        object.__setattr__(self, "working_directory", _clean(self.working_directory))

    def is_empty(self) -> bool:
        return not (self.selected_text or self.foreground_app or self.working_directory)


class ContextProvider(ABC):
    """
    Host capability for the three context queries.

    Each query may return None, return an empty string or raise; the
    collector treats all three the same way.
    """

    @abstractmethod
    async def selected_text(self) -> Optional[str]:
        """Text selected in the previously focused application."""
        pass

    @abstractmethod
    async def foreground_app(self) -> Optional[str]:
        """Name of the previously focused, visible application."""
        pass

    @abstractmethod
    async def terminal_directory(self, app: str) -> Optional[str]:
        """Working-directory hint for a terminal-like application."""
        pass


class NullContextProvider(ContextProvider):
    """Provider for hosts without a scripting bridge."""

    async def selected_text(self) -> Optional[str]:
        return None

    async def foreground_app(self) -> Optional[str]:
        return None

    async def terminal_directory(self, app: str) -> Optional[str]:
        return None


class MacOSContextProvider(ContextProvider):
    """Queries the host through osascript."""

    # The launcher that invoked us is frontmost, so take the first
    # visible app behind it.
    APP_SCRIPT = """
        tell application "System Events"
            set appList to name of every application process whose visible is true and frontmost is false
            if (count of appList) > 0 then
                return item 1 of appList
            end if
        end tell
    """

    SELECTION_SCRIPT = """
        tell application "System Events"
            set appList to every application process whose visible is true and frontmost is false
            if (count of appList) > 0 then
                set focusedElement to value of attribute "AXFocusedUIElement" of (item 1 of appList)
                return value of attribute "AXSelectedText" of focusedElement
            end if
        end tell
    """

    # Primary query first, fallback second
    DIRECTORY_SCRIPTS = {
        "Terminal": [
            'tell application "Terminal" to get custom title of selected tab of front window',
            'tell application "Terminal" to get name of front window',
        ],
        "iTerm2": [
            'tell application "iTerm2" to tell current session of current window to get variable named "path"',
            'tell application "iTerm2" to tell current session of current window to get name',
        ],
    }
    DIRECTORY_SCRIPTS["iTerm"] = DIRECTORY_SCRIPTS["iTerm2"]

    async def _osascript(self, script: str) -> Optional[str]:
        proc = await asyncio.create_subprocess_exec(
            "osascript", "-e", script,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        try:
            stdout, _ = await proc.communicate()
        except asyncio.CancelledError:
            # Timed out upstream; don't leave osascript running
            if proc.returncode is None:
                proc.kill()
                # Reap it, even if we are cancelled again meanwhile
                await asyncio.shield(proc.wait())
            raise
        if proc.returncode != 0:
            logger.debug(f"osascript exited with {proc.returncode}")
            return None
        # osascript appends a newline to its result
        return stdout.decode("utf-8", errors="replace").rstrip("\n") or None

    async def selected_text(self) -> Optional[str]:
        return await self._osascript(self.SELECTION_SCRIPT)

    async def foreground_app(self) -> Optional[str]:
        return await self._osascript(self.APP_SCRIPT)

    async def terminal_directory(self, app: str) -> Optional[str]:
        for script in self.DIRECTORY_SCRIPTS.get(app, []):
            result = await self._osascript(script)
            if result and result.strip():
                return result
        return None


def default_provider() -> ContextProvider:
    """Pick the provider for the current host."""
    if platform.system() == "Darwin":
        return MacOSContextProvider()
    return NullContextProvider()


class ContextCollector:
    """Runs the context queries in order and never fails."""

    def __init__(self, provider: Optional[ContextProvider] = None,
                 timeout: float = DEFAULT_QUERY_TIMEOUT):
        self.provider = provider or NullContextProvider()
        self.timeout = timeout

    async def _query(self, label: str, query: Callable[..., Awaitable[Optional[str]]], *args) -> Optional[str]:
        try:
            value = await asyncio.wait_for(query(*args), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Context query '{label}' timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.debug(f"Context query '{label}' failed: {e}")
            return None
        if value is not None and not isinstance(value, str):
            logger.debug(f"Context query '{label}' returned {type(value).__name__}, ignoring")
            return None
        return _clean(value, strip=(label != "selected_text"))

    async def collect(self) -> Context:
        """Selected text, then foreground app, then directory for terminal apps."""
        selected = await self._query("selected_text", self.provider.selected_text)
        app = await self._query("foreground_app", self.provider.foreground_app)

        directory = None
        if app in TERMINAL_APPS:
            directory = await self._query("terminal_directory", self.provider.terminal_directory, app)

        context = Context(
            selected_text=selected,
            foreground_app=app,
            working_directory=directory,
        )
        fields: List[str] = [k for k, v in vars(context).items() if v]
        logger.debug(f"Collected context fields: {fields or 'none'}")
        return context
