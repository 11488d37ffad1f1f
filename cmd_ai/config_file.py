"""
Optional config file support for CMD AI.

Reads ~/.config/cmd-ai/config.toml if it exists.
Missing config or invalid values fall back to defaults.
"""

import logging
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "cmd-ai" / "config.toml"

DEFAULTS: Dict[str, Any] = {
    "model": None,  # None means use provider default
    "base_url": None,
    "timeout": None,  # None means CMD_AI_TIMEOUT or 30s
    "max_tokens": 256,
    "temperature": 0.2,
    "context_enabled": True,
    "context_timeout": 2.0,
    "debug": False,
}

_config: Dict[str, Any] = {}
_loaded = False


def _validate_int(value: Any, key: str, minimum: int = 1) -> int | None:
    """Validate an integer config value. Returns None if invalid."""
    if isinstance(value, bool):
        print(f"cmd-ai: config '{key}' must be an integer, ignoring", file=sys.stderr)
        return None
    try:
        val = int(value)
        if val < minimum:
            print(f"cmd-ai: config '{key}' must be >= {minimum}, ignoring", file=sys.stderr)
            return None
        return val
    except (TypeError, ValueError):
        print(f"cmd-ai: config '{key}' must be an integer, ignoring", file=sys.stderr)
        return None


def _validate_float(value: Any, key: str, minimum: float = 0.0, maximum: float | None = None) -> float | None:
    """Validate a numeric config value. Returns None if invalid."""
    if isinstance(value, bool):
        print(f"cmd-ai: config '{key}' must be a number, ignoring", file=sys.stderr)
        return None
    try:
        val = float(value)
    except (TypeError, ValueError):
        print(f"cmd-ai: config '{key}' must be a number, ignoring", file=sys.stderr)
        return None
    if val < minimum or (maximum is not None and val > maximum):
        bound = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        print(f"cmd-ai: config '{key}' must be {bound}, ignoring", file=sys.stderr)
        return None
    return val


def _validate_str(value: Any, key: str) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    print(f"cmd-ai: config '{key}' must be a non-empty string, ignoring", file=sys.stderr)
    return None


def load_config() -> Dict[str, Any]:
    """
    Load config from TOML file, merging with defaults.

    Returns a dict with keys: model, base_url, timeout, max_tokens,
    temperature, context_enabled, context_timeout, debug.
    """
    global _config, _loaded

    if _loaded:
        return _config

    _config = dict(DEFAULTS)
    _loaded = True

    if not CONFIG_PATH.exists():
        logger.debug("No config file at %s, using defaults", CONFIG_PATH)
        return _config

    try:
        with open(CONFIG_PATH, "rb") as f:
            data = tomllib.load(f)
    except Exception as e:
        print(f"cmd-ai: error reading config: {e}", file=sys.stderr)
        return _config

    # [provider] section
    provider_section = data.get("provider", {})
    if isinstance(provider_section, dict):
        for key in ("model", "base_url"):
            value = provider_section.get(key)
            if value is not None:
                val = _validate_str(value, key)
                if val is not None:
                    _config[key] = val

        timeout = provider_section.get("timeout")
        if timeout is not None:
            val = _validate_float(timeout, "timeout", minimum=1.0)
            if val is not None:
                _config["timeout"] = val

    # [generation] section
    generation_section = data.get("generation", {})
    if isinstance(generation_section, dict):
        max_tokens = generation_section.get("max_tokens")
        if max_tokens is not None:
            val = _validate_int(max_tokens, "max_tokens", minimum=16)
            if val is not None:
                _config["max_tokens"] = val

        temperature = generation_section.get("temperature")
        if temperature is not None:
            val = _validate_float(temperature, "temperature", maximum=2.0)
            if val is not None:
                _config["temperature"] = val

    # [context] section
    context_section = data.get("context", {})
    if isinstance(context_section, dict):
        enabled = context_section.get("enabled")
        if isinstance(enabled, bool):
            _config["context_enabled"] = enabled

        query_timeout = context_section.get("query_timeout")
        if query_timeout is not None:
            val = _validate_float(query_timeout, "query_timeout", minimum=0.1)
            if val is not None:
                _config["context_timeout"] = val

    # [debug] section
    debug_section = data.get("debug", {})
    if isinstance(debug_section, dict):
        enabled = debug_section.get("enabled")
        if isinstance(enabled, bool):
            _config["debug"] = enabled

    logger.debug("Loaded config: %s", _config)
    return _config


def get(key: str) -> Any:
    """Get a config value by key."""
    cfg = load_config()
    return cfg.get(key, DEFAULTS.get(key))


def reset():
    """Reset loaded config (for testing)."""
    global _config, _loaded
    _config = {}
    _loaded = False
