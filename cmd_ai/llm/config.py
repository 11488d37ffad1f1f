"""
Configuration for CMD AI LLM services.

Loads the API key and model settings from .env file,
with optional overrides from ~/.config/cmd-ai/config.toml.
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

from .. import config_file

logger = logging.getLogger(__name__)

# Load .env from project root (cmd_ai/llm/config.py -> cmd_ai/ -> project root)
_env_paths = [
    Path(__file__).parent.parent.parent / ".env",  # project_root/.env
    Path.cwd() / ".env",
]

_env_loaded = False
for _env_path in _env_paths:
    if _env_path.exists():
        load_dotenv(dotenv_path=_env_path)
        logger.debug(f"Loaded .env from {_env_path}")
        _env_loaded = True
        break

if not _env_loaded:
    logger.debug(".env not found; using environment variables if set.")

# API key: dedicated variable first, then the provider's own
API_KEY = os.getenv("CMD_AI_API_KEY") or os.getenv("GROQ_API_KEY")

# Model defaults — config.toml overrides env vars, which override hardcoded defaults
MODEL = config_file.get("model") or os.getenv("CMD_AI_MODEL", "llama-3.3-70b-versatile")
BASE_URL = config_file.get("base_url") or os.getenv("CMD_AI_BASE_URL", "https://api.groq.com/openai/v1")

DEFAULT_TIMEOUT = 30.0


def resolve_timeout() -> float:
    """config.toml, then CMD_AI_TIMEOUT, then the default. Invalid values are skipped."""
    configured = config_file.get("timeout")
    if configured is not None:
        return configured
    env_value = os.getenv("CMD_AI_TIMEOUT")
    if env_value:
        val = config_file._validate_float(env_value, "CMD_AI_TIMEOUT", minimum=1.0)
        if val is not None:
            return val
    return DEFAULT_TIMEOUT


# Timeouts (fast for CLI use)
HTTP_TIMEOUT = resolve_timeout()
