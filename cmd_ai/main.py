"""
CMD AI entrypoint.

Reads one JSON action from stdin and writes the result to stdout:

    {"query": "..."}                       generate a command (default action)
    {"action": "reuse", "index": 0}        regenerate from a history entry
    {"action": "edit", "index": 0}         print a history entry for editing
    {"action": "history", "search": "..."} list (filtered) history
    {"action": "clear"}                    clear history

Confirmations and errors go to stderr, so stdout holds only what the
calling shell widget should paste.
"""

import asyncio
import json
import logging
import sys

from . import config_file
from .errors import CmdAIError


def _setup_logging() -> None:
    level = logging.DEBUG if config_file.get("debug") else logging.CRITICAL
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )


def build_pipeline():
    """Wire the pipeline from config."""
    from .context import ContextCollector, NullContextProvider, default_provider
    from .history import HistoryStore
    from .llm.generator import CommandGenerator
    from .pipeline import Pipeline

    provider = default_provider() if config_file.get("context_enabled") else NullContextProvider()
    return Pipeline(
        collector=ContextCollector(provider, timeout=config_file.get("context_timeout")),
        generator=CommandGenerator(),
        history=HistoryStore(),
    )


def _deliver(command: str) -> None:
    """Hand the command to the paste target and confirm."""
    print(command, end="")
    sys.stdout.flush()
    print("Command pasted", file=sys.stderr)


async def handle(data: dict) -> int:
    """Run one action. Returns the process exit code."""
    action = data.get("action", "generate")
    pipeline = None

    try:
        pipeline = build_pipeline()

        if action == "history":
            for entry in pipeline.history.search(str(data.get("search", ""))):
                print(entry)
            return 0

        if action == "clear":
            pipeline.clear_history()
            print("History cleared", file=sys.stderr)
            return 0

        if action == "edit":
            print(pipeline.edit(int(data.get("index", 0))), end="")
            return 0

        if action == "reuse":
            outcome = await pipeline.reuse(int(data.get("index", 0)))
        elif action == "generate":
            outcome = await pipeline.run(str(data.get("query", "")))
        else:
            print(f"cmd-ai: unknown action '{action}'", file=sys.stderr)
            return 1

        if not outcome.ok:
            print(f"cmd-ai: {outcome.error}", file=sys.stderr)
            return 1

        _deliver(outcome.command)
        return 0

    except CmdAIError as e:
        print(f"cmd-ai: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        # Reported like any other error, without a traceback
        logging.getLogger(__name__).debug("Action failed", exc_info=True)
        print(f"cmd-ai: {e or type(e).__name__}", file=sys.stderr)
        return 1
    finally:
        if pipeline is not None:
            await pipeline.generator.cleanup()


def main():
    """Read stdin, dispatch the action, exit with its status."""
    _setup_logging()
    try:
        raw = sys.stdin.read().strip()
        if not raw:
            sys.exit(1)

        data = json.loads(raw)
        if not isinstance(data, dict):
            sys.exit(1)

        sys.exit(asyncio.run(handle(data)))

    except json.JSONDecodeError:
        print("cmd-ai: input is not valid JSON", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(1)


if __name__ == "__main__":
    main()
