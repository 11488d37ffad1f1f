"""
System prompt and user-turn builder for CMD AI.
"""

from dataclasses import dataclass

from .context import Context

SYSTEM_PROMPT = """You are a CLI command generator. Given a natural language description, output ONLY the exact command to run. No explanations, no markdown, no code blocks, no backticks, no surrounding quotes - just the raw command itself.

Rules:
- Output only the command, nothing else
- If multiple commands are needed, chain them with && or ;
- Use common Unix conventions
- Prefer portable/POSIX commands when possible
- If the request is ambiguous, make a reasonable assumption and output a working command. Never ask for clarification.

Examples:
User: "find all js files modified in the last day"
Output: find . -name "*.js" -mtime -1

User: "list disk usage sorted by size"
Output: du -sh * | sort -h

User: "kill process on port 3000"
Output: lsof -ti:3000 | xargs kill -9"""

CONTEXT_RULE = (
    "\n\nContext about the user's environment (current app, current directory, "
    "selected text) is included with the request. Use it to inform your command."
)


@dataclass(frozen=True)
class Prompt:
    """The fixed system instruction plus the user turn sent to the model."""

    system: str
    user: str


def build_user_turn(request: str, context: Context) -> str:
    """Prefix the request with a Context block listing only the fields present."""
    parts = []
    if context.foreground_app:
        parts.append(f"Current app: {context.foreground_app}")
    if context.working_directory:
        parts.append(f"Current directory: {context.working_directory}")
    if context.selected_text:
        parts.append(f"Selected text:\n{context.selected_text}")

    if parts:
        return "Context:\n" + "\n".join(parts) + f"\n\nRequest: {request}"
    return request


def build_prompt(request: str, context: Context) -> Prompt:
    """Build the prompt for one generation. Same inputs, same output."""
    system = SYSTEM_PROMPT if context.is_empty() else SYSTEM_PROMPT + CONTEXT_RULE
    return Prompt(system=system, user=build_user_turn(request, context))
