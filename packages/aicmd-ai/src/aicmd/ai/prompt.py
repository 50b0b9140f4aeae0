"""System prompt and structured-output schema shared by all backends."""

from __future__ import annotations

from typing import Any

from aicmd.ai.types import PromptContext

COMMAND_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "command": {
            "type": "string",
            "description": "The shell command to execute",
        },
    },
    "required": ["command"],
    "additionalProperties": False,
}

SYSTEM_PROMPT = """Translate natural language to a single shell command.

RULES:
- Output EXACTLY ONE command, nothing else
- No explanations, no alternatives, no markdown
- No code blocks, no backticks
- If ambiguous, pick the most reasonable interpretation
- Prefix standard tools with `command` to bypass aliases
- If the input is already a partial command, complete it
- Respond as JSON: {"command": "<the command>"}

EFFICIENCY:
- Avoid spawning processes per item: use -exec {} + not -exec {} \\;
- Use built-in formatting: find -printf, stat -c (not piping to awk/sed)
- Add limits on unbounded searches: head, -maxdepth, 2>/dev/null for errors
- Prefer human-readable output where appropriate (-h flags for sizes)

<examples>
User: list files
command ls -la

User: find python files modified today
command find . -name "*.py" -mtime -1

User: search for TODO in js files
command grep -r "TODO" --include="*.js" .

User: kill process on port 3000
command lsof -ti:3000 | xargs kill -9

User: show disk usage by folder sorted by size
command du -h -d 1 | sort -hr | head -20

User: git st
git status
</examples>"""

CONTEXT_TEMPLATE = """<context>
OS: {os_name}
Shell: {shell}
PWD: {cwd}
</context>"""


def build_system_prompt(context: PromptContext) -> str:
    """Return the system prompt with the caller's environment appended."""
    return SYSTEM_PROMPT + "\n" + CONTEXT_TEMPLATE.format(
        os_name=context.os_name,
        shell=context.shell,
        cwd=context.cwd,
    )
