"""Turn raw backend text into exactly one command string."""

from __future__ import annotations

import json
import re
from typing import Any

from aicmd.ai.types import EmptyResult, ProtocolError

_FENCE_RE = re.compile(r"^```(?:[\w+-]*[ \t]*\n)?(.*?)```$", re.DOTALL)


def strip_fences(text: str) -> str:
    """Remove surrounding whitespace, markdown fences and inline backticks."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1).strip()
    if len(text) >= 2 and text.startswith("`") and text.endswith("`") and "`" not in text[1:-1]:
        text = text[1:-1].strip()
    return text


def command_from_object(data: Any) -> str:
    """Extract the ``command`` field of a structured-output object."""
    if not isinstance(data, dict):
        raise ProtocolError(f"expected a JSON object, got {type(data).__name__}")
    command = data.get("command")
    if command is None:
        raise ProtocolError("response has no 'command' field")
    if not isinstance(command, str):
        raise ProtocolError("'command' must be a string")
    # structured answers may span lines (loops, heredocs); keep them whole
    command = strip_fences(command)
    if not command:
        raise EmptyResult("backend returned an empty command")
    return command


def clean_command(raw: str | None) -> str:
    """Return the single command carried by *raw*.

    Accepts plain text, fenced text, or a JSON object with a ``command``
    field (itself possibly fenced). Structured commands are kept whole;
    multi-line plain text keeps only its first non-empty line. Raises
    :class:`EmptyResult` when nothing is left.
    """
    if raw is None:
        raise EmptyResult("backend returned no text")

    text = strip_fences(raw)

    if text.startswith("{"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"malformed JSON response: {e.msg}") from e
        return command_from_object(data)

    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        raise EmptyResult("backend returned an empty command")
    return lines[0]
