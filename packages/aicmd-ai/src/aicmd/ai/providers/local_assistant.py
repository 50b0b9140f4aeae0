"""Backend that shells out to a locally installed ``claude`` CLI in pipe mode.

No API key is involved: the CLI uses whatever account it is logged into.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import shutil
from typing import Any

from aicmd.ai.parse import clean_command, command_from_object
from aicmd.ai.prompt import COMMAND_SCHEMA, build_system_prompt
from aicmd.ai.types import (
    BackendOptions,
    EmptyResult,
    NetworkFailure,
    PromptContext,
    ProtocolError,
    ProviderError,
    require_text,
)

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "claude"
TERMINATE_GRACE = 0.2


def build_argv(executable: str, options: BackendOptions, context: PromptContext, text: str) -> list[str]:
    return [
        executable,
        "-p",
        "--model",
        options.model,
        "--tools",
        "",
        "--strict-mcp-config",
        "--output-format",
        "json",
        "--disable-slash-commands",
        "--json-schema",
        json.dumps(COMMAND_SCHEMA),
        "--system-prompt",
        build_system_prompt(context),
        text,
    ]


def _find_result(data: Any) -> dict[str, Any]:
    # Either a single result object or the full event list ending in one.
    if isinstance(data, dict) and data.get("type", "result") == "result":
        return data
    if isinstance(data, list):
        for item in reversed(data):
            if isinstance(item, dict) and item.get("type") == "result":
                return item
    raise ProtocolError("output contains no result object")


def parse_output(stdout: str) -> str:
    """Extract the command from the CLI's JSON output."""
    if not stdout.strip():
        raise EmptyResult("claude produced no output")
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"malformed JSON output: {e.msg}") from e

    result = _find_result(data)
    if result.get("is_error"):
        raise ProviderError(str(result.get("result") or "Unknown error"))

    structured = result.get("structured_output")
    if isinstance(structured, dict):
        return command_from_object(structured)
    return clean_command(result.get("result"))


async def _stop(process: asyncio.subprocess.Process) -> None:
    """Terminate, wait briefly, then kill."""
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATE_GRACE)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


class LocalAssistantBackend:
    name = "claude-code"

    def __init__(self, options: BackendOptions, executable: str | None = None) -> None:
        self.options = options
        self.executable = executable or options.api_key or DEFAULT_EXECUTABLE

    async def invoke(self, context: PromptContext, text: str) -> str:
        require_text(text)
        argv = build_argv(self.executable, self.options, context, text)
        if shutil.which(argv[0]) is None:
            raise NetworkFailure(f"'{argv[0]}' is not installed or not on PATH")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise NetworkFailure(f"could not start '{argv[0]}': {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.options.timeout)
        except TimeoutError as e:
            await _stop(process)
            raise NetworkFailure(f"claude did not answer within {self.options.timeout:g}s") from e
        except asyncio.CancelledError:
            logger.debug("cancelled, stopping claude pid %s", process.pid)
            # a repeated cancel must not interrupt the kill
            await asyncio.shield(_stop(process))
            raise

        output = stdout.decode("utf-8", errors="replace")
        self.options.report(self.name, argv[1:], output)

        if process.returncode and not output.strip():
            message = stderr.decode("utf-8", errors="replace").strip().splitlines()
            raise ProviderError(message[-1] if message else f"claude exited with status {process.returncode}")
        return parse_output(output)
