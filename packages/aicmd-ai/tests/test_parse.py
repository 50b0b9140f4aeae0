"""Tests for response cleaning and the prompt builder."""

from __future__ import annotations

import pytest

from aicmd.ai.parse import clean_command, command_from_object, strip_fences
from aicmd.ai.prompt import COMMAND_SCHEMA, build_system_prompt
from aicmd.ai.types import EmptyResult, PromptContext, ProtocolError


class TestStripFences:
    def test_plain(self) -> None:
        assert strip_fences("  git status \n") == "git status"

    def test_fenced_block_with_language(self) -> None:
        assert strip_fences("```bash\nls -la\n```") == "ls -la"

    def test_fenced_block_without_language(self) -> None:
        assert strip_fences("```\nls -la\n```") == "ls -la"

    def test_single_line_fence(self) -> None:
        assert strip_fences("```ls -la```") == "ls -la"

    def test_inline_backticks(self) -> None:
        assert strip_fences("`du -sh *`") == "du -sh *"

    def test_inner_backticks_kept(self) -> None:
        assert strip_fences("echo `date` `whoami`") == "echo `date` `whoami`"


class TestCleanCommand:
    def test_plain_text(self) -> None:
        assert clean_command("command ls -la\n") == "command ls -la"

    def test_first_non_empty_line_only(self) -> None:
        assert clean_command("\n\nfind . -name '*.py'\nfind . -type f") == "find . -name '*.py'"

    def test_json_object(self) -> None:
        assert clean_command('{"command": "git status"}') == "git status"

    def test_fenced_json(self) -> None:
        assert clean_command('```json\n{"command": "git log -1"}\n```') == "git log -1"

    def test_json_multi_line_command(self) -> None:
        raw = '{"command": "for f in *.log; do\\n  gzip \\"$f\\"\\ndone"}'
        assert clean_command(raw) == 'for f in *.log; do\n  gzip "$f"\ndone'

    def test_malformed_json(self) -> None:
        with pytest.raises(ProtocolError):
            clean_command('{"command": ')

    def test_json_without_command(self) -> None:
        with pytest.raises(ProtocolError):
            clean_command('{"cmd": "ls"}')

    def test_empty(self) -> None:
        with pytest.raises(EmptyResult):
            clean_command("   \n ")
        with pytest.raises(EmptyResult):
            clean_command("```\n```")
        with pytest.raises(EmptyResult):
            clean_command(None)

    def test_json_with_empty_command(self) -> None:
        with pytest.raises(EmptyResult):
            clean_command('{"command": ""}')


class TestCommandFromObject:
    def test_extracts_and_trims(self) -> None:
        assert command_from_object({"command": "  ls  "}) == "ls"

    def test_rejects_non_objects(self) -> None:
        with pytest.raises(ProtocolError):
            command_from_object(["ls"])

    def test_rejects_non_string_command(self) -> None:
        with pytest.raises(ProtocolError):
            command_from_object({"command": 3})

    def test_json_inside_command_is_not_unwrapped_again(self) -> None:
        assert command_from_object({"command": '{"a": 1}'}) == '{"a": 1}'

    def test_multi_line_command_kept_whole(self) -> None:
        loop = 'for f in *.log; do\n  gzip "$f"\ndone'
        assert command_from_object({"command": f"\n{loop}\n"}) == loop

    def test_fenced_multi_line_command(self) -> None:
        assert command_from_object({"command": "```sh\nmake \\\n  -j8\n```"}) == "make \\\n  -j8"

    def test_empty_command(self) -> None:
        with pytest.raises(EmptyResult):
            command_from_object({"command": "  \n"})


class TestPrompt:
    def test_context_is_appended(self) -> None:
        prompt = build_system_prompt(PromptContext(os_name="Linux", shell="zsh", cwd="/tmp/work"))
        assert prompt.startswith("Translate natural language to a single shell command.")
        assert "OS: Linux\nShell: zsh\nPWD: /tmp/work" in prompt
        assert prompt.rstrip().endswith("</context>")

    def test_schema_requires_command(self) -> None:
        assert COMMAND_SCHEMA["required"] == ["command"]
        assert COMMAND_SCHEMA["additionalProperties"] is False

    def test_current_context(self) -> None:
        ctx = PromptContext.current()
        assert ctx.os_name
        assert ctx.cwd
