"""Default Tab completion: complete the filename before the cursor."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

WORD_DELIMITERS = frozenset({" ", "\t", '"', "'", "=", ";", "|", "&", "<", ">", "(", ")"})


def find_word_start(text: str) -> int:
    """Index where the word ending at the end of *text* begins."""
    for i in range(len(text) - 1, -1, -1):
        if text[i] in WORD_DELIMITERS:
            return i + 1
    return 0


@dataclass
class CompletionResult:
    value: str
    cursor: int


class Completer(Protocol):
    def complete(self, value: str, cursor: int) -> CompletionResult | None:
        """Return the completed buffer, or ``None`` when nothing completes."""
        ...


def _expand_home(path: str) -> str:
    if path == "~":
        return str(Path.home())
    if path.startswith("~/"):
        return os.path.join(str(Path.home()), path[2:])
    return path


class FilenameCompleter:
    """Completes the word before the cursor against the filesystem.

    A unique match is completed in full (directories get a trailing
    ``/``, files a trailing space). Several matches are extended to
    their longest common prefix.
    """

    def __init__(self, base_path: str | None = None) -> None:
        self._base_path = base_path

    @property
    def base_path(self) -> str:
        return self._base_path or os.getcwd()

    def candidates(self, word: str) -> list[str]:
        """Names matching *word*, with directories marked by a trailing ``/``."""
        dir_part, file_part = os.path.split(word)
        expanded = _expand_home(dir_part) if dir_part else ""
        search_dir = expanded if os.path.isabs(expanded) else os.path.join(self.base_path, expanded)

        try:
            entries = list(os.scandir(search_dir))
        except OSError:
            return []

        matches: list[str] = []
        for entry in entries:
            if not entry.name.startswith(file_part):
                continue
            if entry.name.startswith(".") and not file_part.startswith("."):
                continue
            try:
                is_directory = entry.is_dir()
            except OSError:
                is_directory = False
            matches.append(entry.name + ("/" if is_directory else ""))
        return sorted(matches)

    def complete(self, value: str, cursor: int) -> CompletionResult | None:
        before, after = value[:cursor], value[cursor:]
        start = find_word_start(before)
        word = before[start:]
        dir_part, file_part = os.path.split(word)

        matches = self.candidates(word)
        if not matches:
            return None

        if len(matches) == 1:
            name = matches[0]
            completed = name if name.endswith("/") else name + " "
        else:
            completed = os.path.commonprefix(matches)
            if len(completed) <= len(file_part):
                return None

        new_word = os.path.join(dir_part, completed) if dir_part else completed
        new_before = before[:start] + new_word
        if new_before == before:
            return None
        return CompletionResult(value=new_before + after, cursor=len(new_before))
