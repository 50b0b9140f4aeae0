"""Debug logging: stdlib logging setup plus the request/response trace file."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(debug: bool = False, log_file: str | None = None, *, interactive: bool = False) -> None:
    """Route ``aicmd`` log records.

    With *debug* every record goes to *log_file*; otherwise only warnings
    and errors are kept. They reach stderr, except for *interactive* runs,
    where stderr is the raw terminal the editor draws on: those go to
    *log_file*, or nowhere when there is none.
    """
    if debug and log_file:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, filename=log_file, force=True)
    elif interactive and log_file:
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, filename=log_file, force=True)
    elif interactive:
        logging.basicConfig(level=logging.WARNING, handlers=[logging.NullHandler()], force=True)
    else:
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, force=True)


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _format_payload(payload: Any) -> str:
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError:
            return payload
    try:
        return json.dumps(payload, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return repr(payload)


class DebugLog:
    """Appends one block per backend call to a plain-text file.

    Used as the gateway's payload hook. Write failures never propagate.
    """

    def __init__(self, path: str) -> None:
        self.path = path

    def format_entry(self, backend: str, request: Any, response: Any) -> str:
        return "\n".join(
            [
                f"=== {_timestamp()} [{backend}] ===",
                "--- REQUEST ---",
                _format_payload(request),
                "--- RESPONSE ---",
                _format_payload(response),
                "",
                "",
            ]
        )

    def __call__(self, backend: str, request: Any, response: Any) -> None:
        entry = self.format_entry(backend, request, response)
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(entry)
        except OSError as e:
            logger.debug("could not write debug log %s: %s", self.path, e)
