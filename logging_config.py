"""
logging_config.py - Logging setup for the CLI and the API.

Every module logs through `get_logger(__name__)` with pipe-delimited
messages:

    analyze_complete | vendor='Grainger' | doc_type=Packing_Slips | po=PO00044162

The entry points (main.py, api.py) call `setup_logging` exactly once. With
`json_format=True` each record becomes one JSON object with the event name
and its key=value pairs split out, so log tooling can filter on `event` or
`po` directly.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Union

TEXT_FORMAT = "%(asctime)s [%(name)-20s] %(levelname)-7s %(message)s"
DATE_FORMAT = "%H:%M:%S"
MESSAGE_SEPARATOR = " | "

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("urllib3", "PIL", "multipart", "python_multipart")


def split_event(message: str) -> dict[str, Any]:
    """Split an `event | key=value | ...` message into a dict.

    Parts that are not key=value pairs are kept, in order, under "detail".

    >>> split_event("filing_moved | source=a1b2.jpg | target=out.jpg")
    {'event': 'filing_moved', 'source': 'a1b2.jpg', 'target': 'out.jpg'}
    >>> split_event("plain message")
    {'event': 'plain message'}
    """
    head, *parts = [part.strip() for part in message.split(MESSAGE_SEPARATOR)]
    fields: dict[str, Any] = {"event": head}
    for part in parts:
        key, sep, value = part.partition("=")
        if sep and key and " " not in key:
            fields[key] = value
        else:
            fields.setdefault("detail", []).append(part)
    return fields


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, with the message split by `split_event`."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "module": record.name,
        }
        payload.update(split_event(record.getMessage()))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure root logger with consistent formatting.

    Args:
        level: Logging level.
        json_format: If True, emit one JSON object per line.
        log_file: Optional file that receives the same lines as stderr.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if json_format:
        formatter: logging.Formatter = JsonLineFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
