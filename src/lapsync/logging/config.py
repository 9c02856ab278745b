"""Logging configuration helpers shared by the library and the CLI."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, TextIO

__all__ = ["JsonFormatter", "setup_logging"]

ROOT_LOGGER_NAME = "lapsync"
_HANDLER_MARKER = "_lapsync_handler"

# Attributes present on every ``LogRecord``; anything else came from ``extra``.
_RESERVED_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _json_safe(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_json_safe(item) for item in value]
    return str(value)


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON objects.

    Fields passed through ``extra`` are merged into the payload so that
    structured context (``event``, ``lap_id``...) survives serialisation.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRIBUTES or key.startswith("_"):
                continue
            payload[key] = _json_safe(value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


def _resolve_level(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        candidate = logging.getLevelName(value.strip().upper())
        if isinstance(candidate, int):
            return candidate
    return logging.INFO


def _build_handler(output: Any) -> logging.Handler:
    if output is None or output == "stderr":
        return logging.StreamHandler(sys.stderr)
    if output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if isinstance(output, (str, Path)):
        destination = Path(output).expanduser()
        destination.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(destination, encoding="utf8")
    stream: TextIO = output
    return logging.StreamHandler(stream)


def setup_logging(config: Mapping[str, Any] | None = None) -> logging.Logger:
    """Configure the ``lapsync`` logger from the ``logging`` table of ``config``.

    Recognised keys are ``level`` (name or number), ``output`` (``stdout``,
    ``stderr``, a file path or a text stream) and ``format`` (``json`` or
    ``text``).  Calling the helper again replaces the handler it installed
    previously instead of stacking duplicates.
    """

    logging_cfg: Mapping[str, Any] = {}
    if config:
        candidate = config.get("logging", {})
        if isinstance(candidate, Mapping):
            logging_cfg = candidate

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    handler = _build_handler(logging_cfg.get("output", "stderr"))
    if str(logging_cfg.get("format", "json")).lower() == "text":
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    else:
        handler.setFormatter(JsonFormatter())
    setattr(handler, _HANDLER_MARKER, True)

    logger.addHandler(handler)
    logger.setLevel(_resolve_level(logging_cfg.get("level", "info")))
    return logger
