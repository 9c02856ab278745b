"""Command line application entry point for lapsync."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..configuration import load_config
from ..logging.config import setup_logging
from .errors import CliError, log_cli_error
from .parser import build_parser


def _preliminary_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--config", dest="config_path", type=Path, default=None)
    parser.add_argument("--log-level", dest="log_level", default=None)
    parser.add_argument("--log-output", dest="log_output", default=None)
    parser.add_argument("--log-format", dest="log_format", choices=("json", "text"), default=None)
    return parser


def _load_cli_config(path: Optional[Path]) -> Dict[str, Any]:
    try:
        return load_config(path)
    except FileNotFoundError as exc:
        raise CliError(str(exc), category="not_found", context={"path": str(path)}) from exc
    except ValueError as exc:  # tomllib.TOMLDecodeError subclasses ValueError
        raise CliError(
            f"Invalid configuration file {path}: {exc}",
            category="usage",
            context={"path": str(path)},
        ) from exc


def _report(exc: CliError) -> None:
    if not exc.logged:
        log_cli_error(exc.payload, exc_info=exc)
        exc.logged = True
    message = exc.payload.message
    if message:
        sys.stdout.write(message)
        if not message.endswith("\n"):
            sys.stdout.write("\n")


def run_cli(args: Optional[Sequence[str]] = None) -> str:
    """Execute the lapsync command line interface and return its output."""

    preliminary, _ = _preliminary_parser().parse_known_args(args)

    try:
        config = _load_cli_config(preliminary.config_path)
    except CliError as exc:
        setup_logging({"logging": {"level": "info", "output": "stderr", "format": "json"}})
        _report(exc)
        raise SystemExit(exc.status_code) from exc

    logging_config = dict(config.get("logging", {}))
    if preliminary.log_level is not None:
        logging_config["level"] = preliminary.log_level
    if preliminary.log_output is not None:
        logging_config["output"] = preliminary.log_output
    if preliminary.log_format is not None:
        logging_config["format"] = preliminary.log_format
    logging_config.setdefault("level", "info")
    logging_config.setdefault("output", "stderr")
    logging_config.setdefault("format", "json")
    config["logging"] = logging_config
    setup_logging(config)

    parser = build_parser(config)
    namespace = parser.parse_args(args)
    handler = getattr(namespace, "handler", None)
    if handler is None:
        raise CliError(
            f"Unknown command '{getattr(namespace, 'command', None)}'.",
            category="usage",
            context={"command": getattr(namespace, "command", None)},
        )

    try:
        result = handler(namespace, config=config)
    except CliError as exc:
        _report(exc)
        raise SystemExit(exc.status_code) from exc
    if result:
        sys.stdout.write(result)
        if not result.endswith("\n"):
            sys.stdout.write("\n")
    return result


def main() -> None:  # pragma: no cover - thin wrapper
    run_cli()


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    main()
