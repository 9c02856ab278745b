"""Error reporting for the lapsync command line tool."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "CliError",
    "ErrorPayload",
    "build_error_payload",
    "log_cli_error",
]


EXIT_CODES: Mapping[str, int] = {
    "runtime": 1,
    "usage": 2,
    "io": 3,
    "not_found": 4,
}

_DEFAULT_CATEGORY = "runtime"
_LOGGER_NAME = "lapsync.cli"


@dataclass(frozen=True, slots=True)
class ErrorPayload:
    """Structured description of a failed command."""

    status_code: int
    category: str
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Mapping[str, Any]:
        return {
            "status_code": self.status_code,
            "category": self.category,
            "message": self.message,
            "context": dict(self.context),
        }


def _scalar_context(context: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if not context:
        return {}
    return {
        key: value if isinstance(value, (str, int, float, bool)) or value is None else str(value)
        for key, value in context.items()
    }


def build_error_payload(
    message: str,
    *,
    category: str = _DEFAULT_CATEGORY,
    context: Optional[Mapping[str, Any]] = None,
) -> ErrorPayload:
    """Create the payload for ``message``; unknown categories exit with ``1``."""

    category = category or _DEFAULT_CATEGORY
    return ErrorPayload(
        status_code=EXIT_CODES.get(category, EXIT_CODES[_DEFAULT_CATEGORY]),
        category=category,
        message=message,
        context=_scalar_context(context),
    )


def log_cli_error(
    payload: ErrorPayload,
    *,
    logger: Optional[logging.Logger] = None,
    exc_info: Optional[BaseException] = None,
) -> None:
    target = logger or logging.getLogger(_LOGGER_NAME)
    target.error(
        payload.message,
        extra={
            "event": "cli.error",
            "category": payload.category,
            "status_code": payload.status_code,
            "context": dict(payload.context),
        },
        exc_info=exc_info,
    )


class CliError(RuntimeError):
    """User-facing command failure carrying an exit status."""

    def __init__(
        self,
        message: str,
        *,
        category: str = _DEFAULT_CATEGORY,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.payload = build_error_payload(message, category=category, context=context)
        self.logged = False

    @property
    def category(self) -> str:
        return self.payload.category

    @property
    def status_code(self) -> int:
        return self.payload.status_code

    @classmethod
    def missing_file(cls, path: Path) -> "CliError":
        return cls(
            f"Telemetry export {path} does not exist.",
            category="not_found",
            context={"path": str(path)},
        )

    @classmethod
    def no_telemetry(cls, lap_id: str, error: BaseException | None = None) -> "CliError":
        if error is not None:
            return cls(
                f"Failed to load telemetry for lap {lap_id}: {error}",
                category="io",
                context={"lap_id": lap_id, "error": type(error).__name__},
            )
        return cls(
            f"No telemetry data for lap {lap_id}.",
            category="runtime",
            context={"lap_id": lap_id},
        )
