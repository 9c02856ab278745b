"""Telemetry sources backed by local CSV exports."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .models import LapMetadata

__all__ = ["FileTelemetrySource", "laps_from_paths"]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileTelemetrySource:
    """Resolve lap ids to CSV files on disk.

    Instances are awaitable fetchers: ``await source(lap)`` returns the file
    contents, ``None`` for an empty file, and raises ``FileNotFoundError``
    for an unknown lap or a missing file.
    """

    paths: Mapping[str, Path | str]
    encoding: str = "utf-8-sig"
    _resolved: Dict[str, Path] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self._resolved = {lap_id: Path(path).expanduser() for lap_id, path in self.paths.items()}

    async def __call__(self, lap: LapMetadata) -> Optional[str]:
        path = self._resolved.get(lap.lap_id)
        if path is None:
            raise FileNotFoundError(f"No telemetry export registered for lap {lap.lap_id!r}")
        if not path.is_file():
            raise FileNotFoundError(f"Telemetry export {path} does not exist")
        text = path.read_text(encoding=self.encoding)
        logger.debug(
            "Read telemetry export %s",
            path,
            extra={"event": "source.read", "lap_id": lap.lap_id, "bytes": len(text)},
        )
        return text or None


def laps_from_paths(
    paths: Iterable[Path | str],
    lap_times: Mapping[str, float] | None = None,
) -> tuple[List[LapMetadata], FileTelemetrySource]:
    """Build lap metadata and a matching source for a list of CSV files.

    Lap ids are the file stems, suffixed with their position when two files
    share a stem.
    """

    laps: List[LapMetadata] = []
    mapping: Dict[str, Path] = {}
    times = lap_times or {}
    for number, raw in enumerate(paths, start=1):
        path = Path(raw)
        lap_id = path.stem
        if lap_id in mapping:
            lap_id = f"{lap_id}-{number}"
        mapping[lap_id] = path
        laps.append(LapMetadata(lap_id=lap_id, lap_number=number, lap_time=times.get(lap_id)))
    return laps, FileTelemetrySource(mapping)
