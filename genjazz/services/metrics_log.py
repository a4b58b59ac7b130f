"""Append-only request logs.

``DelimitedLog`` is the shared primitive: a header row written once, then
one sanitised line per record, each appended with a single write under a
process-wide lock so concurrent requests never interleave.

``MetricsRecorder`` is the gateway's per-request metrics log built on top of
it.  Recording is best-effort: an I/O failure is logged and swallowed so it
can never change what the client sees.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import astuple, dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path

from genjazz.core.sanitize import format_log_row

logger = logging.getLogger(__name__)


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class DelimitedLog:
    """A delimiter-separated log file with a fixed header."""

    def __init__(self, path: str | Path, columns: list[str], delimiter: str = ";"):
        self.path = Path(path)
        self.columns = columns
        self.delimiter = delimiter
        self._lock = threading.Lock()

    @property
    def header(self) -> str:
        return self.delimiter.join(self.columns) + "\n"

    def ensure_header(self) -> None:
        """Create the file with its header row if it is missing or empty."""
        with self._lock:
            if not self.path.exists() or self.path.stat().st_size == 0:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as fh:
                    fh.write(self.header)

    def append(self, values: list[object]) -> None:
        if len(values) != len(self.columns):
            raise ValueError(
                f"expected {len(self.columns)} fields for {self.path.name}, got {len(values)}"
            )
        line = format_log_row(values, self.delimiter)
        with self._lock:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line)


@dataclass(frozen=True)
class MetricsRecord:
    """One row of the gateway metrics log.

    Stage fields are ``None`` when the pipeline failed before reaching that
    stage; they are written as empty columns.
    """

    timestamp: str = field(default_factory=iso_timestamp)
    time_ms_chords: int | None = None
    time_ms_solo: int | None = None
    info_chords: str | None = None
    info_solo: str | None = None
    size_bytes_chords: int | None = None
    size_bytes_solo: int | None = None
    size_bytes_response: int | None = None


METRICS_COLUMNS: list[str] = [f.name for f in fields(MetricsRecord)]


class MetricsRecorder:
    """Writes ``MetricsRecord`` rows to the gateway's request log."""

    def __init__(self, path: str | Path):
        self._log = DelimitedLog(path, METRICS_COLUMNS, delimiter=";")

    @property
    def path(self) -> Path:
        return self._log.path

    def ensure_header(self) -> None:
        self._log.ensure_header()

    def record(self, record: MetricsRecord) -> bool:
        """Append *record*; return False (after logging) if the write failed."""
        try:
            self._log.ensure_header()
            self._log.append(list(astuple(record)))
        except OSError as exc:
            logger.warning(f"⚠️ Failed to write metrics row to {self.path}: {exc}")
            return False
        return True
