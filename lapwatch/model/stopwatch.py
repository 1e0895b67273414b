"""Immutable value records for stopwatches and their laps."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

DEFAULT_LABELS: Dict[str, str] = {
    "en": "Stopwatch",
    "es": "Cronómetro",
    "de": "Stoppuhr",
    "fr": "Chronomètre",
}


def default_label(locale: str = "en") -> str:
    """Generic stopwatch label for ``locale``, falling back to English."""

    return DEFAULT_LABELS.get(locale.split("_")[0].lower(), DEFAULT_LABELS["en"])


def format_time(time_in_millis: int) -> str:
    """Render a duration as ``MM:SS.CC``.

    Minutes are not clamped (``61:01.00`` for an hour and a minute) and the
    centisecond part is truncated, so ``1999`` renders as ``00:01.99``.
    """

    if time_in_millis < 0:
        raise ValueError(f"duration must be non-negative, got {time_in_millis}")
    total_seconds, millis = divmod(int(time_in_millis), 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}.{millis // 10:02d}"


def new_stopwatch_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Lap:
    """A recorded split: this segment's duration plus the running total."""

    lap_number: int
    lap_time: int
    total_time: int

    @property
    def formatted_lap_time(self) -> str:
        return format_time(self.lap_time)

    @property
    def formatted_total_time(self) -> str:
        return format_time(self.total_time)


@dataclass(frozen=True)
class Stopwatch:
    """State of a single timer.

    Never mutated; the engine swaps in a new value (``dataclasses.replace``)
    for every change. ``start_epoch_millis`` is the wall-clock instant at
    which the current run segment would have read zero.
    """

    id: str = field(default_factory=new_stopwatch_id)
    name: str = DEFAULT_LABELS["en"]
    elapsed_millis: int = 0
    is_running: bool = False
    laps: Tuple[Lap, ...] = ()
    start_epoch_millis: int = 0

    @property
    def formatted_time(self) -> str:
        return format_time(self.elapsed_millis)

    @property
    def last_lap(self) -> Optional[Lap]:
        return self.laps[-1] if self.laps else None

    def next_lap(self) -> Lap:
        """Build the lap that recording right now would append."""

        last = self.last_lap
        previous_total = last.total_time if last is not None else 0
        return Lap(
            lap_number=len(self.laps) + 1,
            lap_time=self.elapsed_millis - previous_total,
            total_time=self.elapsed_millis,
        )


__all__ = ["DEFAULT_LABELS", "Lap", "Stopwatch", "default_label", "format_time", "new_stopwatch_id"]
