# edfcodec/core/timeseries.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .exceptions import InvalidTimeSeries


def record_time_axis(
    record_starts: np.ndarray,
    samples_per_record: int,
    record_duration: float,
) -> np.ndarray:
    """Time of every sample when each record holds `samples_per_record`
    evenly spaced samples starting at its entry in `record_starts`."""
    if samples_per_record == 0:
        return np.empty(0, dtype=np.float64)
    step = record_duration / samples_per_record
    offsets = np.arange(samples_per_record, dtype=np.float64) * step
    starts = np.asarray(record_starts, dtype=np.float64)
    return (starts[:, None] + offsets[None, :]).reshape(-1)


@dataclass(frozen=True, slots=True)
class TimeSeries:
    """
    Physical values of one signal, kept in data-record order.

    The time axis is not stored: sample ``i`` of record ``k`` lies at
    ``record_starts[k] + i * record_duration / samples_per_record``.
    Record starts come from the time-keeping annotations when the file has
    them, so a discontinuous (EDF+D) recording keeps its gaps.
    """

    values: np.ndarray = field(repr=False)
    record_starts: np.ndarray = field(repr=False)
    samples_per_record: int
    record_duration: float
    unit: str | None = None
    name: str | None = None
    attrs: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        v = np.asarray(self.values)
        starts = np.asarray(self.record_starts, dtype=np.float64)
        spr = int(self.samples_per_record)
        duration = float(self.record_duration)

        if v.ndim != 1:
            raise InvalidTimeSeries(f"`values` must be 1D, got shape {v.shape}")
        if starts.ndim != 1:
            raise InvalidTimeSeries(f"`record_starts` must be 1D, got shape {starts.shape}")
        if spr < 0:
            raise InvalidTimeSeries(f"samples_per_record must be non-negative, got {spr}")
        if not np.isfinite(duration) or duration < 0:
            raise InvalidTimeSeries(f"record_duration must be finite and >= 0, got {duration}")
        if v.size != spr * starts.size:
            raise InvalidTimeSeries(
                f"{v.size} value(s) do not fill {starts.size} record(s) "
                f"of {spr} sample(s)"
            )
        if not np.isfinite(starts).all():
            raise InvalidTimeSeries("`record_starts` contains non-finite values.")
        if np.any(np.diff(starts) < 0):
            raise InvalidTimeSeries("`record_starts` must be non-decreasing.")

        if self.attrs is None:
            object.__setattr__(self, "attrs", {})
        elif not isinstance(self.attrs, dict):
            raise InvalidTimeSeries("`attrs` must be a dict.")

        object.__setattr__(self, "values", v)
        object.__setattr__(self, "record_starts", starts)
        object.__setattr__(self, "samples_per_record", spr)
        object.__setattr__(self, "record_duration", duration)

    @property
    def n(self) -> int:
        return int(self.values.size)

    @property
    def record_count(self) -> int:
        return int(self.record_starts.size)

    @property
    def sampling_rate(self) -> float | None:
        if self.record_duration == 0:
            return None
        return self.samples_per_record / self.record_duration

    @property
    def time(self) -> np.ndarray:
        return record_time_axis(self.record_starts, self.samples_per_record, self.record_duration)

    @property
    def t_start(self) -> float | None:
        return None if self.n == 0 else float(self.record_starts[0])

    @property
    def t_end(self) -> float | None:
        """End of the last record (exclusive)."""
        if self.n == 0:
            return None
        return float(self.record_starts[-1]) + self.record_duration

    @property
    def is_contiguous(self) -> bool:
        """True when every record starts where the previous one ends."""
        gaps = np.diff(self.record_starts)
        return bool(np.allclose(gaps, self.record_duration))

    def record(self, k: int) -> np.ndarray:
        """Values of data record `k` (negative indices count from the end)."""
        if not -self.record_count <= k < self.record_count:
            raise IndexError(f"record {k} out of range for {self.record_count} record(s)")
        k %= self.record_count
        spr = self.samples_per_record
        return self.values[k * spr:(k + 1) * spr]

    def slice_records(self, start: int | None = None, stop: int | None = None) -> "TimeSeries":
        """Records ``start:stop`` (Python slice rules) as a new series."""
        lo, hi, _ = slice(start, stop).indices(self.record_count)
        hi = max(hi, lo)
        spr = self.samples_per_record
        return TimeSeries(
            values=self.values[lo * spr:hi * spr],
            record_starts=self.record_starts[lo:hi],
            samples_per_record=spr,
            record_duration=self.record_duration,
            unit=self.unit,
            name=self.name,
            attrs=self.attrs.copy(),
        )

    def slice_time(self, t_min: float | None = None, t_max: float | None = None) -> "TimeSeries":
        """Whole records whose start lies in [t_min, t_max).

        A record boundary shared by two adjacent slices belongs to the
        later one, so consecutive slices never repeat a record.
        """
        lo = 0 if t_min is None else int(np.searchsorted(self.record_starts, t_min, side="left"))
        hi = (
            self.record_count if t_max is None
            else int(np.searchsorted(self.record_starts, t_max, side="left"))
        )
        return self.slice_records(lo, hi)

    def to_numpy(self, *, copy: bool = False) -> tuple[np.ndarray, np.ndarray]:
        """(time, values); the time axis is always freshly built."""
        if copy:
            return self.time, self.values.copy()
        return self.time, self.values
