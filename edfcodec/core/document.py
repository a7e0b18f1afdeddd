# edfcodec/core/document.py
from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np

from .annotation import Annotation
from .exceptions import CodecWarning, InvalidDocument, SignalNotFound
from .header import INT16_MAX, INT16_MIN, Header, SignalSpec
from .scaling import Scale
from .timeseries import TimeSeries, record_time_axis

SignalKey = int | str


def aligned_record_count(
    samples: Sequence[np.ndarray],
    signals: Sequence[SignalSpec],
) -> int | None:
    """
    Number of data records implied by per-signal sample arrays.

    Each array must hold a whole number of records and all signals must
    agree. Returns None when no signal has samples per record, so the data
    does not determine the count.
    """
    if len(samples) != len(signals):
        raise InvalidDocument(f"{len(samples)} sample array(s) for {len(signals)} signal(s)")

    count: int | None = None
    for j, (arr, spec) in enumerate(zip(samples, signals)):
        n = len(arr)
        spr = spec.samples_per_record
        if spr == 0:
            if n:
                raise InvalidDocument(
                    f"signal {j} ('{spec.label}') has no samples per record but {n} sample(s)"
                )
            continue
        records, rest = divmod(n, spr)
        if rest:
            raise InvalidDocument(
                f"signal {j} ('{spec.label}') has {n} sample(s), "
                f"not a multiple of {spr} samples per record"
            )
        if count is None:
            count = records
        elif records != count:
            raise InvalidDocument(
                f"signal {j} ('{spec.label}') spans {records} record(s), "
                f"previous signals span {count}"
            )
    return count


def _as_digital(values, index: int) -> np.ndarray:
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise InvalidDocument(f"samples of signal {index} must be 1D, got shape {arr.shape}")
    if arr.size == 0:
        return np.empty(0, dtype=np.int16)
    if not np.issubdtype(arr.dtype, np.integer):
        raise InvalidDocument(
            f"samples of signal {index} must be integers (digital values), got {arr.dtype}"
        )
    if arr.min() < INT16_MIN or arr.max() > INT16_MAX:
        raise InvalidDocument(f"samples of signal {index} exceed the signed 16-bit range")
    return arr.astype(np.int16, copy=False)


@dataclass(frozen=True, slots=True, eq=False)
class Document:
    """
    A decoded (or to-be-encoded) EDF file.

    Samples are stored digitally, one int16 array per signal; physical
    values, time axes and TimeSeries views are derived on access.

    Design goals:
    - access by index or label: doc["EEG Fz"], doc.physical(0)
    - validated: signal count, record alignment, int16 range
    - immutable: header, signal table and sample container never change
    """
    header: Header
    signals: tuple[SignalSpec, ...]
    samples: tuple[np.ndarray, ...] = field(repr=False)
    annotations: tuple[Annotation, ...] = ()
    record_onsets: tuple[float, ...] | None = field(default=None, repr=False)
    warnings: tuple[CodecWarning, ...] = field(default=(), repr=False)
    complete: bool = True
    record_count: int = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.header, Header):
            raise InvalidDocument("Document.header must be a Header instance.")

        signals = tuple(self.signals)
        for spec in signals:
            if not isinstance(spec, SignalSpec):
                raise InvalidDocument("Document.signals must hold SignalSpec instances.")
        if len(signals) != self.header.signal_count:
            raise InvalidDocument(
                f"header declares {self.header.signal_count} signal(s), "
                f"Document has {len(signals)}."
            )

        samples = tuple(_as_digital(s, j) for j, s in enumerate(self.samples))
        count = aligned_record_count(samples, signals)
        declared = self.header.record_count
        if count is None:
            count = max(declared, 0)
        elif declared >= 0 and declared != count and self.complete:
            raise InvalidDocument(
                f"header declares {declared} record(s), samples span {count}."
            )

        annotations = tuple(self.annotations)
        for ann in annotations:
            if not isinstance(ann, Annotation):
                raise InvalidDocument("Document.annotations must hold Annotation instances.")

        onsets = self.record_onsets
        if onsets is not None:
            onsets = tuple(float(t) for t in onsets)
            if len(onsets) != count:
                raise InvalidDocument(f"{len(onsets)} record onset(s) for {count} record(s).")

        object.__setattr__(self, "signals", signals)
        object.__setattr__(self, "samples", samples)
        object.__setattr__(self, "annotations", annotations)
        object.__setattr__(self, "record_onsets", onsets)
        object.__setattr__(self, "warnings", tuple(self.warnings))
        object.__setattr__(self, "record_count", count)

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.signals)

    def __iter__(self) -> Iterator[str]:
        return (s.label for s in self.signals)

    def __contains__(self, label: object) -> bool:
        return any(s.label == label for s in self.signals)

    def __getitem__(self, key: SignalKey) -> TimeSeries:
        return self.series(key)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(s.label for s in self.signals)

    def index(self, key: SignalKey) -> int:
        """Signal index for a label (first match) or an index."""
        if isinstance(key, numbers.Integral) and not isinstance(key, bool):
            key = int(key)
            if not -len(self.signals) <= key < len(self.signals):
                raise SignalNotFound(f"signal index {key} out of range")
            return key % len(self.signals)
        for j, spec in enumerate(self.signals):
            if spec.label == key:
                return j
        raise SignalNotFound(f"no signal labelled {key!r}")

    def signal(self, key: SignalKey) -> SignalSpec:
        return self.signals[self.index(key)]

    # ---- derived ----
    @property
    def duration(self) -> float:
        """Recorded time in seconds (record count x record duration)."""
        return self.record_count * self.header.record_duration

    @property
    def annotation_indices(self) -> tuple[int, ...]:
        return tuple(j for j, s in enumerate(self.signals) if s.is_annotation)

    @property
    def data_indices(self) -> tuple[int, ...]:
        return tuple(j for j, s in enumerate(self.signals) if not s.is_annotation)

    def record_starts(self) -> np.ndarray:
        """Start time of every record (time-keeping onsets when known)."""
        if self.record_onsets is not None:
            return np.asarray(self.record_onsets, dtype=np.float64)
        return np.arange(self.record_count, dtype=np.float64) * self.header.record_duration

    def sampling_rate(self, key: SignalKey) -> float | None:
        spec = self.signal(key)
        if self.header.record_duration == 0:
            return None
        return spec.samples_per_record / self.header.record_duration

    def digital(self, key: SignalKey) -> np.ndarray:
        return self.samples[self.index(key)]

    def physical(self, key: SignalKey) -> np.ndarray:
        """Physical values of a signal; DegenerateScale if its ranges have zero span."""
        j = self.index(key)
        return Scale.from_signal(self.signals[j]).to_physical(self.samples[j])

    def time(self, key: SignalKey) -> np.ndarray:
        """Time (s from recording start) of every sample of a signal."""
        spr = self.signal(key).samples_per_record
        return record_time_axis(self.record_starts(), spr, self.header.record_duration)

    def series(self, key: SignalKey) -> TimeSeries:
        j = self.index(key)
        spec = self.signals[j]
        return TimeSeries(
            values=self.physical(j),
            record_starts=self.record_starts(),
            samples_per_record=spec.samples_per_record,
            record_duration=self.header.record_duration,
            unit=spec.physical_dimension or None,
            name=spec.label,
            attrs={"index": j, "transducer": spec.transducer, "prefiltering": spec.prefiltering},
        )
