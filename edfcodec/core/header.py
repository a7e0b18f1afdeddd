# edfcodec/core/header.py
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field

from .exceptions import (
    HeaderLengthMismatch,
    InvalidDocument,
    InvalidSignalCount,
    InvalidSignalSpec,
)
from .options import ANNOTATION_LABEL

GLOBAL_HEADER_BYTES = 256
SIGNAL_HEADER_BYTES = 256
MAX_SIGNALS = 9999
INT16_MIN = -32768
INT16_MAX = 32767


def header_length(signal_count: int) -> int:
    """Header byte length implied by `signal_count` signals."""
    return GLOBAL_HEADER_BYTES + SIGNAL_HEADER_BYTES * signal_count


@dataclass(frozen=True, slots=True)
class SignalSpec:
    """
    Per-signal header entry (one column position in the signal table).

    The digital/physical limits define the linear scaling law of the signal.
    A zero span is accepted here and only rejected when a physical
    conversion is requested (DegenerateScale).
    """
    label: str
    physical_min: float
    physical_max: float
    digital_min: int
    digital_max: int
    samples_per_record: int
    transducer: str = ""
    physical_dimension: str = ""
    prefiltering: str = ""
    reserved: str = ""

    def __post_init__(self) -> None:
        for name in ("label", "transducer", "physical_dimension", "prefiltering", "reserved"):
            if not isinstance(getattr(self, name), str):
                raise InvalidSignalSpec(f"SignalSpec.{name} must be a string.")

        for name in ("digital_min", "digital_max"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidSignalSpec(f"SignalSpec.{name} must be an integer.")
            if not INT16_MIN <= value <= INT16_MAX:
                raise InvalidSignalSpec(
                    f"SignalSpec.{name}={value} is outside the signed 16-bit range."
                )

        for name in ("physical_min", "physical_max"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise InvalidSignalSpec(f"SignalSpec.{name} must be finite.")
            object.__setattr__(self, name, value)

        spr = self.samples_per_record
        if isinstance(spr, bool) or not isinstance(spr, int) or spr < 0:
            raise InvalidSignalSpec("SignalSpec.samples_per_record must be a non-negative integer.")

    @property
    def is_annotation(self) -> bool:
        return self.label == ANNOTATION_LABEL

    @property
    def bytes_per_record(self) -> int:
        return 2 * self.samples_per_record


@dataclass(frozen=True, slots=True)
class Header:
    """
    Global EDF header.

    `header_bytes` is derived from `signal_count` when omitted; an explicit
    value that disagrees raises HeaderLengthMismatch. `record_count == -1`
    means the number of records is unknown and is taken from the data size.
    """
    patient_id: str
    recording_id: str
    start_date: dt.date
    start_time: dt.time
    record_count: int
    record_duration: float
    signal_count: int
    reserved: str = ""
    header_bytes: int | None = field(default=None)

    def __post_init__(self) -> None:
        for name in ("patient_id", "recording_id", "reserved"):
            if not isinstance(getattr(self, name), str):
                raise InvalidDocument(f"Header.{name} must be a string.")
        if not isinstance(self.start_date, dt.date) or isinstance(self.start_date, dt.datetime):
            raise InvalidDocument("Header.start_date must be a datetime.date.")
        if not isinstance(self.start_time, dt.time):
            raise InvalidDocument("Header.start_time must be a datetime.time.")

        ns = self.signal_count
        if isinstance(ns, bool) or not isinstance(ns, int) or not 0 <= ns <= MAX_SIGNALS:
            raise InvalidSignalCount(
                f"Header.signal_count must be an integer in [0, {MAX_SIGNALS}], got {ns!r}."
            )

        rc = self.record_count
        if isinstance(rc, bool) or not isinstance(rc, int) or rc < -1:
            raise InvalidDocument(
                f"Header.record_count must be a non-negative integer or -1, got {rc!r}."
            )

        duration = float(self.record_duration)
        if not math.isfinite(duration) or duration < 0:
            raise InvalidDocument("Header.record_duration must be a finite, non-negative number.")
        object.__setattr__(self, "record_duration", duration)

        expected = header_length(ns)
        if self.header_bytes is None:
            object.__setattr__(self, "header_bytes", expected)
        elif self.header_bytes != expected:
            raise HeaderLengthMismatch(
                f"Header declares {self.header_bytes} header bytes but "
                f"{ns} signal(s) require {expected}."
            )

    @property
    def start_datetime(self) -> dt.datetime:
        return dt.datetime.combine(self.start_date, self.start_time)

    @property
    def record_count_known(self) -> bool:
        return self.record_count >= 0

    @property
    def is_edf_plus(self) -> bool:
        return self.reserved.startswith("EDF+")

    @property
    def is_discontinuous(self) -> bool:
        return self.reserved.startswith("EDF+D")
