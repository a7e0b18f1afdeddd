# edfcodec/io/header.py
"""
EDF header <-> bytes.

The signal table is stored column-major: all labels, then all transducer
types, and so on. Field ``f`` of signal ``j`` lives at

    256 + ns * column_start(f) + j * width(f)

where ``column_start(f)`` is the sum of the widths of the columns before
``f``. That arithmetic is confined to this module.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Sequence

from edfcodec.core.exceptions import (
    HeaderLengthMismatch,
    InvalidDocument,
    InvalidSignalCount,
    InvalidVersion,
    MalformedField,
    TruncatedHeader,
)
from edfcodec.core.header import (
    GLOBAL_HEADER_BYTES,
    INT16_MAX,
    INT16_MIN,
    Header,
    SignalSpec,
    header_length,
)
from edfcodec.core.options import DEFAULT_OPTIONS, CodecOptions
from edfcodec.io import fields

logger = logging.getLogger(__name__)

VERSION = "0"
# 1985 clipping year for two-digit years
CLIP_YEAR = 85


@dataclass(frozen=True, slots=True)
class Field:
    name: str
    offset: int
    width: int


# Global header, absolute offsets
VERSION_FIELD = Field("version", 0, 8)
PATIENT_FIELD = Field("patient_id", 8, 80)
RECORDING_FIELD = Field("recording_id", 88, 80)
DATE_FIELD = Field("start_date", 168, 8)
TIME_FIELD = Field("start_time", 176, 8)
HEADER_BYTES_FIELD = Field("header_bytes", 184, 8)
RESERVED_FIELD = Field("reserved", 192, 44)
RECORD_COUNT_FIELD = Field("record_count", 236, 8)
DURATION_FIELD = Field("record_duration", 244, 8)
SIGNAL_COUNT_FIELD = Field("signal_count", 252, 4)

# Signal table columns; `offset` is the column start in per-signal bytes
SIGNAL_COLUMNS: tuple[Field, ...] = (
    Field("label", 0, 16),
    Field("transducer", 16, 80),
    Field("physical_dimension", 96, 8),
    Field("physical_min", 104, 8),
    Field("physical_max", 112, 8),
    Field("digital_min", 120, 8),
    Field("digital_max", 128, 8),
    Field("prefiltering", 136, 80),
    Field("samples_per_record", 216, 8),
    Field("reserved", 224, 32),
)
_COLUMNS = {col.name: col for col in SIGNAL_COLUMNS}

_TEXT_COLUMNS = ("label", "transducer", "physical_dimension", "prefiltering", "reserved")
_REAL_COLUMNS = ("physical_min", "physical_max")
_INT_COLUMNS = ("digital_min", "digital_max", "samples_per_record")


def signal_field_offset(name: str, index: int, signal_count: int) -> int:
    """Absolute offset of column `name` for signal `index` in a table of `signal_count`."""
    col = _COLUMNS[name]
    return GLOBAL_HEADER_BYTES + signal_count * col.offset + index * col.width


# ---------------------------------------------------------------------------
# Date / time fields
# ---------------------------------------------------------------------------
def _split_triplet(buffer: bytes, f: Field) -> tuple[int, int, int]:
    raw = fields.read_text(buffer, f.offset, f.width)
    parts = raw.split(".")
    if len(parts) != 3 or not all(len(p) == 2 and p.isdigit() for p in parts):
        raise MalformedField(f"{f.name}: expected 'nn.nn.nn', got {raw!r}", offset=f.offset)
    return int(parts[0]), int(parts[1]), int(parts[2])


def expand_year(yy: int) -> int:
    """Two-digit EDF year to a full year (85-99 -> 19xx, 00-84 -> 20xx)."""
    return 1900 + yy if yy >= CLIP_YEAR else 2000 + yy


def read_start_date(buffer: bytes) -> dt.date:
    day, month, yy = _split_triplet(buffer, DATE_FIELD)
    try:
        return dt.date(expand_year(yy), month, day)
    except ValueError as e:
        raise MalformedField(f"start_date: {e}", offset=DATE_FIELD.offset) from e


def read_start_time(buffer: bytes) -> dt.time:
    hour, minute, second = _split_triplet(buffer, TIME_FIELD)
    try:
        return dt.time(hour, minute, second)
    except ValueError as e:
        raise MalformedField(f"start_time: {e}", offset=TIME_FIELD.offset) from e


def format_start_date(value: dt.date) -> str:
    return f"{value.day:02d}.{value.month:02d}.{value.year % 100:02d}"


def format_start_time(value: dt.time) -> str:
    return f"{value.hour:02d}.{value.minute:02d}.{value.second:02d}"


# ---------------------------------------------------------------------------
# Parse
# ---------------------------------------------------------------------------
def _read_signal_count(buffer: bytes) -> int:
    f = SIGNAL_COUNT_FIELD
    try:
        ns = fields.read_integer(buffer, f.offset, f.width)
    except MalformedField as e:
        raise InvalidSignalCount(f"signal count: {e.message}", offset=f.offset) from e
    if ns < 0:
        raise InvalidSignalCount(f"signal count must be non-negative, got {ns}", offset=f.offset)
    return ns


def _read_signal(buffer: bytes, index: int, ns: int) -> SignalSpec:
    values: dict[str, object] = {}
    for name in _TEXT_COLUMNS:
        width = _COLUMNS[name].width
        values[name] = fields.read_text(buffer, signal_field_offset(name, index, ns), width)
    for name in _REAL_COLUMNS:
        width = _COLUMNS[name].width
        values[name] = fields.read_real(buffer, signal_field_offset(name, index, ns), width)
    for name in _INT_COLUMNS:
        offset = signal_field_offset(name, index, ns)
        value = fields.read_integer(buffer, offset, _COLUMNS[name].width)
        if name == "samples_per_record":
            if value < 0:
                raise MalformedField(
                    f"signal {index} samples_per_record must be non-negative, got {value}",
                    offset=offset,
                )
        elif not INT16_MIN <= value <= INT16_MAX:
            raise MalformedField(
                f"signal {index} {name}={value} is outside the signed 16-bit range",
                offset=offset,
            )
        values[name] = value
    return SignalSpec(**values)  # type: ignore[arg-type]


def parse_header(
    buffer: bytes,
    options: CodecOptions = DEFAULT_OPTIONS,
) -> tuple[Header, tuple[SignalSpec, ...]]:
    """Parse the global header and the signal table from the start of `buffer`."""
    if len(buffer) < GLOBAL_HEADER_BYTES:
        raise TruncatedHeader(
            f"need {GLOBAL_HEADER_BYTES} header bytes, buffer holds {len(buffer)}",
            offset=len(buffer),
        )

    version = fields.read_text(buffer, VERSION_FIELD.offset, VERSION_FIELD.width)
    if options.check_version and version != VERSION:
        raise InvalidVersion(f"unsupported version {version!r}", offset=VERSION_FIELD.offset)

    ns = _read_signal_count(buffer)
    declared = fields.read_integer(buffer, HEADER_BYTES_FIELD.offset, HEADER_BYTES_FIELD.width)
    expected = header_length(ns)
    if declared != expected:
        raise HeaderLengthMismatch(
            f"header declares {declared} bytes but {ns} signal(s) require {expected}",
            offset=HEADER_BYTES_FIELD.offset,
        )
    if len(buffer) < expected:
        raise TruncatedHeader(
            f"need {expected} header bytes, buffer holds {len(buffer)}",
            offset=len(buffer),
        )

    record_count = fields.read_integer(
        buffer, RECORD_COUNT_FIELD.offset, RECORD_COUNT_FIELD.width
    )
    if record_count < -1:
        raise MalformedField(
            f"record count must be non-negative or -1, got {record_count}",
            offset=RECORD_COUNT_FIELD.offset,
        )

    duration = fields.read_real(buffer, DURATION_FIELD.offset, DURATION_FIELD.width)
    if duration < 0:
        raise MalformedField(
            f"record duration must be non-negative, got {duration}",
            offset=DURATION_FIELD.offset,
        )

    header = Header(
        patient_id=fields.read_text(buffer, PATIENT_FIELD.offset, PATIENT_FIELD.width),
        recording_id=fields.read_text(buffer, RECORDING_FIELD.offset, RECORDING_FIELD.width),
        start_date=read_start_date(buffer),
        start_time=read_start_time(buffer),
        record_count=record_count,
        record_duration=duration,
        signal_count=ns,
        reserved=fields.read_text(buffer, RESERVED_FIELD.offset, RESERVED_FIELD.width),
        header_bytes=declared,
    )
    signals = tuple(_read_signal(buffer, j, ns) for j in range(ns))

    logger.debug(
        "Parsed header: %d signal(s), %d record(s) of %gs",
        ns, record_count, header.record_duration,
    )
    return header, signals


# ---------------------------------------------------------------------------
# Serialize
# ---------------------------------------------------------------------------
def serialize_header(header: Header, signals: Sequence[SignalSpec]) -> bytes:
    """Write `header` and the column-major signal table; exactly header.header_bytes long."""
    ns = header.signal_count
    if len(signals) != ns:
        raise InvalidDocument(
            f"header declares {ns} signal(s) but {len(signals)} SignalSpec(s) were given"
        )

    buffer = bytearray(fields.PAD * header_length(ns))
    fields.write_text(buffer, VERSION_FIELD.offset, VERSION_FIELD.width, VERSION)
    fields.write_text(buffer, PATIENT_FIELD.offset, PATIENT_FIELD.width, header.patient_id)
    fields.write_text(buffer, RECORDING_FIELD.offset, RECORDING_FIELD.width, header.recording_id)
    fields.write_text(
        buffer, DATE_FIELD.offset, DATE_FIELD.width, format_start_date(header.start_date)
    )
    fields.write_text(
        buffer, TIME_FIELD.offset, TIME_FIELD.width, format_start_time(header.start_time)
    )
    fields.write_integer(
        buffer, HEADER_BYTES_FIELD.offset, HEADER_BYTES_FIELD.width, header_length(ns)
    )
    fields.write_text(buffer, RESERVED_FIELD.offset, RESERVED_FIELD.width, header.reserved)
    fields.write_integer(
        buffer, RECORD_COUNT_FIELD.offset, RECORD_COUNT_FIELD.width, header.record_count
    )
    fields.write_real(
        buffer, DURATION_FIELD.offset, DURATION_FIELD.width, header.record_duration
    )
    fields.write_integer(buffer, SIGNAL_COUNT_FIELD.offset, SIGNAL_COUNT_FIELD.width, ns)

    for j, spec in enumerate(signals):
        for name in _TEXT_COLUMNS:
            width = _COLUMNS[name].width
            fields.write_text(
                buffer, signal_field_offset(name, j, ns), width, getattr(spec, name)
            )
        for name in _REAL_COLUMNS:
            width = _COLUMNS[name].width
            fields.write_real(
                buffer, signal_field_offset(name, j, ns), width, getattr(spec, name)
            )
        for name in _INT_COLUMNS:
            width = _COLUMNS[name].width
            fields.write_integer(
                buffer, signal_field_offset(name, j, ns), width, getattr(spec, name)
            )

    return bytes(buffer)
