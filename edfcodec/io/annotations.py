# edfcodec/io/annotations.py
"""
EDF+ time-stamped annotation lists (TALs).

One TAL on the wire::

    [+-]onset [0x15 duration] 0x14 (text 0x14)* 0x00

NUL bytes between TALs are padding. The first TAL of every data record
carries an empty first text and marks the record's start time
("time-keeping" TAL).
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

import numpy as np

from edfcodec.core.annotation import Annotation
from edfcodec.core.exceptions import FieldOverflow, InvalidDocument, MalformedAnnotation

logger = logging.getLogger(__name__)

DURATION_MARK = 0x15
TEXT_END = 0x14
TAL_END = 0x00

_PLUS = ord("+")
_MINUS = ord("-")
_DOT = ord(".")
_NUMBER_BYTES = frozenset(b"0123456789.")
_RESERVED_CHARS = ("\x00", "\x14", "\x15")


class ScanState(enum.Enum):
    EXPECT_ONSET = "expect_onset"
    IN_ONSET = "in_onset"
    IN_DURATION = "in_duration"
    IN_TEXT = "in_text"


@dataclass(frozen=True, slots=True)
class Tal:
    """One parsed TAL, texts exactly as stored (the time-keeping text is '')."""

    onset: float
    duration: float | None
    texts: tuple[str, ...]
    offset: int

    @property
    def is_timekeeping(self) -> bool:
        return bool(self.texts) and self.texts[0] == ""

    def annotation(self) -> Annotation | None:
        texts = tuple(t for t in self.texts if t)
        if not texts:
            return None
        return Annotation(onset=self.onset, duration=self.duration, texts=texts)


@dataclass(frozen=True, slots=True)
class AnnotationScan:
    tals: tuple[Tal, ...] = ()
    warnings: tuple[MalformedAnnotation, ...] = field(default=(), repr=False)

    @property
    def annotations(self) -> tuple[Annotation, ...]:
        out = []
        for tal in self.tals:
            ann = tal.annotation()
            if ann is not None:
                out.append(ann)
        return tuple(out)

    @property
    def record_onset(self) -> float | None:
        """Onset of the record, from its leading time-keeping TAL (if any)."""
        if self.tals and self.tals[0].is_timekeeping:
            return self.tals[0].onset
        return None


class _Malformed(Exception):
    pass


def _parse_seconds(raw: bytes | bytearray, what: str) -> float:
    """Parse 'digits[.digits]' (sign already consumed)."""
    text = bytes(raw).decode("ascii")
    whole, dot, frac = text.partition(".")
    if not whole or (dot and not frac) or "." in frac:
        raise _Malformed(f"bad {what} {text!r}")
    return float(text)


def decode_annotations(
    raw,
    *,
    base_offset: int = 0,
    record_index: int | None = None,
) -> AnnotationScan:
    """
    Scan one record's annotation-channel bytes into TALs.

    Malformed TALs are reported as MalformedAnnotation warnings (carrying the
    absolute offset of the TAL) and scanning resumes after the next 0x00.
    """
    data = bytes(raw)
    n = len(data)
    tals: list[Tal] = []
    warnings: list[MalformedAnnotation] = []

    state = ScanState.EXPECT_ONSET
    tal_start = 0
    sign = 1.0
    onset_buf = bytearray()
    duration_buf = bytearray()
    text_buf = bytearray()
    onset = 0.0
    duration: float | None = None
    texts: list[str] = []

    i = 0
    while i < n:
        c = data[i]
        try:
            if state is ScanState.EXPECT_ONSET:
                if c == TAL_END:
                    i += 1
                    continue
                if c not in (_PLUS, _MINUS):
                    raise _Malformed(f"TAL starts with byte 0x{c:02x}, expected '+' or '-'")
                tal_start = i
                sign = -1.0 if c == _MINUS else 1.0
                onset_buf.clear()
                duration_buf.clear()
                text_buf.clear()
                texts = []
                state = ScanState.IN_ONSET

            elif state is ScanState.IN_ONSET:
                if c in _NUMBER_BYTES:
                    onset_buf.append(c)
                elif c == DURATION_MARK or c == TEXT_END:
                    onset = sign * _parse_seconds(onset_buf, "onset")
                    if c == DURATION_MARK:
                        state = ScanState.IN_DURATION
                    else:
                        duration = None
                        state = ScanState.IN_TEXT
                else:
                    raise _Malformed(f"unexpected byte 0x{c:02x} in onset")

            elif state is ScanState.IN_DURATION:
                if c in _NUMBER_BYTES:
                    duration_buf.append(c)
                elif c == TEXT_END:
                    duration = _parse_seconds(duration_buf, "duration")
                    state = ScanState.IN_TEXT
                else:
                    raise _Malformed(f"unexpected byte 0x{c:02x} in duration")

            else:  # IN_TEXT
                if c == TEXT_END:
                    try:
                        texts.append(text_buf.decode("utf-8"))
                    except UnicodeDecodeError as e:
                        raise _Malformed(f"annotation text is not UTF-8: {e.reason}") from None
                    text_buf.clear()
                elif c == TAL_END:
                    if text_buf:
                        raise _Malformed("annotation text not terminated by 0x14")
                    tals.append(Tal(onset, duration, tuple(texts), base_offset + tal_start))
                    state = ScanState.EXPECT_ONSET
                else:
                    text_buf.append(c)
            i += 1

        except _Malformed as e:
            start = tal_start if state is not ScanState.EXPECT_ONSET else i
            warnings.append(MalformedAnnotation(
                str(e), offset=base_offset + start, record_index=record_index
            ))
            end = data.find(TAL_END, i)
            i = n if end < 0 else end + 1
            state = ScanState.EXPECT_ONSET

    if state is not ScanState.EXPECT_ONSET:
        warnings.append(MalformedAnnotation(
            "TAL not terminated by 0x00",
            offset=base_offset + tal_start,
            record_index=record_index,
        ))

    for w in warnings:
        logger.warning("Skipping malformed annotation: %s", w)
    return AnnotationScan(tuple(tals), tuple(warnings))


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------
def format_seconds(value: float) -> str:
    """Plain decimal spelling of a non-negative number of seconds."""
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text or "E" in text:
        text = f"{value:.9f}".rstrip("0").rstrip(".")
    return text


def _onset_text(onset: float) -> str:
    sign = "-" if onset < 0 else "+"
    return sign + format_seconds(abs(onset))


def encode_tal(annotation: Annotation) -> bytes:
    out = bytearray(_onset_text(annotation.onset).encode("ascii"))
    if annotation.duration is not None:
        out.append(DURATION_MARK)
        out += format_seconds(annotation.duration).encode("ascii")
    out.append(TEXT_END)
    for text in annotation.texts:
        if any(ch in text for ch in _RESERVED_CHARS):
            raise InvalidDocument(f"annotation text {text!r} contains a TAL delimiter")
        out += text.encode("utf-8")
        out.append(TEXT_END)
    out.append(TAL_END)
    return bytes(out)


def encode_timekeeping(onset: float) -> bytes:
    """TAL that marks the start time of a data record."""
    return _onset_text(onset).encode("ascii") + bytes((TEXT_END, TEXT_END, TAL_END))


def channel_bytes(samples: np.ndarray) -> bytes:
    """Raw bytes of an annotation channel's digital samples."""
    return np.asarray(samples).astype("<i2").tobytes()


def build_annotation_channel(
    annotations: Iterable[Annotation],
    *,
    record_count: int,
    record_duration: float,
    samples_per_record: int,
    record_onsets: Sequence[float] | None = None,
) -> np.ndarray:
    """
    Lay out a time-keeping TAL per record plus `annotations` into an
    annotation channel, returned as int16 digital samples.

    Each annotation goes into the record containing its onset, or the next
    record with room. Raises FieldOverflow when they do not fit.
    """
    capacity = 2 * samples_per_record
    if record_onsets is None:
        record_onsets = [k * record_duration for k in range(record_count)]
    elif len(record_onsets) != record_count:
        raise InvalidDocument(
            f"{len(record_onsets)} record onset(s) for {record_count} record(s)"
        )

    records = [bytearray(encode_timekeeping(float(t))) for t in record_onsets]
    for k, rec in enumerate(records):
        if len(rec) > capacity:
            raise FieldOverflow(
                f"time-keeping TAL needs {len(rec)} bytes, record holds {capacity}",
                record_index=k,
            )

    for ann in sorted(annotations, key=lambda a: a.onset):
        tal = encode_tal(ann)
        if record_duration > 0:
            first = int(math.floor(ann.onset / record_duration))
        else:
            first = 0
        first = min(max(first, 0), max(record_count - 1, 0))
        for k in range(first, record_count):
            if len(records[k]) + len(tal) <= capacity:
                records[k] += tal
                break
        else:
            raise FieldOverflow(
                f"no room for annotation at {ann.onset}s ({len(tal)} bytes)",
                record_index=first,
            )

    payload = b"".join(bytes(rec).ljust(capacity, b"\x00") for rec in records)
    if not payload:
        return np.empty(0, dtype=np.int16)
    return np.frombuffer(payload, dtype="<i2").astype(np.int16)
