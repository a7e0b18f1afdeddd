# edfcodec/io/records.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from edfcodec.core.document import aligned_record_count
from edfcodec.core.exceptions import CodecWarning, TrailingBytes, TruncatedRecord
from edfcodec.core.header import Header, SignalSpec

logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.dtype("<i2")  # on-disk sample: little-endian int16
SAMPLE_BYTES = SAMPLE_DTYPE.itemsize


@dataclass(frozen=True, slots=True)
class RecordLayout:
    """
    Byte layout of one data record: per signal, a contiguous run of
    `samples_per_record[j]` samples, signals in declared order.
    """
    samples_per_record: tuple[int, ...]

    @classmethod
    def from_signals(cls, signals: Sequence[SignalSpec]) -> "RecordLayout":
        return cls(tuple(s.samples_per_record for s in signals))

    @property
    def samples_per_record_total(self) -> int:
        return sum(self.samples_per_record)

    @property
    def bytes_per_record(self) -> int:
        return SAMPLE_BYTES * self.samples_per_record_total

    @property
    def spans(self) -> tuple[tuple[int, int], ...]:
        """(start, stop) sample index of each signal inside a record."""
        out = []
        start = 0
        for n in self.samples_per_record:
            out.append((start, start + n))
            start += n
        return tuple(out)

    def empty(self) -> tuple[np.ndarray, ...]:
        return tuple(np.empty(0, dtype=np.int16) for _ in self.samples_per_record)


@dataclass(frozen=True, slots=True)
class DecodedRecords:
    samples: tuple[np.ndarray, ...] = field(repr=False)
    record_count: int
    warnings: tuple[CodecWarning, ...] = ()


def _demux(data, layout: RecordLayout, count: int) -> tuple[np.ndarray, ...]:
    """Split `count` records into one native int16 array per signal (copies)."""
    if count == 0 or layout.samples_per_record_total == 0:
        return layout.empty()
    block = np.frombuffer(
        data, dtype=SAMPLE_DTYPE, count=count * layout.samples_per_record_total
    ).reshape(count, layout.samples_per_record_total)
    # astype copies, so nothing keeps the caller's buffer alive
    return tuple(
        block[:, start:stop].astype(np.int16).reshape(-1)
        for start, stop in layout.spans
    )


def decode_records(
    data,
    header: Header,
    signals: Sequence[SignalSpec],
    *,
    base_offset: int = 0,
) -> DecodedRecords:
    """
    Demultiplex the data region (everything after the header) into per-signal
    digital sample arrays.

    Parameters
    ----------
    data:
        Bytes-like object holding the data records.
    base_offset:
        Absolute file offset of ``data[0]``; only used for error reporting.

    Raises
    ------
    TruncatedRecord
        The data ends inside a record. ``err.samples`` holds the complete
        records decoded before it.
    """
    layout = RecordLayout.from_signals(signals)
    bpr = layout.bytes_per_record
    size = len(data)
    warnings: list[CodecWarning] = []

    if bpr == 0:
        count = max(header.record_count, 0)
        if size:
            warnings.append(TrailingBytes(
                f"{size} byte(s) of data but records hold no samples", offset=base_offset
            ))
        return DecodedRecords(layout.empty(), count, tuple(warnings))

    available, remainder = divmod(size, bpr)

    if header.record_count == -1:
        count = available
        if remainder:
            raise TruncatedRecord(
                f"{remainder} byte(s) left after {available} full record(s) of {bpr} bytes",
                offset=base_offset + available * bpr,
                record_index=available,
                samples=_demux(data, layout, available),
            )
    else:
        count = header.record_count
        if available < count:
            raise TruncatedRecord(
                f"header declares {count} record(s), data holds {available} full record(s)",
                offset=base_offset + available * bpr,
                record_index=available,
                samples=_demux(data, layout, available),
            )
        extra = size - count * bpr
        if extra:
            warnings.append(TrailingBytes(
                f"{extra} byte(s) after {count} declared record(s)",
                offset=base_offset + count * bpr,
                record_index=count,
            ))

    logger.debug("Decoding %d record(s) of %d bytes", count, bpr)
    return DecodedRecords(_demux(data, layout, count), count, tuple(warnings))


def encode_records(
    samples: Sequence[np.ndarray],
    signals: Sequence[SignalSpec],
) -> bytes:
    """Pack per-signal digital samples into little-endian data records."""
    layout = RecordLayout.from_signals(signals)
    count = aligned_record_count(samples, signals)
    if not count:
        return b""

    block = np.empty((count, layout.samples_per_record_total), dtype=SAMPLE_DTYPE)
    for arr, spr, (start, stop) in zip(samples, layout.samples_per_record, layout.spans):
        if spr:
            block[:, start:stop] = np.asarray(arr).reshape(count, spr)

    logger.debug("Encoded %d record(s) of %d bytes", count, layout.bytes_per_record)
    return block.tobytes()
