# edfcodec/io/codec.py
"""
decode(bytes) -> Document and encode(Document) -> bytes.

The only entry points external callers need; everything else in
``edfcodec.io`` is a building block.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, Sequence

import numpy as np

from edfcodec.core.annotation import Annotation
from edfcodec.core.document import Document
from edfcodec.core.exceptions import CodecWarning, InvalidDocument, TruncatedRecord
from edfcodec.core.header import Header, SignalSpec
from edfcodec.core.options import DEFAULT_OPTIONS, CodecOptions
from edfcodec.core.scaling import physical_to_digital
from edfcodec.io.annotations import build_annotation_channel, channel_bytes, decode_annotations
from edfcodec.io.header import parse_header, serialize_header
from edfcodec.io.records import RecordLayout, decode_records, encode_records

logger = logging.getLogger(__name__)


def _scan_annotations(
    header: Header,
    signals: Sequence[SignalSpec],
    samples: Sequence[np.ndarray],
    record_count: int,
) -> tuple[tuple[Annotation, ...], tuple[float, ...] | None, tuple[CodecWarning, ...]]:
    channels = [j for j, s in enumerate(signals) if s.is_annotation]
    if not channels:
        return (), None, ()

    layout = RecordLayout.from_signals(signals)
    spans = layout.spans
    annotations: list[Annotation] = []
    warnings: list[CodecWarning] = []
    onsets: list[float | None] = []

    for k in range(record_count):
        record_offset = header.header_bytes + k * layout.bytes_per_record
        onset: float | None = None
        for n, j in enumerate(channels):
            spr = signals[j].samples_per_record
            raw = channel_bytes(samples[j][k * spr:(k + 1) * spr])
            scan = decode_annotations(
                raw,
                base_offset=record_offset + 2 * spans[j][0],
                record_index=k,
            )
            annotations.extend(scan.annotations)
            warnings.extend(scan.warnings)
            if n == 0:
                onset = scan.record_onset
        onsets.append(onset)

    record_onsets = None
    if onsets and all(t is not None for t in onsets):
        record_onsets = tuple(onsets)  # type: ignore[arg-type]

    logger.debug(
        "Scanned %d annotation channel(s): %d annotation(s), %d malformed TAL(s)",
        len(channels), len(annotations), len(warnings),
    )
    return tuple(annotations), record_onsets, tuple(warnings)


def _assemble(
    header: Header,
    signals: tuple[SignalSpec, ...],
    samples: tuple[np.ndarray, ...],
    record_count: int,
    warnings: tuple[CodecWarning, ...],
    options: CodecOptions,
    *,
    complete: bool = True,
) -> Document:
    annotations: tuple[Annotation, ...] = ()
    onsets = None
    if options.decode_annotations:
        annotations, onsets, tal_warnings = _scan_annotations(
            header, signals, samples, record_count
        )
        warnings = warnings + tal_warnings

    return Document(
        header=header,
        signals=signals,
        samples=samples,
        annotations=annotations,
        record_onsets=onsets,
        warnings=warnings,
        complete=complete,
    )


def decode(data, options: CodecOptions = DEFAULT_OPTIONS) -> Document:
    """
    Decode a complete EDF/EDF+ file held in memory.

    Raises a CodecError subclass carrying the byte offset (and record index
    for record failures). On TruncatedRecord, ``err.document`` holds a
    Document with the complete records read before the failure.
    Recoverable conditions (TrailingBytes, MalformedAnnotation) end up in
    ``Document.warnings``.
    """
    view = memoryview(data).cast("B")
    header, signals = parse_header(view, options)
    data_start = header.header_bytes

    try:
        records = decode_records(view[data_start:], header, signals, base_offset=data_start)
    except TruncatedRecord as err:
        partial = err.samples
        if partial is None:
            partial = RecordLayout.from_signals(signals).empty()
        err.document = _assemble(
            header, signals, partial, err.record_index or 0, (), options, complete=False
        )
        logger.debug("Decoding stopped: %s", err)
        raise

    for w in records.warnings:
        logger.warning("%s", w)

    doc = _assemble(header, signals, records.samples, records.record_count, records.warnings, options)
    logger.debug(
        "Decoded %d signal(s) x %d record(s), %d warning(s)",
        len(signals), doc.record_count, len(doc.warnings),
    )
    return doc


def encode(document: Document) -> bytes:
    """Serialize a Document to EDF bytes (header + data records)."""
    header = document.header
    if not document.complete:
        header = dataclasses.replace(header, record_count=document.record_count)
    return serialize_header(header, document.signals) + encode_records(
        document.samples, document.signals
    )


def build_document(
    header: Header,
    signals: Sequence[SignalSpec],
    physical: Sequence[Sequence[float] | np.ndarray | None],
    annotations: Iterable[Annotation] = (),
    *,
    record_onsets: Sequence[float] | None = None,
    options: CodecOptions = DEFAULT_OPTIONS,
) -> Document:
    """
    Build a Document from physical values.

    Ordinary signals are converted with physical_to_digital (clamping per
    ``options.clamp``). Annotation signals take ``None`` in `physical`; their
    payload is laid out from `annotations` with one time-keeping TAL per
    record (the annotations go to the first annotation signal).
    """
    signals = tuple(signals)
    annotations = tuple(annotations)
    if len(physical) != len(signals):
        raise InvalidDocument(f"{len(physical)} physical array(s) for {len(signals)} signal(s)")
    if annotations and not any(s.is_annotation for s in signals):
        raise InvalidDocument("annotations given but no 'EDF Annotations' signal to hold them")

    record_count = max(header.record_count, 0)
    for spec, values in zip(signals, physical):
        if not spec.is_annotation and spec.samples_per_record and values is not None:
            record_count = len(values) // spec.samples_per_record
            break

    samples: list[np.ndarray] = []
    first_annotation = True
    for spec, values in zip(signals, physical):
        if spec.is_annotation:
            samples.append(build_annotation_channel(
                annotations if first_annotation else (),
                record_count=record_count,
                record_duration=header.record_duration,
                samples_per_record=spec.samples_per_record,
                record_onsets=record_onsets,
            ))
            first_annotation = False
        elif values is None:
            samples.append(np.empty(0, dtype=np.int16))
        else:
            samples.append(
                np.atleast_1d(physical_to_digital(spec, values, clamp=options.clamp))
            )

    return Document(
        header=header,
        signals=signals,
        samples=tuple(samples),
        annotations=annotations,
        record_onsets=record_onsets,
    )


def encode_physical(
    header: Header,
    signals: Sequence[SignalSpec],
    physical: Sequence[Sequence[float] | np.ndarray | None],
    annotations: Iterable[Annotation] = (),
    *,
    record_onsets: Sequence[float] | None = None,
    options: CodecOptions = DEFAULT_OPTIONS,
) -> bytes:
    """build_document + encode."""
    return encode(build_document(
        header, signals, physical, annotations,
        record_onsets=record_onsets, options=options,
    ))
