"""
Core domain objects for edfcodec.

This module defines the in-memory EDF/EDF+ model:
- Header / SignalSpec: global header and per-signal header entries
- Document: header + signal table + digital samples (+ annotations)
- Annotation: EDF+ time-stamped annotation
- Scale: digital <-> physical conversion of one signal
- TimeSeries: physical view of one signal, record by record

The core layer is independent from the on-disk byte layout (see edfcodec.io).
"""

from .annotation import Annotation
from .document import Document, aligned_record_count
from .header import Header, SignalSpec, header_length
from .options import ANNOTATION_LABEL, CodecOptions
from .scaling import Scale, digital_to_physical, physical_to_digital
from .timeseries import TimeSeries
from .exceptions import (
    CodecError,
    CodecWarning,
    MalformedField,
    InvalidVersion,
    FieldOverflow,
    HeaderError,
    TruncatedHeader,
    InvalidSignalCount,
    HeaderLengthMismatch,
    RecordError,
    TruncatedRecord,
    TrailingBytes,
    DegenerateScale,
    OutOfRange,
    MalformedAnnotation,
    InvalidSignalSpec,
    InvalidDocument,
    InvalidTimeSeries,
    SignalNotFound,
)


__all__ = [
    # model
    "Header",
    "SignalSpec",
    "Document",
    "Annotation",
    "TimeSeries",
    "header_length",
    "aligned_record_count",
    "ANNOTATION_LABEL",

    # scaling
    "Scale",
    "digital_to_physical",
    "physical_to_digital",

    # config
    "CodecOptions",

    # exceptions
    "CodecError",
    "CodecWarning",
    "MalformedField",
    "InvalidVersion",
    "FieldOverflow",
    "HeaderError",
    "TruncatedHeader",
    "InvalidSignalCount",
    "HeaderLengthMismatch",
    "RecordError",
    "TruncatedRecord",
    "TrailingBytes",
    "DegenerateScale",
    "OutOfRange",
    "MalformedAnnotation",
    "InvalidSignalSpec",
    "InvalidDocument",
    "InvalidTimeSeries",
    "SignalNotFound",
]
