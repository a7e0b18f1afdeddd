"""edfcodec: European Data Format (EDF/EDF+) decoder and encoder."""

from edfcodec.core import (
    Annotation,
    CodecError,
    CodecOptions,
    Document,
    Header,
    SignalSpec,
    TimeSeries,
)
from edfcodec.io import build_document, decode, encode, encode_physical, load_edf, save_edf

__version__ = "0.1.0"

__all__ = [
    "Annotation",
    "CodecError",
    "CodecOptions",
    "Document",
    "Header",
    "SignalSpec",
    "TimeSeries",
    "build_document",
    "decode",
    "encode",
    "encode_physical",
    "load_edf",
    "save_edf",
]
