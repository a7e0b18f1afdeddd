# edfcodec/core/exceptions.py
from __future__ import annotations


class CodecError(Exception):
    """Base error for all EDF codec exceptions.

    Every error may carry the absolute byte ``offset`` and/or the data
    ``record_index`` where it occurred; both are rendered into ``str(err)``.
    """

    def __init__(
        self,
        message: str = "",
        *,
        offset: int | None = None,
        record_index: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset
        self.record_index = record_index

    def __str__(self) -> str:
        where = []
        if self.record_index is not None:
            where.append(f"record {self.record_index}")
        if self.offset is not None:
            where.append(f"byte offset {self.offset}")
        if not where:
            return self.message
        return f"{self.message} ({', '.join(where)})"

    @property
    def kind(self) -> str:
        return type(self).__name__


# ---- Fixed-width fields ----
class MalformedField(CodecError, ValueError):
    """Raised when a fixed-width field does not parse (or lies outside the buffer)."""


class InvalidVersion(MalformedField):
    """Raised when the version field is not ``"0"``."""


class FieldOverflow(CodecError, ValueError):
    """Raised when a value is too wide for its fixed-width field."""


# ---- Header structure ----
class HeaderError(CodecError):
    """Base for structural header failures."""


class TruncatedHeader(HeaderError):
    """Raised when the buffer is shorter than the header it declares."""


class InvalidSignalCount(HeaderError):
    """Raised when the signal count is not a non-negative integer."""


class HeaderLengthMismatch(HeaderError):
    """Raised when the header byte length disagrees with ``256 + 256 * ns``."""


# ---- Data records ----
class RecordError(CodecError):
    """Base for data-record failures."""


class TruncatedRecord(RecordError):
    """Raised when the data region ends inside a record.

    ``samples`` holds the per-signal digital arrays of the complete records
    read before the failure. The decode façade also attaches ``document``,
    a Document built from those records.
    """

    def __init__(self, message: str = "", *, samples=None, document=None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.samples = samples
        self.document = document


# ---- Scaling ----
class DegenerateScale(CodecError, ArithmeticError):
    """Raised when a signal's digital or physical range has zero span."""


class OutOfRange(CodecError, ValueError):
    """Raised when a physical value falls outside the range and clamping is off."""


# ---- Construction / lookup ----
class InvalidSignalSpec(CodecError, ValueError):
    """Raised when a SignalSpec is constructed with invalid inputs."""


class InvalidDocument(CodecError, ValueError):
    """Raised when a Header / Document is constructed with inconsistent inputs."""


class InvalidTimeSeries(CodecError, ValueError):
    """Raised when a TimeSeries is constructed with invalid inputs."""


class SignalNotFound(CodecError, KeyError):
    """Raised when a requested signal label is not present."""

    def __str__(self) -> str:
        return CodecError.__str__(self)


# ---- Recoverable conditions, attached to Document.warnings ----
class CodecWarning(CodecError):
    """Base for recoverable conditions reported alongside a decoded Document."""


class TrailingBytes(CodecWarning):
    """Bytes left after the declared number of data records."""


class MalformedAnnotation(CodecWarning):
    """A time-stamped annotation list that could not be parsed."""
