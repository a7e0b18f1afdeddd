# edfcodec/io/fields.py
"""
Fixed-width ASCII field marshalling.

Pure text/number <-> bytes conversion at absolute offsets. Fields are
left-justified and padded with spaces. Text travels as Latin-1 so any
byte value round-trips.
"""
from __future__ import annotations

import math

from edfcodec.core.exceptions import FieldOverflow, MalformedField

PAD = b" "
TEXT_ENCODING = "latin-1"
_DIGITS = frozenset("0123456789")
# largest relative error accepted when a real is shortened to fit its field
REAL_TOLERANCE = 1e-3


def _slice(buffer: bytes, offset: int, width: int) -> bytes:
    if offset < 0 or width < 0 or offset + width > len(buffer):
        raise MalformedField(
            f"{width}-byte field exceeds buffer of {len(buffer)} bytes",
            offset=offset,
        )
    return bytes(buffer[offset:offset + width])


def _field_text(buffer: bytes, offset: int, width: int) -> str:
    return _slice(buffer, offset, width).decode(TEXT_ENCODING)


def read_text(buffer: bytes, offset: int, width: int) -> str:
    """Read a text field, trimming trailing padding (spaces and NULs)."""
    return _field_text(buffer, offset, width).rstrip(" \x00")


def _split_sign(text: str) -> tuple[str, str]:
    # some writers pad between the sign and the digits ("- 5")
    if text[:1] in ("+", "-"):
        return text[0], text[1:].lstrip(" ")
    return "", text


def read_integer(buffer: bytes, offset: int, width: int) -> int:
    """Read an optionally signed decimal integer field."""
    raw = _field_text(buffer, offset, width)
    text = raw.strip(" \x00")
    sign, digits = _split_sign(text)
    if not digits or not set(digits) <= _DIGITS:
        raise MalformedField(f"expected an integer, got {raw!r}", offset=offset)
    value = int(digits)
    return -value if sign == "-" else value


def read_real(buffer: bytes, offset: int, width: int) -> float:
    """Read an optionally signed decimal number with optional fraction."""
    raw = _field_text(buffer, offset, width)
    text = raw.strip(" \x00")
    sign, body = _split_sign(text)
    whole, _, frac = body.partition(".")
    if (
        not (whole or frac)
        or not set(whole) <= _DIGITS
        or not set(frac) <= _DIGITS
    ):
        raise MalformedField(f"expected a decimal number, got {raw!r}", offset=offset)
    return float(f"{sign}{whole or '0'}.{frac or '0'}")


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------
def pack_text(value: str, width: int, *, offset: int | None = None) -> bytes:
    """Encode `value` left-justified and space-padded to exactly `width` bytes."""
    try:
        raw = value.encode(TEXT_ENCODING)
    except UnicodeEncodeError as e:
        raise MalformedField(
            f"{value!r} is not representable in {TEXT_ENCODING}", offset=offset
        ) from e
    if len(raw) > width:
        raise FieldOverflow(
            f"{value!r} needs {len(raw)} bytes, field holds {width}", offset=offset
        )
    return raw.ljust(width, PAD)


def format_integer(value: int) -> str:
    return str(int(value))


def format_real(value: float, width: int) -> str:
    """Shortest plain decimal spelling of `value` that fits in `width` characters.

    Integral values are written without a fraction. Otherwise fraction
    digits are dropped until the text fits. Raises FieldOverflow if even
    the integer part does not fit, or if the shortened text is off by more
    than REAL_TOLERANCE relative to `value` (a tiny non-zero value that
    would be written as "0" always is).
    """
    value = float(value)
    if not math.isfinite(value):
        raise FieldOverflow(f"{value!r} cannot be written as a decimal field")

    if value.is_integer():
        text = str(int(value))
        if len(text) > width:
            raise FieldOverflow(f"{value!r} does not fit in {width} characters")
        return text

    text = repr(value)
    if "e" not in text and "E" not in text and len(text) <= width:
        return text

    for digits in range(width, -1, -1):
        text = f"{value:.{digits}f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        if text in ("-0", ""):
            text = "0"
        if len(text) <= width:
            break
    else:
        raise FieldOverflow(f"{value!r} does not fit in {width} characters")

    if abs(float(text) - value) > REAL_TOLERANCE * abs(value):
        raise FieldOverflow(
            f"{value!r} cannot be written in {width} characters "
            f"(closest is {text!r})"
        )
    return text


def _check_bounds(buffer: bytearray, offset: int, width: int) -> None:
    if offset < 0 or offset + width > len(buffer):
        raise FieldOverflow(
            f"{width}-byte field exceeds buffer of {len(buffer)} bytes", offset=offset
        )


def write_text(buffer: bytearray, offset: int, width: int, value: str) -> None:
    _check_bounds(buffer, offset, width)
    buffer[offset:offset + width] = pack_text(value, width, offset=offset)


def write_integer(buffer: bytearray, offset: int, width: int, value: int) -> None:
    _check_bounds(buffer, offset, width)
    buffer[offset:offset + width] = pack_text(format_integer(value), width, offset=offset)


def write_real(buffer: bytearray, offset: int, width: int, value: float) -> None:
    _check_bounds(buffer, offset, width)
    try:
        text = format_real(value, width)
    except FieldOverflow as e:
        raise FieldOverflow(e.message, offset=offset) from None
    buffer[offset:offset + width] = pack_text(text, width, offset=offset)
