# test/test_header.py
import datetime as dt

import pytest

from edfcodec.core import (
    FieldOverflow,
    Header,
    HeaderLengthMismatch,
    InvalidDocument,
    InvalidSignalCount,
    InvalidSignalSpec,
    InvalidVersion,
    MalformedField,
    SignalSpec,
    TruncatedHeader,
    header_length,
)
from edfcodec.core.options import CodecOptions
from edfcodec.io.header import expand_year, parse_header, serialize_header, signal_field_offset


# ---- model ----
def test_header_derives_header_bytes(header_factory):
    h = header_factory(signal_count=3)
    assert h.header_bytes == 256 + 256 * 3 == header_length(3)


def test_header_rejects_mismatched_header_bytes(header_factory):
    with pytest.raises(HeaderLengthMismatch):
        header_factory(signal_count=2, header_bytes=512)


def test_header_accepts_matching_header_bytes(header_factory):
    assert header_factory(signal_count=2, header_bytes=768).header_bytes == 768


def test_header_rejects_bad_signal_count(header_factory):
    with pytest.raises(InvalidSignalCount):
        header_factory(signal_count=-1)
    with pytest.raises(InvalidSignalCount):
        header_factory(signal_count=10000)


def test_header_rejects_bad_record_count(header_factory):
    with pytest.raises(InvalidDocument):
        header_factory(record_count=-2)


def test_header_unknown_record_count_allowed(header_factory):
    h = header_factory(record_count=-1)
    assert not h.record_count_known


def test_header_start_datetime_and_edf_plus_flags(header_factory):
    h = header_factory(reserved="EDF+D")
    assert h.start_datetime == dt.datetime(2003, 1, 2, 4, 5, 6)
    assert h.is_edf_plus
    assert h.is_discontinuous
    assert not header_factory().is_edf_plus


def test_signal_spec_rejects_digital_outside_int16():
    with pytest.raises(InvalidSignalSpec):
        SignalSpec("x", -1.0, 1.0, -40000, 100, 1)


def test_signal_spec_rejects_negative_samples():
    with pytest.raises(InvalidSignalSpec):
        SignalSpec("x", -1.0, 1.0, -1, 1, -1)


def test_signal_spec_allows_degenerate_ranges():
    spec = SignalSpec("flat", 0.0, 0.0, 5, 5, 1)
    assert spec.digital_min == spec.digital_max


def test_annotation_label_detection():
    assert SignalSpec("EDF Annotations", -1.0, 1.0, -32768, 32767, 30).is_annotation
    assert not SignalSpec("EEG", -1.0, 1.0, -32768, 32767, 30).is_annotation


# ---- column layout ----
def test_signal_field_offsets_are_column_major():
    assert signal_field_offset("label", 0, 2) == 256
    assert signal_field_offset("label", 1, 2) == 256 + 16
    assert signal_field_offset("transducer", 0, 2) == 256 + 2 * 16
    assert signal_field_offset("samples_per_record", 1, 3) == 256 + 3 * 216 + 8
    assert signal_field_offset("reserved", 2, 3) == 256 + 3 * 224 + 2 * 32


@pytest.mark.parametrize(
    "yy, year", [(85, 1985), (99, 1999), (0, 2000), (84, 2084), (1, 2001)]
)
def test_expand_year_uses_1985_clip(yy, year):
    assert expand_year(yy) == year


# ---- parse ----
class TestParseHeader:
    def test_parse_two_signals(self, make_header, make_signal):
        raw = make_header(
            [make_signal("EEG Fz", spr=256), make_signal("ECG", spr=128, pmin=-5, pmax=5, dim="mV")],
            record_count=30, duration=1, reserved="EDF+C",
        )
        header, signals = parse_header(raw)

        assert header.patient_id == "X M 01-JAN-1970 Patient"
        assert header.start_date == dt.date(2003, 1, 2)
        assert header.start_time == dt.time(4, 5, 6)
        assert header.header_bytes == 768
        assert header.record_count == 30
        assert header.record_duration == 1.0
        assert header.signal_count == 2
        assert header.reserved == "EDF+C"

        assert [s.label for s in signals] == ["EEG Fz", "ECG"]
        assert [s.samples_per_record for s in signals] == [256, 128]
        assert signals[1].physical_min == -5.0
        assert signals[1].physical_dimension == "mV"
        assert signals[0].transducer == "AgAgCl electrode"
        assert signals[0].prefiltering == "HP:0.1Hz"
        assert signals[0].digital_min == -2048

    def test_parse_zero_signals(self, make_header):
        header, signals = parse_header(make_header([], record_count=0))
        assert header.signal_count == 0
        assert signals == ()

    def test_start_date_before_clip_year(self, make_header, make_signal):
        header, _ = parse_header(make_header([make_signal()], date="31.12.84"))
        assert header.start_date == dt.date(2084, 12, 31)

    def test_truncated_global_header(self):
        with pytest.raises(TruncatedHeader):
            parse_header(b"0       " + b" " * 100)

    def test_truncated_signal_table(self, make_header, make_signal):
        raw = make_header([make_signal(), make_signal("B")])
        with pytest.raises(TruncatedHeader):
            parse_header(raw[:600])

    @pytest.mark.parametrize("ns", ["ab", "-1", "    "])
    def test_invalid_signal_count(self, make_header, make_signal, ns):
        raw = make_header([make_signal()], ns=ns)
        with pytest.raises(InvalidSignalCount) as exc:
            parse_header(raw)
        assert exc.value.offset == 252

    def test_header_length_mismatch(self, make_header, make_signal):
        raw = make_header([make_signal(), make_signal("B")], header_bytes=512)
        with pytest.raises(HeaderLengthMismatch) as exc:
            parse_header(raw)
        assert exc.value.offset == 184

    def test_invalid_version(self, make_header, make_signal):
        raw = make_header([make_signal()], version="1")
        with pytest.raises(InvalidVersion):
            parse_header(raw)
        # InvalidVersion is a MalformedField
        with pytest.raises(MalformedField):
            parse_header(raw)

    def test_version_check_can_be_disabled(self, make_header, make_signal):
        raw = make_header([make_signal()], version="1")
        header, _ = parse_header(raw, CodecOptions(check_version=False))
        assert header.signal_count == 1

    def test_bad_start_date(self, make_header, make_signal):
        with pytest.raises(MalformedField) as exc:
            parse_header(make_header([make_signal()], date="31.02.03"))
        assert exc.value.offset == 168

    def test_bad_start_time(self, make_header, make_signal):
        with pytest.raises(MalformedField) as exc:
            parse_header(make_header([make_signal()], time="25.00.00"))
        assert exc.value.offset == 176

    def test_digital_limit_outside_int16(self, make_header, make_signal):
        raw = make_header([make_signal(), make_signal("B", dmax=40000)])
        with pytest.raises(MalformedField) as exc:
            parse_header(raw)
        assert exc.value.offset == signal_field_offset("digital_max", 1, 2)

    def test_non_numeric_physical_min(self, make_header, make_signal):
        raw = make_header([make_signal(pmin="abc")])
        with pytest.raises(MalformedField) as exc:
            parse_header(raw)
        assert exc.value.offset == signal_field_offset("physical_min", 0, 1)

    def test_negative_duration(self, make_header, make_signal):
        with pytest.raises(MalformedField) as exc:
            parse_header(make_header([make_signal()], duration=-1))
        assert exc.value.offset == 244


# ---- serialize ----
class TestSerializeHeader:
    def test_byte_exact_against_hand_built_header(self, make_header, make_signal):
        raw = make_header(
            [make_signal("EEG Fz", spr=4), make_signal("Resp", spr=1, dim="mV", pmin=-3276.8)],
            record_count=10, duration=0.5, reserved="EDF+C",
        )
        header, signals = parse_header(raw)
        assert serialize_header(header, signals) == raw

    def test_unknown_record_count_written_as_minus_one(self, header_factory, spec_factory):
        out = serialize_header(header_factory(record_count=-1), [spec_factory()])
        assert out[236:244] == b"-1      "

    def test_label_overflow(self, header_factory):
        spec = SignalSpec("x" * 17, -1.0, 1.0, -1, 1, 1)
        with pytest.raises(FieldOverflow) as exc:
            serialize_header(header_factory(), [spec])
        assert exc.value.offset == 256

    def test_signal_count_disagrees(self, header_factory, spec_factory):
        with pytest.raises(InvalidDocument):
            serialize_header(header_factory(signal_count=2), [spec_factory()])

    def test_date_written_with_two_digit_year(self, header_factory, spec_factory):
        h = header_factory(start_date=dt.date(1999, 12, 31), start_time=dt.time(23, 59, 1))
        out = serialize_header(h, [spec_factory()])
        assert out[168:184] == b"31.12.9923.59.01"
