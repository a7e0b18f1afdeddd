# test/test_codec.py
import numpy as np
import pytest

from edfcodec import CodecOptions, build_document, decode, encode, encode_physical
from edfcodec.core import (
    Annotation,
    FieldOverflow,
    HeaderLengthMismatch,
    InvalidDocument,
    MalformedAnnotation,
    OutOfRange,
    Scale,
    SignalSpec,
    TrailingBytes,
    TruncatedHeader,
    TruncatedRecord,
)
from edfcodec.io.annotations import encode_tal, encode_timekeeping


def _assert_same(a, b):
    assert a.header == b.header
    assert a.signals == b.signals
    assert len(a.samples) == len(b.samples)
    for x, y in zip(a.samples, b.samples):
        assert np.array_equal(x, y)


def test_multirate_decode(multirate_edf):
    doc = decode(multirate_edf)
    assert doc.record_count == 10
    assert [len(s) for s in doc.samples] == [40, 10]
    assert doc.digital("Resp").tolist() == [-k for k in range(10)]
    assert doc.warnings == ()


def test_encode_is_byte_exact(multirate_edf):
    assert encode(decode(multirate_edf)) == multirate_edf


def test_round_trip_decode_encode_decode(multirate_edf):
    first = decode(multirate_edf)
    second = decode(encode(first))
    _assert_same(first, second)


def test_decode_accepts_bytearray_and_memoryview(multirate_edf):
    assert decode(bytearray(multirate_edf)).record_count == 10
    assert decode(memoryview(multirate_edf)).record_count == 10


def test_unknown_record_count(make_header, make_signal, sample_bytes):
    signals = [make_signal("a", spr=2), make_signal("b", spr=1)]
    data = sample_bytes(range(9))  # 3 records of 3 samples
    doc = decode(make_header(signals, record_count=-1) + data)

    assert doc.record_count == 3
    assert doc.header.record_count == -1
    assert doc.digital("a").tolist() == [0, 1, 3, 4, 6, 7]
    # -1 survives the round trip
    assert encode(doc)[236:244] == b"-1      "


def test_unknown_record_count_with_partial_record(make_header, make_signal, sample_bytes):
    signals = [make_signal("a", spr=2), make_signal("b", spr=1)]
    raw = make_header(signals, record_count=-1) + sample_bytes(range(9)) + b"\x00" * 5

    with pytest.raises(TruncatedRecord) as exc:
        decode(raw)
    err = exc.value
    assert err.record_index == 3
    assert err.offset == 768 + 18
    assert err.document.record_count == 3
    assert not err.document.complete
    assert "record 3" in str(err)


def test_partial_document_can_be_re_encoded(make_header, make_signal, sample_bytes):
    signals = [make_signal("a", spr=2)]
    raw = make_header(signals, record_count=5) + sample_bytes(range(4))

    with pytest.raises(TruncatedRecord) as exc:
        decode(raw)
    fixed = decode(encode(exc.value.document))
    assert fixed.header.record_count == 2
    assert fixed.digital("a").tolist() == [0, 1, 2, 3]


def test_trailing_bytes_reported_not_fatal(multirate_edf):
    doc = decode(multirate_edf + b"xyz")
    assert doc.record_count == 10
    (warning,) = doc.warnings
    assert isinstance(warning, TrailingBytes)
    assert warning.offset == len(multirate_edf)


def test_header_failures_abort(make_header, make_signal):
    with pytest.raises(TruncatedHeader):
        decode(b"0       ")
    with pytest.raises(HeaderLengthMismatch):
        decode(make_header([make_signal()], header_bytes=256))


# ---- physical values ----
def test_physical_round_trip_within_half_quantum(header_factory):
    spec = SignalSpec("EEG", -200.0, 200.0, -32768, 32767, 8, physical_dimension="uV")
    rng = np.random.default_rng(0)
    values = rng.uniform(-200.0, 200.0, size=8 * 5)

    raw = encode_physical(header_factory(1, record_count=5), [spec], [values])
    got = decode(raw).physical("EEG")

    half_step = Scale.from_signal(spec).quantum / 2
    assert np.all(np.abs(got - values) <= half_step + 1e-9)


def test_encode_refuses_physical_limit_lost_to_field_width(header_factory):
    spec = SignalSpec("x", 0.0, 1e-8, -32768, 32767, 2)
    doc = build_document(header_factory(1), [spec], [[0.0, 1e-8]])
    with pytest.raises(FieldOverflow) as exc:
        encode(doc)
    # physical_max column of the only signal
    assert exc.value.offset == 256 + 112


def test_small_physical_range_round_trips(header_factory):
    spec = SignalSpec("x", -0.0025, 0.0025, -32768, 32767, 2, physical_dimension="V")
    raw = encode_physical(header_factory(1), [spec], [[-0.001, 0.002]])
    doc = decode(raw)
    assert doc.signal("x").physical_min == -0.0025
    assert doc.signal("x").physical_max == 0.0025
    assert np.allclose(doc.physical("x"), [-0.001, 0.002], atol=1e-6)


def test_build_document_clamps_by_default(header_factory, spec_factory):
    spec = spec_factory("x", 2)
    doc = build_document(header_factory(1), [spec], [[500.0, -500.0]])
    assert doc.digital("x").tolist() == [2047, -2048]


def test_build_document_strict_range(header_factory, spec_factory):
    with pytest.raises(OutOfRange):
        build_document(
            header_factory(1), [spec_factory("x", 2)], [[500.0, 0.0]],
            options=CodecOptions(clamp=False),
        )


def test_build_document_annotations_need_a_channel(header_factory, spec_factory):
    with pytest.raises(InvalidDocument):
        build_document(
            header_factory(1), [spec_factory("x", 2)], [[0.0, 0.0]],
            annotations=[Annotation(0.0, None, ("a",))],
        )


# ---- EDF+ ----
@pytest.fixture
def edf_plus_signals(spec_factory):
    return (
        spec_factory("EEG Fz", 4),
        SignalSpec("EDF Annotations", -1.0, 1.0, -32768, 32767, 16),
    )


def test_edf_plus_round_trip(header_factory, edf_plus_signals):
    annotations = [
        Annotation(0.25, None, ("Eyes open",)),
        Annotation(1.5, 2.0, ("Apnea", "Desaturation")),
    ]
    header = header_factory(2, record_count=3, reserved="EDF+C")
    raw = encode_physical(
        header, edf_plus_signals, [np.zeros(12), None], annotations
    )

    doc = decode(raw)
    assert doc.header.is_edf_plus
    assert doc.annotations == tuple(annotations)
    assert doc.record_onsets == (0.0, 1.0, 2.0)
    assert doc.warnings == ()
    assert encode(doc) == raw


def test_malformed_annotation_is_a_warning(make_header, make_signal, sample_bytes):
    signals = [
        make_signal("EEG", spr=1),
        make_signal("EDF Annotations", spr=8, pmin=-1, pmax=1, dmin=-32768, dmax=32767),
    ]

    def record(k, payload):
        ann = np.frombuffer(payload.ljust(16, b"\x00"), dtype="<i2")
        return sample_bytes([k]) + ann.tobytes()

    data = (
        record(0, encode_timekeeping(0.0) + b"?bad\x14\x00")
        + record(1, encode_timekeeping(1.0) + encode_tal(Annotation(1.5, None, ("ok",))))
    )
    doc = decode(make_header(signals, record_count=2, reserved="EDF+C") + data)

    assert [a.texts for a in doc.annotations] == [("ok",)]
    (warning,) = doc.warnings
    assert isinstance(warning, MalformedAnnotation)
    assert warning.record_index == 0
    # header (768) + first record's EEG sample (2) + time-keeping TAL (5)
    assert warning.offset == 768 + 2 + 5


def test_annotation_decoding_can_be_disabled(header_factory, edf_plus_signals):
    raw = encode_physical(
        header_factory(2, record_count=1), edf_plus_signals, [np.zeros(4), None],
        [Annotation(0.5, None, ("x",))],
    )
    doc = decode(raw, CodecOptions(decode_annotations=False))
    assert doc.annotations == ()
    assert doc.record_onsets is None
    assert len(doc.digital("EDF Annotations")) == 16
