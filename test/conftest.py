# test/conftest.py
import datetime as dt

import numpy as np
import pytest

from edfcodec.core import Header, SignalSpec

_COLUMNS = (
    ("label", 16),
    ("transducer", 80),
    ("dim", 8),
    ("pmin", 8),
    ("pmax", 8),
    ("dmin", 8),
    ("dmax", 8),
    ("prefilter", 80),
    ("spr", 8),
    ("reserved", 32),
)


def _pad(value, width):
    text = str(value)
    assert len(text) <= width, (text, width)
    return text.ljust(width)


def raw_signal(label="EEG Fz", spr=4, pmin=-100, pmax=100, dmin=-2048, dmax=2047,
               dim="uV", transducer="AgAgCl electrode", prefilter="HP:0.1Hz", reserved=""):
    return {
        "label": label, "transducer": transducer, "dim": dim, "pmin": pmin, "pmax": pmax,
        "dmin": dmin, "dmax": dmax, "prefilter": prefilter, "spr": spr, "reserved": reserved,
    }


def raw_header(signals, *, version="0", patient="X M 01-JAN-1970 Patient", recording="Startdate 02-JAN-2003 rec",
               date="02.01.03", time="04.05.06", header_bytes=None, reserved="",
               record_count=1, duration=1, ns=None):
    ns_value = len(signals) if ns is None else ns
    if header_bytes is None:
        header_bytes = 256 + 256 * len(signals)
    text = (
        _pad(version, 8) + _pad(patient, 80) + _pad(recording, 80)
        + _pad(date, 8) + _pad(time, 8) + _pad(header_bytes, 8)
        + _pad(reserved, 44) + _pad(record_count, 8) + _pad(duration, 8)
        + _pad(ns_value, 4)
    )
    for key, width in _COLUMNS:
        for sig in signals:
            text += _pad(sig[key], width)
    return text.encode("latin-1")


def int16_bytes(values):
    return np.asarray(values, dtype="<i2").tobytes()


@pytest.fixture
def make_signal():
    return raw_signal


@pytest.fixture
def make_header():
    return raw_header


@pytest.fixture
def sample_bytes():
    return int16_bytes


@pytest.fixture
def header_factory():
    def _make(signal_count=1, record_count=1, record_duration=1.0, reserved="", **kwargs):
        return Header(
            patient_id=kwargs.pop("patient_id", "P"),
            recording_id=kwargs.pop("recording_id", "R"),
            start_date=kwargs.pop("start_date", dt.date(2003, 1, 2)),
            start_time=kwargs.pop("start_time", dt.time(4, 5, 6)),
            record_count=record_count,
            record_duration=record_duration,
            signal_count=signal_count,
            reserved=reserved,
            **kwargs,
        )
    return _make


@pytest.fixture
def spec_factory():
    def _make(label="EEG Fz", samples_per_record=4, **kwargs):
        values = dict(
            physical_min=-100.0,
            physical_max=100.0,
            digital_min=-2048,
            digital_max=2047,
            physical_dimension="uV",
        )
        values.update(kwargs)
        return SignalSpec(label=label, samples_per_record=samples_per_record, **values)
    return _make


@pytest.fixture
def multirate_edf(make_header, make_signal, sample_bytes):
    """Two signals, 4 and 1 samples per record, 10 records.

    Record k holds [10k, 10k+1, 10k+2, 10k+3] for the first signal and [-k]
    for the second.
    """
    signals = [make_signal("EEG Fz", spr=4), make_signal("Resp", spr=1, dim="mV")]
    data = b"".join(
        sample_bytes([10 * k, 10 * k + 1, 10 * k + 2, 10 * k + 3, -k]) for k in range(10)
    )
    return make_header(signals, record_count=10) + data
