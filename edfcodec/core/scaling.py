# edfcodec/core/scaling.py
"""
Linear digital <-> physical scaling of EDF samples.

    physical = physical_min + (digital - digital_min) * gain
    gain     = (physical_max - physical_min) / (digital_max - digital_min)

The inverse rounds to the nearest integer. Values outside the physical
range saturate to the digital limits by default (like a clipping sensor);
pass ``clamp=False`` to get OutOfRange instead.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .exceptions import DegenerateScale, OutOfRange
from .header import SignalSpec


@dataclass(frozen=True, slots=True)
class Scale:
    physical_min: float
    physical_max: float
    digital_min: int
    digital_max: int

    def __post_init__(self) -> None:
        if self.digital_max == self.digital_min:
            raise DegenerateScale(
                f"digital range [{self.digital_min}, {self.digital_max}] has zero span."
            )
        if self.physical_max == self.physical_min:
            raise DegenerateScale(
                f"physical range [{self.physical_min}, {self.physical_max}] has zero span."
            )

    @classmethod
    def from_signal(cls, spec: SignalSpec) -> "Scale":
        try:
            return cls(
                physical_min=spec.physical_min,
                physical_max=spec.physical_max,
                digital_min=spec.digital_min,
                digital_max=spec.digital_max,
            )
        except DegenerateScale as e:
            raise DegenerateScale(f"signal '{spec.label}': {e.message}") from None

    @property
    def gain(self) -> float:
        return (self.physical_max - self.physical_min) / (self.digital_max - self.digital_min)

    @property
    def offset(self) -> float:
        """Physical value of digital zero."""
        return self.physical_min - self.digital_min * self.gain

    @property
    def quantum(self) -> float:
        """Physical size of one digital step."""
        return abs(self.gain)

    def to_physical(self, digital: Any) -> Any:
        d = np.asarray(digital, dtype=np.float64)
        out = self.physical_min + (d - self.digital_min) * self.gain
        return float(out) if out.ndim == 0 else out

    def to_digital(self, physical: Any, *, clamp: bool = True) -> Any:
        p = np.asarray(physical, dtype=np.float64)
        if not np.isfinite(p).all():
            raise OutOfRange("physical values must be finite.")

        d = np.rint(self.digital_min + (p - self.physical_min) / self.gain)
        lo = min(self.digital_min, self.digital_max)
        hi = max(self.digital_min, self.digital_max)
        if clamp:
            d = np.clip(d, lo, hi)
        elif d.size and (d.min() < lo or d.max() > hi):
            raise OutOfRange(
                f"physical value(s) outside [{self.physical_min}, {self.physical_max}]."
            )

        out = d.astype(np.int16)
        return int(out) if out.ndim == 0 else out


def digital_to_physical(spec: SignalSpec, digital: Any) -> Any:
    """Scale digital sample(s) of `spec` to physical units."""
    return Scale.from_signal(spec).to_physical(digital)


def physical_to_digital(spec: SignalSpec, physical: Any, *, clamp: bool = True) -> Any:
    """Inverse of digital_to_physical, rounded and clamped to [digital_min, digital_max]."""
    return Scale.from_signal(spec).to_digital(physical, clamp=clamp)
