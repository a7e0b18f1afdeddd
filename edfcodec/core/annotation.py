# edfcodec/core/annotation.py
from __future__ import annotations

import math
from dataclasses import dataclass

from .exceptions import InvalidDocument


@dataclass(frozen=True, slots=True)
class Annotation:
    """EDF+ annotation: onset (s, relative to recording start), optional duration, texts."""

    onset: float
    duration: float | None = None
    texts: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        onset = float(self.onset)
        if not math.isfinite(onset):
            raise InvalidDocument("Annotation.onset must be finite.")
        object.__setattr__(self, "onset", onset)

        if self.duration is not None:
            duration = float(self.duration)
            if not math.isfinite(duration) or duration < 0:
                raise InvalidDocument("Annotation.duration must be a finite, non-negative number.")
            object.__setattr__(self, "duration", duration)

        if isinstance(self.texts, str):
            texts: tuple[str, ...] = (self.texts,)
        else:
            texts = tuple(self.texts)
        if not texts:
            raise InvalidDocument("Annotation.texts must hold at least one string.")
        for text in texts:
            if not isinstance(text, str) or not text:
                raise InvalidDocument("Annotation.texts must be non-empty strings.")
        object.__setattr__(self, "texts", texts)

    @property
    def end(self) -> float | None:
        return None if self.duration is None else self.onset + self.duration
