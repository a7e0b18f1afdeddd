# edfcodec/core/options.py
from __future__ import annotations

from dataclasses import dataclass

ANNOTATION_LABEL = "EDF Annotations"


@dataclass(frozen=True, slots=True)
class CodecOptions:
    """
    Knobs shared by decode / encode.

    - clamp: physical values outside [physical_min, physical_max] saturate
      to the digital limits; when False they raise OutOfRange
    - check_version: reject files whose version field is not "0"
    - decode_annotations: scan EDF+ annotation channels into Annotations
    """
    clamp: bool = True
    check_version: bool = True
    decode_annotations: bool = True


DEFAULT_OPTIONS = CodecOptions()
