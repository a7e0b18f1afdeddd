"""
EDF/EDF+ byte layer: fixed-width fields, header table, data records,
annotation lists, and the decode/encode façade built on them.
"""

from .codec import build_document, decode, encode, encode_physical
from .load import load_edf, save_edf

__all__ = [
    "decode",
    "encode",
    "build_document",
    "encode_physical",
    "load_edf",
    "save_edf",
]
