# edfcodec/io/load.py
from __future__ import annotations

import logging
from pathlib import Path

from edfcodec.core import CodecOptions, Document
from edfcodec.core.options import DEFAULT_OPTIONS
from edfcodec.io.codec import decode, encode

logger = logging.getLogger(__name__)


def load_edf(path: str | Path, options: CodecOptions = DEFAULT_OPTIONS) -> Document:
    path = Path(path)
    doc = decode(path.read_bytes(), options)
    logger.info(
        "Loaded %s: %d signal(s), %d record(s)", path.name, len(doc), doc.record_count
    )
    return doc


def save_edf(path: str | Path, document: Document) -> Path:
    path = Path(path)
    path.write_bytes(encode(document))
    logger.info("Wrote %s", path.name)
    return path
