# edfcodec/__main__.py
"""python -m edfcodec inspect FILE"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from edfcodec.core import CodecError, CodecOptions, Document, HeaderError, MalformedField, RecordError
from edfcodec.io import load_edf

EXIT_OK = 0
EXIT_IO = 1
EXIT_HEADER = 2
EXIT_RECORD = 3
EXIT_CODEC = 4


def exit_code(err: BaseException) -> int:
    """Exit status for a failure, by error family."""
    if isinstance(err, OSError):
        return EXIT_IO
    if isinstance(err, (HeaderError, MalformedField)):
        return EXIT_HEADER
    if isinstance(err, RecordError):
        return EXIT_RECORD
    return EXIT_CODEC


def describe(doc: Document) -> str:
    h = doc.header
    lines = [
        f"Patient:        {h.patient_id}",
        f"Recording:      {h.recording_id}",
        f"Start:          {h.start_datetime.isoformat(sep=' ')}",
        f"Format:         {h.reserved or 'EDF'}",
        f"Header bytes:   {h.header_bytes}",
        f"Data records:   {doc.record_count}"
        + (" (declared -1)" if not h.record_count_known else ""),
        f"Record length:  {h.record_duration:g} s",
        f"Signals:        {h.signal_count}",
    ]
    for j, s in enumerate(doc.signals):
        lines.append(
            f"  [{j:>3}] {s.label:<16} {s.samples_per_record:>6}/rec "
            f"{s.physical_min:g}..{s.physical_max:g} {s.physical_dimension}"
        )
    if doc.annotation_indices:
        lines.append(f"Annotations:    {len(doc.annotations)}")
    for w in doc.warnings:
        lines.append(f"warning: {w.kind}: {w}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="edfcodec", description="EDF/EDF+ codec tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect = sub.add_parser("inspect", help="Decode a file and print its header summary")
    inspect.add_argument("input", help="Path to an .edf file")
    inspect.add_argument(
        "--no-version-check", action="store_true", help="Accept any version field"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    options = CodecOptions(check_version=not args.no_version_check)
    try:
        doc = load_edf(args.input, options)
    except (OSError, CodecError) as err:
        kind = err.kind if isinstance(err, CodecError) else type(err).__name__
        print(f"error: {kind}: {err}", file=sys.stderr)
        return exit_code(err)

    print(describe(doc))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
