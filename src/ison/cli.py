"""
ISON command-line interface.

Converts between ISON, ISONL, JSON and YAML and summarizes documents.

Usage:
    ison convert data.ison --to json
    ison convert data.json -o data.ison --smart-order --auto-refs
    ison convert stream.isonl --to ison --align
    ison inspect data.ison [--json]
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import yaml

from ison.dump import DumpOptions, dumps, dumps_isonl
from ison.model import Document
from ison.parser import parse, parse_isonl
from ison.serialization import (
    FromDictOptions,
    document_from_dict,
    document_from_json,
    document_from_yaml,
    document_to_json,
    document_to_yaml,
)


logger = logging.getLogger(__name__)

FORMATS = ("ison", "isonl", "json", "yaml")

_EXTENSIONS = {
    ".ison": "ison",
    ".isonl": "isonl",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def read_input(path: str) -> str:
    """
    Read a file, or stdin when path is "-".

    Raises:
        OSError: If the file cannot be read
    """
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def detect_format(path: Optional[str], default: str) -> str:
    if not path or path == "-":
        return default
    ext = os.path.splitext(path)[1].lower()
    return _EXTENSIONS.get(ext, default)


def load_document(text: str, fmt: str, from_dict: FromDictOptions) -> Document:
    """
    Decode text in the given format.

    JSON/YAML inputs go through document_from_dict when any FromDictOptions
    flag is set, so references and column ordering can be applied.
    """
    if fmt == "ison":
        return parse(text)
    if fmt == "isonl":
        return parse_isonl(text)
    if from_dict.auto_refs or from_dict.smart_order:
        data = json.loads(text) if fmt == "json" else yaml.safe_load(text)
        if not isinstance(data, dict):
            return Document()
        return document_from_dict({str(k): v for k, v in data.items()}, from_dict)
    if fmt == "json":
        return document_from_json(text)
    return document_from_yaml(text)


def render_document(doc: Document, fmt: str, dump_options: DumpOptions) -> str:
    if fmt == "ison":
        return dumps(doc, dump_options)
    if fmt == "isonl":
        return dumps_isonl(doc)
    if fmt == "json":
        return document_to_json(doc, indent=2) + "\n"
    return document_to_yaml(doc)


def summarize(doc: Document) -> List[dict]:
    return [
        {
            "kind": block.kind,
            "name": block.name,
            "fields": [f.to_ison() for f in block.fields],
            "rows": len(block.rows),
            "summary": block.summary_row is not None,
        }
        for block in doc.ordered_blocks()
    ]


def format_summary(doc: Document) -> str:
    lines: List[str] = []
    if not doc.order:
        return "No blocks found"
    for entry in summarize(doc):
        suffix = " (+summary)" if entry["summary"] else ""
        lines.append(f"{entry['kind']}.{entry['name']}: {entry['rows']} rows{suffix}")
        lines.append(f"  Fields: {' '.join(entry['fields'])}")
    return "\n".join(lines)


def cmd_convert(args: argparse.Namespace) -> int:
    """
    Convert a document between formats.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    src_fmt = args.source_format or detect_format(args.input, "ison")
    dst_fmt = args.target_format or detect_format(args.output, "ison")

    try:
        text = read_input(args.input)
    except OSError as e:
        print(f"Error: Cannot read file: {e}", file=sys.stderr)
        return 1

    from_dict = FromDictOptions(auto_refs=args.auto_refs, smart_order=args.smart_order)
    try:
        doc = load_document(text, src_fmt, from_dict)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        print(f"Error: Cannot decode {src_fmt} input: {e}", file=sys.stderr)
        return 1

    logger.info("Loaded %d blocks from %s (%s)", len(doc.order), args.input, src_fmt)

    dump_options = DumpOptions(align_columns=args.align, delimiter=args.delimiter)
    output = render_document(doc, dst_fmt, dump_options)

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(output)
        except OSError as e:
            print(f"Error: Cannot write file: {e}", file=sys.stderr)
            return 1
        logger.info("Wrote %s (%s)", args.output, dst_fmt)
    else:
        sys.stdout.write(output)

    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """
    Print the blocks of a document.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        text = read_input(args.input)
    except OSError as e:
        print(f"Error: Cannot read file: {e}", file=sys.stderr)
        return 1

    isonl = args.isonl or detect_format(args.input, "ison") == "isonl"
    doc = parse_isonl(text) if isonl else parse(text)

    if args.json:
        print(json.dumps(summarize(doc), indent=2))
    else:
        print(format_summary(doc))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ison",
        description="Convert and inspect ISON documents",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert_parser = subparsers.add_parser("convert", help="Convert between ISON, ISONL, JSON and YAML")
    convert_parser.add_argument("input", help="Input file, or - for stdin")
    convert_parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    convert_parser.add_argument(
        "--from",
        dest="source_format",
        choices=FORMATS,
        help="Input format (default: from extension, else ison)",
    )
    convert_parser.add_argument(
        "--to",
        dest="target_format",
        choices=FORMATS,
        help="Output format (default: from output extension, else ison)",
    )
    convert_parser.add_argument("--align", action="store_true", help="Align ISON columns")
    convert_parser.add_argument("--delimiter", default=" ", help="ISON cell delimiter")
    convert_parser.add_argument(
        "--auto-refs",
        action="store_true",
        help="Turn *_id columns into references (JSON/YAML input)",
    )
    convert_parser.add_argument(
        "--smart-order",
        action="store_true",
        help="Order columns id, names, data, references (JSON/YAML input)",
    )
    convert_parser.set_defaults(func=cmd_convert)

    inspect_parser = subparsers.add_parser("inspect", help="List blocks, fields and row counts")
    inspect_parser.add_argument("input", help="Input file, or - for stdin")
    inspect_parser.add_argument("--isonl", action="store_true", help="Treat input as ISONL")
    inspect_parser.add_argument("--json", action="store_true", help="Output results as JSON")
    inspect_parser.set_defaults(func=cmd_inspect)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
