"""linkscript command line entry point."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List

from .document import Document
from .errors import LinkScriptError
from .partial_writer import PartialLinkerWriter
from .runtime import RuntimeSettings
from .writer import LinkerWriter

LOG = logging.getLogger("linkscript.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkscript",
        description="Generate a GNU ld script from a YAML memory layout",
    )
    parser.add_argument("input", type=Path, help="Layout document (YAML)")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Linker script to write")
    parser.add_argument("--d-path", help="Write a make dependency file here (overrides settings.d_path)")
    parser.add_argument(
        "--symbols-header",
        help="Write a C header declaring every generated symbol (overrides settings.symbols_header_path)",
    )
    parser.add_argument(
        "-t",
        "--tag",
        dest="tags",
        action="append",
        default=[],
        help="Activate a tag for include_if_*/exclude_if_* conditions (repeatable)",
    )
    parser.add_argument(
        "-c",
        "--custom-option",
        dest="custom_options",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Define a {KEY} path placeholder; also activates the tag KEY=VALUE (repeatable)",
    )
    parser.add_argument(
        "--partial-linking",
        action="store_true",
        help="Emit one script per segment plus a main script referencing the partially linked objects",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LINKSCRIPT_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    return parser


def _parse_custom_options(parser: argparse.ArgumentParser, values: List[str]) -> Dict[str, str]:
    options: Dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            parser.error(f"custom option must look like KEY=VALUE: {item!r}")
        options[key] = value
    return options


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    runtime = RuntimeSettings.from_options(args.tags, _parse_custom_options(parser, args.custom_options))

    try:
        document = Document.read(args.input)
        overrides = {}
        if args.d_path:
            overrides["d_path"] = args.d_path
        if args.symbols_header:
            overrides["symbols_header_path"] = args.symbols_header
        if overrides:
            document = dataclasses.replace(document, settings=dataclasses.replace(document.settings, **overrides))

        if args.partial_linking:
            writer = PartialLinkerWriter(document, runtime)
        else:
            writer = LinkerWriter(document, runtime)
        writer.add_whole_document()
        writer.export_linker_script_to_file(args.output)
        writer.save_other_files(str(args.output))
    except LinkScriptError as exc:
        LOG.debug("generation failed", exc_info=True)
        print(f"linkscript: error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
