"""Command-line interface for packs-core."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

import orjson

from parse.treesitter_ruby import ExtractionError
from references.extractor import get_all_references
from references.models import reference_sort_key
from references.standalone import get_all_references_standalone
from rules.config import ConfigError
from rules.configuration import Configuration, load_configuration


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Application root containing packwerk.yml (default: .)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="packs")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log pipeline progress to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_packs_parser = subparsers.add_parser(
        "list-packs", help="List pack manifests"
    )
    _add_common_paths(list_packs_parser)

    list_todo_parser = subparsers.add_parser(
        "list-todo", help="List acknowledged violations from every package_todo.yml"
    )
    _add_common_paths(list_todo_parser)

    references_parser = subparsers.add_parser(
        "references", help="Resolve constant references as JSONL"
    )
    _add_common_paths(references_parser)
    references_parser.add_argument(
        "files",
        nargs="*",
        help="Files to check, relative to root (default: every included file)",
    )
    references_parser.add_argument(
        "--experimental-parser",
        action="store_true",
        default=None,
        help="Resolve constants from parsed definitions (overrides packwerk.yml)",
    )
    references_parser.add_argument(
        "--standalone",
        action="store_true",
        help="Use the single-pass extractor instead of the cached pipeline",
    )
    references_parser.add_argument(
        "--out",
        default=None,
        help="Write JSONL to this file instead of stdout",
    )

    return parser


def _handle_list_packs(configuration: Configuration) -> int:
    for pack in sorted(configuration.pack_set.packs, key=lambda p: p.name):
        sys.stdout.write(f"{configuration.relative_path(pack.yml)}\n")
    return 0


def _handle_list_todo(configuration: Configuration) -> int:
    identifiers = sorted(
        identifier
        for pack in configuration.pack_set.packs
        for identifier in pack.all_violations()
    )
    for identifier in identifiers:
        sys.stdout.write(
            f"{identifier.referencing_pack_name} -> "
            f"{identifier.defining_pack_name} "
            f"{identifier.violation_type} {identifier.constant_name} "
            f"{identifier.file}\n"
        )
    return 0


def _resolve_files(configuration: Configuration, files: list[str]) -> set[Path]:
    if not files:
        return set(configuration.included_files)
    return {(configuration.absolute_root / file).resolve() for file in files}


def _handle_references(
    configuration: Configuration,
    files: list[str],
    *,
    standalone: bool,
    out: str | None,
) -> int:
    absolute_paths = _resolve_files(configuration, files)
    if standalone:
        references = get_all_references_standalone(configuration, absolute_paths)
    else:
        references = get_all_references(configuration, absolute_paths)
    references.sort(key=reference_sort_key)

    payload = b"".join(
        orjson.dumps(reference.model_dump(), option=orjson.OPT_SORT_KEYS) + b"\n"
        for reference in references
    )
    if out is None:
        sys.stdout.buffer.write(payload)
        sys.stdout.flush()
    else:
        Path(out).expanduser().write_bytes(payload)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    root = Path(args.root).expanduser().resolve()

    try:
        configuration = load_configuration(root)

        if args.command == "list-packs":
            return _handle_list_packs(configuration)

        if args.command == "list-todo":
            return _handle_list_todo(configuration)

        if args.command == "references":
            if args.experimental_parser is not None:
                configuration = dataclasses.replace(
                    configuration, experimental_parser=args.experimental_parser
                )
            return _handle_references(
                configuration,
                args.files,
                standalone=args.standalone,
                out=args.out,
            )
    except (ConfigError, ExtractionError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
