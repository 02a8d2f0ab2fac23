# Copyright 2026 NNCircuit Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the NNCircuit command-line interface."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from nncircuit.errors import CircuitError
from nncircuit.layout.config import DEFAULT_CONFIG_FILENAME, LayoutConfig, LayoutConfigError, load_layout_config
from nncircuit.pipeline.artifact import serialize_graph, write_graph
from nncircuit.pipeline.loader import DocumentError, elaborate_document, load_document
from nncircuit.validation.checks import validate_document

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the NNCircuit CLI."""
    parser = argparse.ArgumentParser(
        prog="nncircuit",
        description="NNCircuit: elaborate and lay out hierarchical circuit diagrams",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log elaboration and layout details to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check a diagram document for consistency errors",
        description="Validate a diagram document without elaborating it.",
    )
    check_parser.add_argument("file", help="Diagram JSON document")

    # elaborate subcommand
    elaborate_parser = subparsers.add_parser(
        "elaborate",
        help="Elaborate and lay out a module of a diagram document",
        description=(
            "Elaborate a module into a flat, positioned instance graph and write it "
            "as JSON to a file or to standard output."
        ),
    )
    elaborate_parser.add_argument("file", help="Diagram JSON document")
    elaborate_parser.add_argument(
        "--module",
        default=None,
        help="Module definition to elaborate (default: the document's entry point)",
    )
    elaborate_parser.add_argument(
        "--config",
        default=None,
        help=f"Layout configuration file (default: {DEFAULT_CONFIG_FILENAME} next to the document, if present)",
    )
    elaborate_parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Override a parameter of the elaborated module; may be repeated",
    )
    elaborate_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="File to write the graph to (default: standard output)",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "elaborate":
        return _cmd_elaborate(args)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    try:
        document = load_document(Path(args.file))
    except DocumentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    result = validate_document(document)
    for warning in result.warnings:
        print(f"Warning: {warning.message}")
    for error in result.errors:
        print(f"Error: {error.message}", file=sys.stderr)

    if result.has_errors:
        return 1

    print("No issues found.")
    return 0


def _cmd_elaborate(args: argparse.Namespace) -> int:
    """Handle the elaborate subcommand."""
    document_path = Path(args.file)
    try:
        config = _layout_config(args.config, document_path)
        overrides = _parse_overrides(args.param)
        document = load_document(document_path)
        elaboration = elaborate_document(document, args.module, config, overrides)
    except (DocumentError, LayoutConfigError, CircuitError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.output is None:
        print(serialize_graph(elaboration.module))
        return 0

    output = Path(args.output)
    write_graph(elaboration.module, output)
    print(f"Wrote '{elaboration.module.id}' to '{output}'.")
    return 0


def _layout_config(option: str | None, document_path: Path) -> LayoutConfig:
    if option is not None:
        return load_layout_config(Path(option))
    default = document_path.parent / DEFAULT_CONFIG_FILENAME
    if default.exists():
        return load_layout_config(default)
    return LayoutConfig()


def _parse_overrides(items: list[str]) -> dict[str, Any]:
    """Parse ``NAME=VALUE`` options; values use YAML scalar syntax so ``4`` is a number."""
    overrides: dict[str, Any] = {}
    for item in items:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise DocumentError(f"Invalid parameter override '{item}', expected NAME=VALUE")
        try:
            overrides[name.strip()] = yaml.safe_load(value)
        except yaml.YAMLError as exc:
            raise DocumentError(f"Invalid value for parameter '{name.strip()}': {exc}") from exc
    return overrides
