"""Command-line interface for nestbuild."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from nestbuild.config import load_config
from nestbuild.errors import NestbuildError
from nestbuild.loader import load_project_model
from nestbuild.pipeline import resolve_project
from nestbuild.renderer.report import render_json, render_summary

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="nestbuild",
        description="Resolve a multi-build project model into an IDE module graph.",
    )
    parser.add_argument(
        "model",
        type=Path,
        help="Project model file (.yaml, .json or .toml)",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Write the JSON report to this file (default: stdout)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Directory holding .nestbuild.toml or pyproject.toml (default: model's directory)",
    )
    parser.add_argument(
        "--tool-version",
        default=None,
        help="Override the build tool version recorded in the model",
    )
    parser.add_argument(
        "--merge-modules",
        action="store_true",
        default=None,
        help="Collapse projects with a single source set into one module",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Resolve builds in parallel with this many threads",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a plain-text summary instead of JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) output",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if args.verbose:
        logging.getLogger("nestbuild").setLevel(logging.DEBUG)

    config = load_config(args.config or args.model.resolve().parent)
    if args.tool_version is not None:
        config.tool_version = args.tool_version
    if args.merge_modules is not None:
        config.merge_single_source_set = args.merge_modules
    if args.workers is not None:
        config.workers = max(1, args.workers)

    try:
        model = load_project_model(args.model)
        result = resolve_project(model, config)
    except NestbuildError as e:
        logger.error("%s", e)
        sys.exit(1)

    if args.summary:
        print(render_summary(result))
        return
    text = render_json(result, args.output)
    if args.output is None:
        print(text)
    else:
        logger.info("Wrote %s", args.output)
