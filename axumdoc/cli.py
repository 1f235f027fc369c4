"""CLI entrypoints for axumdoc commands."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path

from .config import ConfigError, load_config, split_model_files
from .logging import configure_logging
from .orchestrator import Generator
from .routing.resolver import EntryError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Trace route resolution at debug level.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axumdoc",
        description="Generate an OpenAPI document from the routes of an Axum service.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Resolve routes and write the OpenAPI document.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument(
        "-b",
        "--base-dir",
        default=".",
        help="Root of the analyzed crate (defaults to current directory).",
    )
    generate_parser.add_argument(
        "-f",
        "--handler-file",
        default=None,
        help="Entry file relative to the base directory (default: src/main.rs).",
    )
    generate_parser.add_argument(
        "-m",
        "--model-files",
        default=None,
        help="Comma separated model files (default: src/form.rs,src/response.rs,src/types.rs).",
    )
    generate_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output file relative to the base directory (default: openapi.json).",
    )
    generate_parser.add_argument(
        "-e",
        "--entry-fn",
        default=None,
        help="Function that builds the router (default: detected).",
    )
    generate_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only print diagnostics and errors.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the generation service over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for axumdoc commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "quiet", False)),
    )

    if args.command == "generate":
        base_dir = Path(args.base_dir).expanduser()
        if not base_dir.is_dir():
            parser.exit(1, f"Base directory does not exist: {base_dir}\n")
        try:
            config = load_config(base_dir)
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        config = _apply_overrides(config, args)
        generator = Generator(config)
        try:
            result = generator.run()
        except EntryError as exc:
            parser.exit(1, f"{exc}\n")
        output_path = generator.write(result)
        print(f"OpenAPI spec generated successfully at: {_relativize(output_path)}")
        print(f"Found {len(result.routes)} routes")
        print(f"Found {result.model_count} models")
        if result.diagnostics:
            print(f"{len(result.diagnostics)} diagnostic(s) reported")
    elif args.command == "serve":
        from .service.app import run_service

        try:
            run_service(host=args.host, port=args.port)
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _apply_overrides(config, args: argparse.Namespace):
    entry = config.entry
    if args.handler_file:
        entry = dataclasses.replace(entry, file=args.handler_file)
    if args.entry_fn:
        entry = dataclasses.replace(entry, function=args.entry_fn)
    changes: dict[str, object] = {"entry": entry}
    if args.model_files is not None:
        changes["model_files"] = split_model_files(args.model_files)
    if args.output:
        changes["output"] = args.output
    return dataclasses.replace(config, **changes)


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
