"""CLI entrypoints for assetserve commands."""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .errors import AssetError
from .hashing import DEFAULT_ALGORITHM, DEFAULT_TOKEN_LENGTH, available_algorithms, hash_of
from .logging import configure_logging
from .server import AssetServer


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
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


def _add_config_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .assetserve.yml or the directory holding it (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetserve",
        description="Serve static assets under content-fingerprinted URLs.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Serve the configured mounts over HTTP.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_config_option(serve_parser)
    serve_parser.add_argument("--host", default=None, help="Override server.host.")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server.port.")
    serve_parser.add_argument(
        "--no-watch",
        action="store_true",
        help="Do not watch mounted directories for changes.",
    )

    hash_parser = subparsers.add_parser(
        "hash",
        help="Print the content token of one or more files.",
    )
    _add_verbose_option(hash_parser, suppress_default=True)
    hash_parser.add_argument("files", nargs="+", help="Files to fingerprint.")
    hash_parser.add_argument(
        "--algorithm",
        default=DEFAULT_ALGORITHM,
        choices=available_algorithms(),
        help="Checksum or digest used for the token.",
    )
    hash_parser.add_argument(
        "--length",
        type=int,
        default=DEFAULT_TOKEN_LENGTH,
        help="Number of hex characters in the token.",
    )

    url_parser = subparsers.add_parser(
        "url",
        help="Print the fingerprinted URL of an asset.",
    )
    _add_verbose_option(url_parser, suppress_default=True)
    _add_config_option(url_parser)
    url_parser.add_argument("prefix", help="Mount prefix, e.g. /static/.")
    url_parser.add_argument("name", help="Asset path relative to the mount directory.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for assetserve commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file) if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    if args.command == "serve":
        from .service import run_service

        try:
            config = load_config(Path(args.config))
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        if not config.mounts:
            parser.exit(1, f"No mounts configured in {config.root}\n")
        if args.no_watch:
            config.watch = replace(config.watch, enabled=False)
        try:
            run_service(config, host=args.host, port=args.port)
        except AssetError as exc:
            parser.exit(1, f"assetserve serve failed: {exc}\n")
    elif args.command == "hash":
        if args.length <= 0:
            parser.exit(1, "--length must be a positive integer\n")
        status = 0
        for name in args.files:
            try:
                token = hash_of(Path(name), algorithm=args.algorithm, length=args.length)
            except OSError as exc:
                print(f"{name}: {exc.strerror or exc}", file=sys.stderr)
                status = 1
                continue
            print(f"{token}  {name}")
        if status:
            parser.exit(status)
    elif args.command == "url":
        try:
            config = load_config(Path(args.config))
        except ConfigError as exc:
            parser.exit(1, f"{exc}\n")
        config.watch = replace(config.watch, enabled=False)
        try:
            with AssetServer.from_config(config) as server:
                print(server.asset_url(args.prefix, args.name))
        except AssetError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


if __name__ == "__main__":
    main(sys.argv[1:])
