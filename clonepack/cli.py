"""CLI entrypoints for clonepack commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path, PurePosixPath
from typing import Sequence, Tuple

from .config import ConfigError, load_config
from .logging import configure_logging, get_logger
from .orchestrator import MalformedEntryError, Orchestrator
from .repo_scanner import RepoReader
from .serializer import ArtifactSerializer


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


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log records to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clonepack",
        description="Package a cloned repository into a size-bounded chat artifact.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    pack_parser = subparsers.add_parser(
        "pack",
        help="Pack a working tree into an artifact.",
    )
    _add_verbose_option(pack_parser, suppress_default=True)
    _add_log_file_option(pack_parser, suppress_default=True)
    pack_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    pack_parser.add_argument(
        "--source",
        default=None,
        help="Label naming where the files came from (defaults to the path).",
    )
    pack_parser.add_argument(
        "--destination",
        default="/home/project",
        help="Label naming where the files are imported to.",
    )
    pack_parser.add_argument(
        "--config",
        default=None,
        help="Path to a .clonepack.yml file (defaults to the one in the repository root).",
    )
    pack_parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the result to this file instead of stdout.",
    )
    pack_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit a JSON document with the artifact, admitted paths and skipped files.",
    )

    extract_parser = subparsers.add_parser(
        "extract",
        help="Write the files embedded in an artifact back to disk.",
    )
    _add_verbose_option(extract_parser, suppress_default=True)
    _add_log_file_option(extract_parser, suppress_default=True)
    extract_parser.add_argument("artifact", help="Path to a file containing the artifact text.")
    extract_parser.add_argument(
        "--dest",
        required=True,
        help="Directory that receives the extracted files.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP packing service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_log_file_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to a .clonepack.yml file applied to every request.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for clonepack commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = getattr(args, "log_file", None)
    configure_logging(
        verbose=bool(args.verbose),
        log_file=Path(log_file) if log_file else None,
    )

    if args.command == "pack":
        try:
            output = _run_pack(args)
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except (ConfigError, MalformedEntryError) as exc:
            parser.exit(1, f"clonepack pack failed: {exc}\n")
        if args.output:
            Path(args.output).write_text(output, encoding="utf-8", newline="")
            print(f"Artifact written to {args.output}")
        else:
            print(output)
    elif args.command == "extract":
        try:
            written = _run_extract(Path(args.artifact), Path(args.dest))
        except FileNotFoundError as exc:
            parser.exit(1, f"{exc}\n")
        except ValueError as exc:
            parser.exit(1, f"clonepack extract failed: {exc}\n")
        print(f"Extracted {written} files into {args.dest}")
    elif args.command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        try:
            run_service(
                host=args.host,
                port=args.port,
                config_path=Path(args.config) if args.config else None,
            )
        except RuntimeError as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_pack(args: argparse.Namespace) -> str:
    repo_path = Path(args.path).expanduser().resolve()
    config_path = Path(args.config) if args.config else repo_path
    config = load_config(config_path)

    entries = RepoReader().read(str(repo_path))
    source = args.source or str(repo_path)
    result = Orchestrator(config).run(entries, source, args.destination)

    if not args.json:
        return result.artifact
    payload = {
        "artifact": result.artifact,
        "admitted": result.admitted_paths,
        "skipped": [
            {"path": record.path, "reason": record.reason.value, "detail": record.detail}
            for record in result.skip_records
        ],
        "total_bytes": result.total_bytes,
    }
    return json.dumps(payload, indent=2)


def _safe_target(dest: Path, rel_path: str) -> Path:
    posix = PurePosixPath(rel_path)
    if posix.is_absolute() or ".." in posix.parts or not posix.parts:
        raise ValueError(f"Refusing to write outside the destination: {rel_path}")
    return dest.joinpath(*posix.parts)


def _run_extract(artifact_path: Path, dest: Path) -> int:
    # newline="" keeps \r\n and lone \r in file content intact.
    with artifact_path.open(encoding="utf-8", newline="") as handle:
        text = handle.read()
    files: Sequence[Tuple[str, str]] = ArtifactSerializer().extract(text)
    targets = [(_safe_target(dest, path), content) for path, content in files]
    for target, content in targets:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8", newline="")
    get_logger("cli").info("Extracted %d files from %s", len(targets), artifact_path)
    return len(targets)


if __name__ == "__main__":
    main(sys.argv[1:])
