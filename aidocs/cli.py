"""CLI entrypoints for ai-docs commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import AiDocsError, ManifestMissing
from .logging import configure_logging
from .orchestrator import Orchestrator

EXIT_MANIFEST_MISSING = 2


def _add_common_options(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    verbose_kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    docs_kwargs: dict[str, object] = {
        "help": "Directory for generated docs (defaults to docsDir from the config, then ai_docs/).",
    }
    log_kwargs: dict[str, object] = {
        "help": "Also write a DEBUG transcript, tagged per library, to this file.",
    }
    if suppress_default:
        for kwargs in (verbose_kwargs, docs_kwargs, log_kwargs):
            kwargs["default"] = argparse.SUPPRESS
    else:
        verbose_kwargs["default"] = False
        docs_kwargs["default"] = None
        log_kwargs["default"] = None
    parser.add_argument("-v", "--verbose", **verbose_kwargs)
    parser.add_argument("--docs-dir", **docs_kwargs)
    parser.add_argument("--log-file", **log_kwargs)


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root containing package.json (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aidocs",
        description="Summarize installed packages into JSON docs for AI coding assistants.",
    )
    _add_common_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Regenerate docs for libraries that are missing or out of date.",
    )
    _add_common_options(run_parser, suppress_default=True)
    _add_path_argument(run_parser)
    run_parser.add_argument(
        "--force",
        action="store_true",
        help="Regenerate docs for every declared library, ignoring cached versions.",
    )
    run_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the libraries that would be processed without calling the model.",
    )
    run_parser.add_argument(
        "--consolidate",
        action="store_true",
        help="Rebuild the consolidated index after processing.",
    )

    consolidate_parser = subparsers.add_parser(
        "consolidate",
        help="Merge all per-library docs into consolidated_index.json.",
    )
    _add_common_options(consolidate_parser, suppress_default=True)
    _add_path_argument(consolidate_parser)

    status_parser = subparsers.add_parser(
        "status",
        help="Show which libraries are stale without processing them.",
    )
    _add_common_options(status_parser, suppress_default=True)
    _add_path_argument(status_parser)

    prune_parser = subparsers.add_parser(
        "prune",
        help="Delete docs for libraries no longer declared in package.json.",
    )
    _add_common_options(prune_parser, suppress_default=True)
    _add_path_argument(prune_parser)
    prune_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the docs that would be removed without deleting them.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for ai-docs commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        orchestrator = Orchestrator.for_root(args.path, docs_dir=args.docs_dir)
        if args.command == "run":
            report = orchestrator.run(
                force=bool(args.force),
                dry_run=bool(args.dry_run),
                consolidate=bool(args.consolidate),
            )
            if report.dry_run:
                for entry in report.pending:
                    print(f"{entry.name}@{entry.version}")
            else:
                print(
                    f"Processed {len(report.outcomes)} libraries: "
                    f"{len(report.succeeded)} succeeded, {len(report.failed)} failed"
                )
                for outcome in report.failed:
                    print(f"  {outcome.entry.name}@{outcome.entry.version}: {outcome.reason}")
            if report.consolidated_path:
                print(f"Consolidated index written to {_relativize(Path(report.consolidated_path))}")
        elif args.command == "consolidate":
            output = orchestrator.consolidate()
            print(f"Consolidated index written to {_relativize(output)}")
        elif args.command == "status":
            pending = orchestrator.pending()
            if not pending.entries:
                print("All library docs are up to date")
            for entry in pending.entries:
                marker = " (additional)" if entry.name in pending.forced else ""
                print(f"stale  {entry.name}@{entry.version}{marker}")
            for name in pending.ledger.unreadable:
                print(f"unreadable  {name}")
        elif args.command == "prune":
            removed = orchestrator.prune(dry_run=bool(args.dry_run))
            verb = "Would remove" if args.dry_run else "Removed"
            print(f"{verb} docs for {len(removed)} libraries")
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except ManifestMissing as exc:
        parser.exit(EXIT_MANIFEST_MISSING, f"Error: {exc}\n")
    except AiDocsError as exc:
        parser.exit(1, f"aidocs {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
