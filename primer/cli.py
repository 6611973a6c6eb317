"""CLI entrypoints for primer commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .compiler import ContextCompiler
from .config import MAX_BUDGET, MIN_BUDGET, ConfigError, load_config
from .logging import configure_logging
from .overrides import load_overrides
from .tree import DEFAULT_TREE_BUDGET, generate_tree


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Log skipped files and grammar fallbacks.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_quiet_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Only log warnings and errors.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _context_budget(value: str) -> int:
    try:
        budget = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid budget: {value!r}") from None
    if not MIN_BUDGET <= budget <= MAX_BUDGET:
        raise argparse.ArgumentTypeError(f"budget must be between {MIN_BUDGET} and {MAX_BUDGET}")
    return budget


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="primer",
        description="Compile a project into a token-budgeted context document.",
    )
    _add_verbose_option(parser)
    _add_quiet_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser(
        "compile",
        help="Generate the context document for a project.",
    )
    _add_verbose_option(compile_parser, suppress_default=True)
    _add_quiet_option(compile_parser, suppress_default=True)
    _add_path_argument(compile_parser)
    compile_parser.add_argument(
        "--budget",
        type=_context_budget,
        default=None,
        help=f"Total token budget ({MIN_BUDGET}-{MAX_BUDGET}); overrides .primer.yml.",
    )
    compile_parser.add_argument(
        "--output",
        default=None,
        help="Where to write the document (defaults to the configured output path).",
    )
    compile_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the document instead of writing it.",
    )

    tree_parser = subparsers.add_parser(
        "tree",
        help="Print the budget-aware project tree.",
    )
    _add_verbose_option(tree_parser, suppress_default=True)
    _add_quiet_option(tree_parser, suppress_default=True)
    _add_path_argument(tree_parser)
    tree_parser.add_argument(
        "--budget",
        type=_positive_int,
        default=DEFAULT_TREE_BUDGET,
        help=f"Token budget for the tree (default {DEFAULT_TREE_BUDGET}).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for primer commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet))

    root = Path(args.path).expanduser()
    if not root.is_dir():
        parser.exit(1, f"Not a directory: {args.path}\n")

    if args.command == "compile":
        dry_run = bool(getattr(args, "dry_run", False))
        try:
            result = ContextCompiler().compile(
                root,
                budget=args.budget,
                output=args.output,
                dry_run=dry_run,
            )
        except OSError as exc:
            parser.exit(1, f"primer compile failed: {exc}\n")
        except Exception as exc:  # pragma: no cover - unexpected failure
            parser.exit(1, f"primer compile failed: {exc}\nRun with --verbose for more details.\n")

        if dry_run:
            sys.stdout.write(result.markdown)
            return
        summary = f"Context written to {_relativize(result.output_path)} ({result.total_tokens} tokens)"
        if result.truncated:
            summary += f"; {len(result.truncated)} files truncated"
        print(summary)
    elif args.command == "tree":
        resolved = root.resolve()
        try:
            config = load_config(resolved)
            ignore = list(config.ignore)
        except ConfigError:
            ignore = []
        overrides = load_overrides(resolved)
        annotations = None
        if overrides is not None:
            ignore.extend(overrides.excludes)
            annotations = overrides.annotations
        sys.stdout.write(
            generate_tree(resolved, budget_tokens=args.budget, annotations=annotations, ignore=ignore)
        )
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path | None) -> str:
    if path is None:
        return "(not written)"
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
