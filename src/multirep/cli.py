from __future__ import annotations

import argparse
import io
import sys
from importlib import metadata
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.markup import escape
from rich.table import Table

import tomllib

from .engine import Pattern, compile_patterns, substitute
from .rules import RuleSet, append_rule, default_rules_path, ensure_rules_file, load_rules

_DEBUG_LOG = False


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[multirep debug] {message}", file=sys.stderr)


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("multirep")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"multirep {__version__}",
    )


def _add_rules_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--rules",
        help="Path to a rules JSON file (default: $MULTIREP_STATE_DIR/rules.json).",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="multirep",
        description=(
            "Replace several substrings at once. Overlapping matches resolve leftmost first, "
            "then longest, then in declaration order. Use `multirep rules` to manage a rules file."
        ),
    )
    _add_version_flag(ap)
    ap.add_argument(
        "paths",
        nargs="*",
        help="Text files to process. Reads stdin when omitted.",
    )
    ap.add_argument(
        "-f",
        "--find",
        action="append",
        default=[],
        help="Text to search for. Repeat for several tokens.",
    )
    ap.add_argument(
        "-r",
        "--replace",
        action="append",
        default=[],
        help="Replacement text, paired with --find in order. The last one is reused for extra --find values.",
    )
    _add_rules_flag(ap)
    target = ap.add_mutually_exclusive_group()
    target.add_argument(
        "-i",
        "--in-place",
        action="store_true",
        help="Rewrite each input file instead of printing the result.",
    )
    target.add_argument(
        "-o",
        "--output",
        help="Write the result to this file (single input only).",
    )
    ap.add_argument(
        "--encoding",
        default="utf-8",
        help="Text encoding for input and output files (default: %(default)s).",
    )
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Print per-match debug information to stderr.",
    )
    return ap


def build_rules_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="multirep rules", description="Manage the multirep rules file.")
    _add_version_flag(ap)
    subparsers = ap.add_subparsers(dest="rules_cmd")

    show = subparsers.add_parser("show", help="List the configured find/replace pairs.")
    _add_rules_flag(show)

    init = subparsers.add_parser("init", help="Create an empty rules file if none exists.")
    _add_rules_flag(init)

    add = subparsers.add_parser("add", help="Append a find/replace pair to the rules file.")
    add.add_argument("find", help="Text to search for.")
    add.add_argument("replace", help="Replacement text (may be empty).")
    _add_rules_flag(add)
    return ap


def _resolve_rules_path(value: str | None) -> Path:
    if value:
        return Path(value).expanduser()
    return default_rules_path()


def _resolve_patterns(args: argparse.Namespace) -> list[Pattern]:
    try:
        if args.find:
            if not args.replace:
                raise SystemExit("--find requires at least one --replace value.")
            return compile_patterns(args.find, args.replace)
        if args.replace:
            raise SystemExit("--replace given without --find.")
        rules_path = _resolve_rules_path(args.rules)
        _debug_log(f"loading rules from {rules_path}")
        rules = load_rules(rules_path)
        if not rules:
            raise SystemExit(f"No rules found in {rules_path}. Use --find/--replace or `multirep rules add`.")
        return rules.patterns()
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


def _transform(text: str, patterns: list[Pattern], label: str) -> tuple[str, int]:
    result, matches = substitute(text, patterns)
    for match in matches:
        _debug_log(
            f"{label}: {match.pattern.find!r} -> {match.pattern.replace!r} at {match.start} (pattern {match.pattern.index})"
        )
    return result, len(matches)


def _read_stdin(encoding: str) -> str:
    # newline="" leaves "\r\n" untranslated
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return sys.stdin.read()
    wrapper = io.TextIOWrapper(buffer, encoding=encoding, newline="")
    try:
        return wrapper.read()
    finally:
        wrapper.detach()


def _read_text(path: Path, encoding: str) -> str:
    with path.open(encoding=encoding, newline="") as fh:
        return fh.read()


def _write_text(path: Path, text: str, encoding: str) -> None:
    try:
        with path.open("w", encoding=encoding, newline="") as fh:
            fh.write(text)
    except (OSError, UnicodeEncodeError) as exc:
        raise SystemExit(f"Failed to write {path}: {exc}") from exc


def _run_replace(args: argparse.Namespace) -> int:
    set_debug_logging(args.debug)
    patterns = _resolve_patterns(args)
    console = Console(stderr=True)

    paths = [Path(p).expanduser() for p in args.paths]
    for path in paths:
        if not path.is_file():
            raise SystemExit(f"Input file not found: {path}")
    if args.output and len(paths) > 1:
        raise SystemExit("--output can only be used with a single input.")
    if args.in_place and not paths:
        raise SystemExit("--in-place requires at least one input file.")
    output = Path(args.output).expanduser() if args.output else None

    if not paths:
        try:
            text = _read_stdin(args.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise SystemExit(f"Failed to read <stdin>: {exc}") from exc
        result, count = _transform(text, patterns, "<stdin>")
        if output is not None:
            _write_text(output, result, args.encoding)
        else:
            sys.stdout.write(result)
        console.print(f"Replaced {count} match(es).")
        return 0

    # every input is decoded and transformed before anything is written
    results: list[tuple[Path, str, int]] = []
    for path in paths:
        try:
            text = _read_text(path, args.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise SystemExit(f"Failed to read {path}: {exc}") from exc
        result, count = _transform(text, patterns, path.name)
        results.append((path, result, count))

    total = sum(count for _, _, count in results)
    changed = 0
    progress: Progress | None = None
    task = None
    if args.in_place and len(paths) > 1:
        progress = Progress(
            TextColumn("{task.description}", justify="left"),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("{task.fields[detail]}", justify="left"),
            console=console,
            transient=False,
        )
        progress.start()
        task = progress.add_task("Files", total=len(paths), detail="")
    try:
        for path, result, count in results:
            if args.in_place:
                if count:
                    _write_text(path, result, args.encoding)
                    changed += 1
            elif output is not None:
                _write_text(output, result, args.encoding)
            else:
                sys.stdout.write(result)
            if progress is not None and task is not None:
                progress.update(task, advance=1, detail=path.name)
    finally:
        if progress is not None:
            progress.stop()

    if args.in_place:
        console.print(f"Replaced {total} match(es) in {changed} of {len(paths)} file(s).")
    else:
        console.print(f"Replaced {total} match(es).")
    return 0


def _print_rules(console: Console, rules: RuleSet, path: Path) -> None:
    if not rules:
        console.print(f"No rules in {path}")
        return
    table = Table(title=escape(str(path)))
    table.add_column("#", justify="right")
    table.add_column("find")
    table.add_column("replace")
    for pattern in rules.patterns():
        table.add_row(str(pattern.index), escape(repr(pattern.find)), escape(repr(pattern.replace)))
    console.print(table)


def _run_rules(args: argparse.Namespace) -> int:
    if not args.rules_cmd:
        raise SystemExit("A rules subcommand is required. Use --help for options.")
    path = _resolve_rules_path(args.rules)
    console = Console()
    try:
        if args.rules_cmd == "init":
            existed = path.exists()
            ensure_rules_file(path)
            console.print(f"Rules file {'already exists' if existed else 'created'}: {path}")
            return 0
        if args.rules_cmd == "show":
            _print_rules(console, load_rules(path), path)
            return 0
        if args.rules_cmd == "add":
            rules = append_rule(path, args.find, args.replace)
            console.print(f"Added rule #{len(rules.find) - 1} to {path}")
            return 0
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc
    raise SystemExit(f"Unknown rules subcommand: {args.rules_cmd}")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "rules":
        rules_parser = build_rules_parser()
        rules_args = rules_parser.parse_args(argv[1:])
        return _run_rules(rules_args)

    parser = build_parser()
    args = parser.parse_args(argv)
    return _run_replace(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
