"""
cli.py

Responsibility: CLI entrypoint for cmplr.

High-level flow (default command `compile`):
1) Read tsconfig.json (optional) -> `TSConfig`
2) Detect the source directory and its entry points
3) Compile CommonJS + ESM with swc, emit declarations / type check with tsc
4) Rewrite package.json exports for the emitted layout

`create` scaffolds a new package instead (see `scaffold.py`).

This module should orchestrate behavior but keep concerns isolated:
- tsconfig parsing: `tsconfig.py`
- Detection: `detect.py`
- External tools: `toolchain.py`
- package.json: `manifest.py`
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import Literal

import structlog

from cmplr import __version__
from cmplr.detect import SourceDirError, detect_entry_points, detect_source_dir
from cmplr.installer import InstallError
from cmplr.logging import configure_logging
from cmplr.manifest import ManifestError, update_package_exports
from cmplr.renderer import RenderError
from cmplr.scaffold import create_project
from cmplr.toolchain import ToolchainError, compile_project
from cmplr.tsconfig import read_tsconfig

logger = structlog.get_logger(__name__)

PROG = "cmplr"
DEFAULT_OUT_DIR = "dist"

HELP = f"""
{PROG} - Speedy web compiler without the config

Usage: {PROG} [command] [options]

Commands:
  compile        Compile TypeScript/JavaScript files (default)
  create         Create and initialize a new TypeScript project

Compile Options:
  --dry-run      Show what would be compiled without executing
  --help, -h     Show this help message
  --version, -v  Show version number
  --src-dir      Source directory (default: auto-detect from tsconfig or 'src')
  --out-dir      Output directory (default: '{DEFAULT_OUT_DIR}')
  --no-types     Skip TypeScript declaration generation
  --type-check   Enable TypeScript type checking (installs TypeScript if needed)

Examples:
  {PROG}                    # Compile with auto-detected settings (automatically cleans output)
  {PROG} --dry-run          # Preview compilation
  {PROG} --src-dir lib      # Use 'lib' as source directory
  {PROG} --type-check       # Compile with type checking enabled
  {PROG} create my-project  # Create a new TypeScript project
"""

CREATE_HELP = f"""
{PROG} create - Create and initialize a new TypeScript project

Usage: {PROG} create [project-name] [options]

Options:
  --help, -h     Show this help message

Examples:
  {PROG} create my-project  # Create a new project in 'my-project' directory
  {PROG} create             # Create a new project in current directory
"""


class CLIError(RuntimeError):
    pass


@dataclass(frozen=True)
class CLIRequest:
    command: Literal["compile", "create"] = "compile"
    dry_run: bool = False
    help: bool = False
    version: bool = False
    src_dir: str | None = None
    out_dir: str = DEFAULT_OUT_DIR
    no_types: bool = False
    type_check: bool = False
    project_name: str | None = None


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise CLIError(message)


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(prog=PROG, add_help=False, allow_abbrev=False)
    p.add_argument("--dry-run", action="store_true")
    p.add_argument("--help", "-h", action="store_true")
    p.add_argument("--version", "-v", action="store_true")
    p.add_argument("--no-types", action="store_true")
    p.add_argument("--type-check", action="store_true")
    return p


_VALUE_FLAGS = {"--src-dir": "src_dir", "--out-dir": "out_dir"}
_SHORT_FLAGS = ("-h", "-v")


def _split_value_flags(args: list[str]) -> tuple[dict[str, str | None], list[str]]:
    """
    Pull `--src-dir` / `--out-dir` and their values out of args.

    The token after the flag is taken verbatim, even when it starts with a
    dash; a flag at the end of the list gets None. Single-dash tokens other
    than `-h` / `-v` are dropped.
    """
    values: dict[str, str | None] = {}
    rest: list[str] = []
    i = 0
    while i < len(args):
        token = args[i]
        flag, sep, inline = token.partition("=")
        if flag in _VALUE_FLAGS:
            if sep:
                values[_VALUE_FLAGS[flag]] = inline
            else:
                values[_VALUE_FLAGS[flag]] = args[i + 1] if i + 1 < len(args) else None
                i += 1
        elif token.startswith("--") or not token.startswith("-") or token in _SHORT_FLAGS:
            rest.append(token)
        i += 1
    return values, rest


def parse_args(argv: list[str]) -> CLIRequest:
    """
    Turn raw arguments into a CLIRequest.

    Raises CLIError for an unknown `--option`; other stray tokens are ignored.
    """
    args = list(argv)
    command: Literal["compile", "create"] = "compile"
    project_name: str | None = None

    if args and args[0] == "create":
        command = "create"
        if len(args) > 1 and not args[1].startswith("-"):
            project_name = args[1]
        del args[: 2 if project_name else 1]

    values, args = _split_value_flags(args)
    ns, extras = _build_parser().parse_known_args(args)
    for token in extras:
        if token.startswith("--"):
            raise CLIError(f"Unknown option: {token}")

    return CLIRequest(
        command=command,
        dry_run=ns.dry_run,
        help=ns.help,
        version=ns.version,
        src_dir=values.get("src_dir") or None,
        out_dir=values.get("out_dir") or DEFAULT_OUT_DIR,
        no_types=ns.no_types,
        type_check=ns.type_check,
        project_name=project_name,
    )


def show_help(command: str = "compile") -> None:
    print(CREATE_HELP if command == "create" else HELP)


def compile_cmd(request: CLIRequest) -> int:
    tsconfig = read_tsconfig()
    src_dir = detect_source_dir(tsconfig, request.src_dir)
    entry_points = detect_entry_points(src_dir)

    if request.dry_run:
        print("Dry run - would compile:")
        print(f"  Source: {src_dir}")
        print(f"  Output: {request.out_dir}")
        print(f"  Entry points: {', '.join(entry_points)}")
        print(f"  TypeScript config: {'found' if tsconfig else 'not found'}")
        print(f"  Generate types: {'true' if not request.no_types else 'false'}")
        print(f"  Type check: {'enabled' if request.type_check else 'disabled'}")
        return 0

    compile_project(
        tsconfig=tsconfig,
        src_dir=src_dir,
        out_dir=request.out_dir,
        no_types=request.no_types,
        check_types=request.type_check,
    )
    update_package_exports(entry_points, request.out_dir, request.no_types)

    logger.info("Compilation complete!")
    return 0


def create_cmd(request: CLIRequest) -> int:
    create_project(request.project_name)
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()

    try:
        request = parse_args(sys.argv[1:] if argv is None else argv)
    except CLIError as e:
        print(f"{e}", file=sys.stderr)
        return 1

    if request.help:
        show_help(request.command)
        return 0

    if request.version:
        print(__version__)
        return 0

    try:
        if request.command == "create":
            return create_cmd(request)
        return compile_cmd(request)
    except (SourceDirError, ToolchainError, ManifestError, InstallError, RenderError) as e:
        label = "Project creation failed" if request.command == "create" else "Compilation failed"
        logger.error(f"{label}: {e}")
        return 1
    except Exception:
        logger.exception("Unexpected error")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
