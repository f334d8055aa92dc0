"""
detect.py

Responsibility: Read-only filesystem probing for the compile path.

- `detect_source_dir`: choose the source directory (flag > tsconfig > probe > fallback)
- `detect_entry_points`: list compilable, non-test files directly in the source directory
- `scan_syntax`: which source dialects (TypeScript, TSX, JSX) are present
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from cmplr.tsconfig import TSConfig

CANDIDATE_SOURCE_DIRS = ("src", "lib", "bin")
FALLBACK_SOURCE_DIR = "src"

_ENTRY_RE = re.compile(r"\.(ts|tsx|js|jsx)$")
_TEST_MARKERS = (".test.", ".spec.")


class SourceDirError(RuntimeError):
    pass


@dataclass(frozen=True)
class SyntaxFlags:
    has_typescript: bool = False
    has_tsx: bool = False
    has_jsx: bool = False


def _list_files(directory: Path) -> list[str]:
    # Filesystem enumeration order; callers must not rely on it being sorted.
    return [entry.name for entry in directory.iterdir() if entry.is_file()]


def detect_source_dir(
    tsconfig: TSConfig | None,
    src_dir_arg: str | None = None,
    *,
    cwd: str | Path = ".",
) -> str:
    if src_dir_arg:
        return src_dir_arg

    if tsconfig is not None and tsconfig.root_dir:
        return tsconfig.root_dir

    base = Path(cwd)
    for name in CANDIDATE_SOURCE_DIRS:
        if (base / name).exists():
            return name

    return FALLBACK_SOURCE_DIR


def is_entry_point(filename: str) -> bool:
    return bool(_ENTRY_RE.search(filename)) and not any(m in filename for m in _TEST_MARKERS)


def detect_entry_points(src_dir: str | Path) -> list[str]:
    """
    Return the file names (not paths) in src_dir eligible as package entry points.

    Raises SourceDirError when src_dir does not exist.
    """
    path = Path(src_dir)
    if not path.exists():
        raise SourceDirError(f"Source directory '{src_dir}' does not exist")

    return [name for name in _list_files(path) if is_entry_point(name)]


def scan_syntax(src_dir: str | Path) -> SyntaxFlags:
    """
    Detect TypeScript / TSX / JSX sources directly in src_dir.

    A missing directory is treated as empty.
    """
    path = Path(src_dir)
    files = _list_files(path) if path.is_dir() else []
    return SyntaxFlags(
        has_typescript=any(f.endswith((".ts", ".tsx")) for f in files),
        has_tsx=any(f.endswith(".tsx") for f in files),
        has_jsx=any(f.endswith((".jsx", ".tsx")) for f in files),
    )
