"""
manifest.py

Responsibility: Read and rewrite `package.json`.

- `build_exports`: pure derivation of `main` / `module` / `types` / `exports`
  from the detected entry points
- `update_package_exports`: apply that derivation to the manifest on disk and
  make sure the output directory is listed in `files`
- `merge_scripts`: add/overwrite `scripts` entries (used by `create`)

All fields this module does not own are preserved verbatim, in their
original order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

MANIFEST_FILENAME = "package.json"
PRIMARY_PREFIX = "index."


class ManifestError(RuntimeError):
    pass


@dataclass(frozen=True)
class ExportFields:
    """Manifest fields derived from a set of entry points."""

    exports: dict[str, dict[str, str]] = field(default_factory=dict)
    main: str | None = None
    module: str | None = None
    types: str | None = None


def _base_name(entry: str) -> str:
    return Path(entry).stem


def _targets(out_dir: str, base_name: str, *, no_types: bool) -> dict[str, str]:
    targets = {
        "import": f"./{out_dir}/esm/{base_name}.js",
        "require": f"./{out_dir}/cjs/{base_name}.js",
    }
    if not no_types:
        targets["types"] = f"./{out_dir}/types/{base_name}.d.ts"
    return targets


def build_exports(entry_points: list[str], out_dir: str, *, no_types: bool = False) -> ExportFields:
    """
    Derive the export map and top-level entry fields.

    A single `index.*` entry point yields a one-key export map. Otherwise there
    is one key per entry point (`.` for `index`, `./<name>` for the rest) and
    the top-level fields point at the first `index.*` entry, or the first entry.
    """
    if len(entry_points) == 1 and entry_points[0].startswith(PRIMARY_PREFIX):
        base = _base_name(entry_points[0])
        targets = _targets(out_dir, base, no_types=no_types)
        return ExportFields(
            exports={".": targets},
            main=targets["require"],
            module=targets["import"],
            types=targets.get("types"),
        )

    exports: dict[str, dict[str, str]] = {}
    for entry in entry_points:
        base = _base_name(entry)
        key = "." if base == "index" else f"./{base}"
        exports[key] = _targets(out_dir, base, no_types=no_types)

    if not entry_points:
        return ExportFields(exports=exports)

    main_entry = next((e for e in entry_points if e.startswith(PRIMARY_PREFIX)), entry_points[0])
    targets = _targets(out_dir, _base_name(main_entry), no_types=no_types)
    return ExportFields(
        exports=exports,
        main=targets["require"],
        module=targets["import"],
        types=targets.get("types"),
    )


def read_manifest(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Could not read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a JSON object")
    return data


def write_manifest(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def update_package_exports(
    entry_points: list[str],
    out_dir: str,
    no_types: bool = False,
    *,
    cwd: str | Path = ".",
) -> bool:
    """
    Rewrite package.json in `cwd` for the emitted layout.

    Returns False (after logging a warning) when there is no package.json.
    """
    path = Path(cwd) / MANIFEST_FILENAME
    if not path.is_file():
        logger.warning("package.json not found, skipping exports update")
        return False

    package = read_manifest(path)
    fields = build_exports(entry_points, out_dir, no_types=no_types)

    if fields.main is not None:
        package["main"] = fields.main
    if fields.module is not None:
        package["module"] = fields.module
    if fields.types is not None:
        package["types"] = fields.types
    package["exports"] = fields.exports

    files = package.get("files")
    if isinstance(files, list):
        if out_dir not in files:
            files.append(out_dir)
    elif not files:
        package["files"] = [out_dir]

    write_manifest(path, package)
    return True


def merge_scripts(path: Path, scripts: dict[str, str]) -> dict[str, Any]:
    """
    Add or overwrite `scripts` entries in an existing manifest, keeping everything else.
    """
    package = read_manifest(path)
    existing = package.get("scripts")
    if not isinstance(existing, dict):
        existing = {}
    existing.update(scripts)
    package["scripts"] = existing
    write_manifest(path, package)
    return package
