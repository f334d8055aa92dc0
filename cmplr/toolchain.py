"""
toolchain.py

Responsibility: Drive the external Node toolchain for one compile run.

High-level flow (`compile_project`):
1) Clean the output directory
2) Stage CommonJS and ESM `.swcrc` files in a scratch directory
3) `swc` once per module format into `<out>/cjs` and `<out>/esm`
4) (Optional) `tsc` declaration emit into `<out>/types`
5) (Optional) full `tsc --noEmit` type check, installing TypeScript if needed

Every external failure raises ToolchainError. The scratch directory is removed
when its `with` block exits, whether or not the run succeeded.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from types import TracebackType

import structlog

from cmplr.installer import InstallError, install
from cmplr.manifest import MANIFEST_FILENAME, ManifestError, read_manifest
from cmplr.swc import SWCConfig, create_swc_config
from cmplr.tsconfig import TSConfig

logger = structlog.get_logger(__name__)

NPX_ENV_VAR = "CMPLR_NPX"


class ToolchainError(RuntimeError):
    pass


def _npx() -> str:
    return os.environ.get(NPX_ENV_VAR) or "npx"


def _run(cmd: list[str], *, cwd: str | Path = ".", error: str | None = None) -> None:
    """
    Run a subprocess with inherited stdio, raising a ToolchainError on failure.
    """
    try:
        subprocess.run(cmd, cwd=str(cwd), check=True)
    except FileNotFoundError as e:
        raise ToolchainError(f"Executable not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise ToolchainError(
            error or f"Command failed: {' '.join(cmd)} (exit code {e.returncode})"
        ) from e


class ScratchConfigs:
    """
    Context manager owning the scratch directory for generated `.swcrc` files.
    """

    def __init__(self) -> None:
        self._tmp: tempfile.TemporaryDirectory[str] | None = None

    def __enter__(self) -> ScratchConfigs:
        self._tmp = tempfile.TemporaryDirectory(prefix="cmplr-")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._tmp is not None:
            self._tmp.cleanup()
            self._tmp = None

    @property
    def directory(self) -> Path:
        if self._tmp is None:
            raise ToolchainError("Scratch directory used outside its context")
        return Path(self._tmp.name)

    def write(self, config: SWCConfig, name: str) -> Path:
        path = self.directory / f"{name}.swcrc"
        path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
        return path


def clean_output(out_dir: str | Path, *, cwd: str | Path = ".") -> None:
    path = Path(cwd) / out_dir
    if path.exists():
        logger.info(f"Cleaning {out_dir}...")
        shutil.rmtree(path)


def run_swc(src_dir: str, out_dir: str, config_path: Path, *, cwd: str | Path = ".") -> None:
    _run(
        [
            _npx(),
            "swc",
            src_dir,
            "-d",
            out_dir,
            "--config-file",
            str(config_path),
            "--strip-leading-paths",
        ],
        cwd=cwd,
    )


def emit_declarations(out_dir: str, *, cwd: str | Path = ".") -> None:
    logger.info("Generating TypeScript declarations...")
    _run(
        [_npx(), "tsc", "--declaration", "--emitDeclarationOnly", "--outDir", f"{out_dir}/types"],
        cwd=cwd,
    )


def _declares_typescript(cwd: Path) -> bool:
    path = cwd / MANIFEST_FILENAME
    if not path.is_file():
        return False
    try:
        package = read_manifest(path)
    except ManifestError:
        return False
    for section in ("dependencies", "devDependencies"):
        deps = package.get(section)
        if isinstance(deps, dict) and deps.get("typescript"):
            return True
    return False


def _resolves_typescript(cwd: Path) -> bool:
    # Node module resolution: node_modules in cwd and every ancestor.
    for directory in (cwd, *cwd.parents):
        if (directory / "node_modules" / "typescript" / "package.json").is_file():
            return True
    return False


def has_typescript_installed(cwd: str | Path = ".") -> bool:
    base = Path(cwd).resolve()
    return _declares_typescript(base) or _resolves_typescript(base)


def ensure_typescript_installed(cwd: str | Path = ".") -> None:
    if has_typescript_installed(cwd):
        return

    logger.info("TypeScript not found, installing as dev dependency...")
    try:
        install("typescript", dev=True, cwd=cwd)
    except InstallError as e:
        raise ToolchainError(f"Failed to install TypeScript: {e}") from e
    logger.info("TypeScript installed successfully.")


def type_check(src_dir: str, *, cwd: str | Path = ".") -> None:
    logger.info("Running type check...")
    _run([_npx(), "tsc", "--noEmit", "--rootDir", src_dir], cwd=cwd, error="Type check failed")
    logger.info("Type check passed!")


def compile_project(
    *,
    tsconfig: TSConfig | None,
    src_dir: str,
    out_dir: str,
    no_types: bool = False,
    check_types: bool = False,
    cwd: str | Path = ".",
) -> None:
    clean_output(out_dir, cwd=cwd)

    with ScratchConfigs() as scratch:
        cjs_path = scratch.write(create_swc_config(tsconfig, "commonjs", Path(cwd) / src_dir), "cjs")
        esm_path = scratch.write(create_swc_config(tsconfig, "es6", Path(cwd) / src_dir), "esm")

        logger.info("Compiling CommonJS...")
        run_swc(src_dir, f"{out_dir}/cjs", cjs_path, cwd=cwd)

        logger.info("Compiling ESM...")
        run_swc(src_dir, f"{out_dir}/esm", esm_path, cwd=cwd)

        if not no_types and tsconfig is not None:
            emit_declarations(out_dir, cwd=cwd)

        if check_types:
            ensure_typescript_installed(cwd)
            type_check(src_dir, cwd=cwd)
