"""
installer.py

Responsibility: Isolate all package manager interaction.

This module must be the only place that:
- Chooses between npm / yarn / pnpm / bun for a project
- Builds and runs "add a dependency" commands

The project directory is always passed explicitly and handed to the
subprocess; the process working directory is never changed.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

# Checked in order; the first lockfile found wins.
_LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
)


class InstallError(RuntimeError):
    pass


def detect_package_manager(cwd: str | Path) -> str:
    base = Path(cwd)
    for lockfile, manager in _LOCKFILES:
        if (base / lockfile).exists():
            return manager
    return "npm"


def install_command(manager: str, package: str, *, dev: bool = False) -> list[str]:
    if manager == "npm":
        return ["npm", "install", "--save-dev", package] if dev else ["npm", "install", package]
    if manager in ("yarn", "pnpm", "bun"):
        return [manager, "add", "-D", package] if dev else [manager, "add", package]
    raise InstallError(f"Unsupported package manager: {manager}")


def install(package: str, *, dev: bool = False, cwd: str | Path = ".") -> None:
    """
    Add `package` to the manifest in `cwd` and fetch it.

    Raises InstallError when the package manager is missing or fails.
    """
    manager = detect_package_manager(cwd)
    cmd = install_command(manager, package, dev=dev)
    logger.debug("Installing package", package=package, dev=dev, manager=manager, cwd=str(cwd))
    try:
        subprocess.run(cmd, cwd=str(cwd), check=True)
    except FileNotFoundError as e:
        raise InstallError(f"Package manager not found: {manager}") from e
    except subprocess.CalledProcessError as e:
        raise InstallError(f"Command failed: {' '.join(cmd)} (exit code {e.returncode})") from e
