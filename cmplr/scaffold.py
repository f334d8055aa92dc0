"""
scaffold.py

Responsibility: `cmplr create`, a TypeScript package skeleton plus its dependencies.

High-level flow:
1) Create the project and `lib/` directories
2) Render the `ts-package` template (existing files are left alone)
3) Merge the build/test scripts into a pre-existing package.json
4) Install runtime and dev dependencies in the project directory (best-effort)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import structlog

from cmplr.installer import InstallError, install
from cmplr.manifest import MANIFEST_FILENAME, merge_scripts
from cmplr.renderer import TEMPLATES_DIR, render_template_dir

logger = structlog.get_logger(__name__)

TEMPLATE_NAME = "ts-package"
LIB_DIR = "lib"
OUT_DIR = "dist"

SCRIPTS = {
    "build": "cmplr --type-check",
    "test": f"node --test {OUT_DIR}/cjs/**/*.test.js",
}

DEPENDENCIES = ("cmplr",)
DEV_DEPENDENCIES = ("@types/node",)


@dataclass(frozen=True)
class ProjectResult:
    name: str
    directory: Path
    dependencies_installed: bool


def _build_context(project_name: str) -> dict[str, object]:
    return {
        "project_name": project_name,
        "lib_dir": LIB_DIR,
        "out_dir": OUT_DIR,
        "scripts": SCRIPTS,
    }


def install_dependencies(project_dir: Path) -> bool:
    """
    Install the starter dependencies; failures are downgraded to a warning.
    """
    print("\nInstalling dependencies...")
    try:
        for package in DEPENDENCIES:
            install(package, cwd=project_dir)
        for package in DEV_DEPENDENCIES:
            install(package, dev=True, cwd=project_dir)
    except InstallError as e:
        logger.warning(f"Failed to install dependencies: {e}")
        logger.warning(
            "You can manually install them with: "
            f"npm install {' '.join(DEPENDENCIES)} && npm install --save-dev {' '.join(DEV_DEPENDENCIES)}"
        )
        return False
    logger.info("Dependencies installed successfully!")
    return True


def create_project(project_name: str | None = None, *, cwd: str | Path = ".") -> ProjectResult:
    base = Path(cwd).resolve()
    project_dir = base / project_name if project_name else base
    name = project_name or base.name

    if project_name and not project_dir.exists():
        project_dir.mkdir(parents=True)
        logger.info(f"Created project directory: {project_name}")

    lib_dir = project_dir / LIB_DIR
    if not lib_dir.exists():
        lib_dir.mkdir(parents=True)
        logger.info(f"Created {LIB_DIR} directory")

    result = render_template_dir(
        template_dir=TEMPLATES_DIR / TEMPLATE_NAME,
        destination_dir=project_dir,
        context=_build_context(name),
    )
    for rel in result.created:
        logger.info(f"Created {rel.as_posix()}")
    for rel in result.skipped:
        if rel.as_posix() == MANIFEST_FILENAME:
            merge_scripts(project_dir / MANIFEST_FILENAME, SCRIPTS)
            logger.info("Updated package.json scripts")
        else:
            logger.info(f"{rel.as_posix()} already exists, skipping")

    installed = install_dependencies(project_dir)

    print(f"\nProject '{name}' initialized successfully!")
    print("\nNext steps:")
    if project_name:
        print(f"  cd {project_name}")
    print("  npm run build")
    print("  npm test")

    return ProjectResult(name=name, directory=project_dir, dependencies_installed=installed)
