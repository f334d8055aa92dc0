"""
cmplr package

Zero-config dual CommonJS/ESM builds for TypeScript and JavaScript packages.

Key responsibilities are split across modules:
- `tsconfig.py`: read `tsconfig.json` and convert it into an SWC base config
- `detect.py`: source directory and entry point detection
- `swc.py`: synthesize the per-module-format SWC configuration
- `toolchain.py`: external `swc` / `tsc` invocations and scratch configs
- `installer.py`: isolated package manager interaction (npm, yarn, pnpm, bun)
- `manifest.py`: `package.json` exports rewriting
- `renderer.py` / `scaffold.py`: the `create` project skeleton
- `cli.py`: CLI entrypoint and orchestration (detect -> compile -> manifest)
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
