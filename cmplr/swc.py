"""
swc.py

Responsibility: Synthesize the SWC configuration for one module format.

The tsconfig (when present) is converted into a base config, then the parser
syntax, module format and a few defaults are forced on top of it. Two configs
built in the same run differ only in `module.type`.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import structlog

from cmplr.detect import scan_syntax
from cmplr.tsconfig import TSConfig, TSConfigError, convert_tsconfig

logger = structlog.get_logger(__name__)

ModuleType = Literal["commonjs", "es6"]

DEFAULT_TARGET = "es2020"


@dataclass
class SWCConfig:
    syntax: Literal["typescript", "ecmascript"]
    module_type: ModuleType
    tsx: bool = False
    jsx: bool = False
    decorators: bool = False
    target: str = DEFAULT_TARGET
    source_maps: bool | str = True
    loose: bool = False
    external_helpers: bool = False
    exclude: list[str] | None = None
    # Keys from the converted tsconfig that are passed through untouched.
    extra: dict[str, Any] = field(default_factory=dict)
    extra_jsc: dict[str, Any] = field(default_factory=dict)
    extra_parser: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the `.swcrc` JSON shape."""
        config: dict[str, Any] = copy.deepcopy(self.extra)
        config["jsc"] = {
            **copy.deepcopy(self.extra_jsc),
            "parser": {
                **copy.deepcopy(self.extra_parser),
                "syntax": self.syntax,
                "tsx": self.tsx,
                "jsx": self.jsx,
                "decorators": self.decorators,
            },
            "target": self.target,
            "loose": self.loose,
            "externalHelpers": self.external_helpers,
        }
        config["module"] = {"type": self.module_type}
        config["sourceMaps"] = self.source_maps
        if self.exclude is not None:
            config["exclude"] = list(self.exclude)
        return config


def _base_config(tsconfig: TSConfig | None) -> dict[str, Any]:
    if tsconfig is None:
        return {}
    try:
        return convert_tsconfig(tsconfig)
    except TSConfigError as e:
        logger.warning("Could not convert tsconfig, using fallback", error=str(e))
        return {}


def _first_not_none(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def create_swc_config(
    tsconfig: TSConfig | None,
    module_type: ModuleType,
    src_dir: str | Path,
) -> SWCConfig:
    syntax = scan_syntax(src_dir)
    base = _base_config(tsconfig)

    extra = {k: v for k, v in base.items() if k not in ("jsc", "module", "sourceMaps", "exclude")}
    base_jsc = base.get("jsc") or {}
    extra_jsc = {
        k: v for k, v in base_jsc.items() if k not in ("parser", "target", "loose", "externalHelpers")
    }
    base_parser = base_jsc.get("parser") or {}
    extra_parser = {
        k: v for k, v in base_parser.items() if k not in ("syntax", "tsx", "jsx", "decorators")
    }

    decorators = _first_not_none(
        base_parser.get("decorators"),
        tsconfig.experimental_decorators if tsconfig is not None else None,
    )

    return SWCConfig(
        syntax="typescript" if syntax.has_typescript else "ecmascript",
        module_type=module_type,
        tsx=syntax.has_tsx,
        jsx=syntax.has_jsx,
        decorators=bool(decorators),
        target=base_jsc.get("target") or DEFAULT_TARGET,
        source_maps=_first_not_none(base.get("sourceMaps"), True),
        loose=_first_not_none(base_jsc.get("loose"), False),
        external_helpers=_first_not_none(base_jsc.get("externalHelpers"), False),
        exclude=list(tsconfig.exclude) if tsconfig is not None and tsconfig.exclude is not None else None,
        extra=extra,
        extra_jsc=extra_jsc,
        extra_parser=extra_parser,
    )
