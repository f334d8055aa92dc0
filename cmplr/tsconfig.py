"""
tsconfig.py

Responsibility: Load an optional `tsconfig.json` into a sparse, typed record and
convert its compiler options into an SWC base configuration.

Only a handful of tsconfig fields are read directly (`rootDir`,
`experimentalDecorators`, `exclude`); the rest of the document is kept as the
raw mapping and consulted only by `convert_tsconfig`.

A malformed tsconfig never aborts a build: `read_tsconfig` downgrades parse
errors to a warning and callers treat the result as "no config".
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

TSCONFIG_FILENAME = "tsconfig.json"

# tsconfig `target` -> swc `jsc.target`
_TARGETS = {
    "es3": "es3",
    "es5": "es5",
    "es6": "es2015",
    "es2015": "es2015",
    "es2016": "es2016",
    "es2017": "es2017",
    "es2018": "es2018",
    "es2019": "es2019",
    "es2020": "es2020",
    "es2021": "es2021",
    "es2022": "es2022",
    "es2023": "es2023",
    "esnext": "esnext",
}

# tsconfig `jsx` -> swc `jsc.transform.react` runtime
_JSX_RUNTIMES = {
    "react": {"runtime": "classic"},
    "react-jsx": {"runtime": "automatic"},
    "react-jsxdev": {"runtime": "automatic", "development": True},
    "preserve": {"runtime": "preserve"},
    "react-native": {"runtime": "preserve"},
}


class TSConfigError(ValueError):
    pass


@dataclass(frozen=True)
class TSConfig:
    """The parts of a tsconfig document this tool reads."""

    raw: dict[str, Any] = field(default_factory=dict)
    root_dir: str | None = None
    experimental_decorators: bool | None = None
    exclude: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TSConfig:
        options = data.get("compilerOptions")
        if not isinstance(options, dict):
            options = {}

        root_dir = options.get("rootDir")
        if not isinstance(root_dir, str) or not root_dir:
            root_dir = None

        decorators = options.get("experimentalDecorators")
        if not isinstance(decorators, bool):
            decorators = None

        exclude = data.get("exclude")
        if isinstance(exclude, list):
            exclude = [str(item) for item in exclude]
        else:
            exclude = None

        return cls(
            raw=data,
            root_dir=root_dir,
            experimental_decorators=decorators,
            exclude=exclude,
        )


def read_tsconfig(cwd: str | Path = ".") -> TSConfig | None:
    """
    Return the tsconfig in `cwd`, or None when it is absent or unreadable.
    """
    path = Path(cwd) / TSCONFIG_FILENAME
    if not path.is_file():
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Could not parse tsconfig.json, using defaults", path=str(path))
        return None

    if not isinstance(data, dict):
        logger.warning("Could not parse tsconfig.json, using defaults", path=str(path))
        return None

    return TSConfig.from_dict(data)


def _expect(options: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    value = options.get(key)
    if value is not None and not isinstance(value, kind):
        raise TSConfigError(f"compilerOptions.{key} has an unexpected type: {value!r}")
    return value


def convert_tsconfig(tsconfig: TSConfig) -> dict[str, Any]:
    """
    Convert tsconfig compiler options into an `.swcrc`-shaped mapping.

    Only options with an SWC counterpart are mapped; everything else is
    ignored. Raises TSConfigError for options SWC cannot represent.
    """
    options = tsconfig.raw.get("compilerOptions", {})
    if not isinstance(options, dict):
        raise TSConfigError("compilerOptions must be an object/mapping when provided.")

    parser: dict[str, Any] = {}
    transform: dict[str, Any] = {}
    jsc: dict[str, Any] = {}
    config: dict[str, Any] = {}

    target = _expect(options, "target", str)
    if target is not None:
        try:
            jsc["target"] = _TARGETS[target.lower()]
        except KeyError:
            raise TSConfigError(f"Unsupported compilerOptions.target: {target}") from None

    decorators = _expect(options, "experimentalDecorators", bool)
    if decorators is not None:
        parser["decorators"] = decorators
        transform["legacyDecorator"] = decorators

    metadata = _expect(options, "emitDecoratorMetadata", bool)
    if metadata is not None:
        transform["decoratorMetadata"] = metadata

    define_fields = _expect(options, "useDefineForClassFields", bool)
    if define_fields is not None:
        transform["useDefineForClassFields"] = define_fields

    jsx = _expect(options, "jsx", str)
    if jsx is not None:
        try:
            react = dict(_JSX_RUNTIMES[jsx.lower()])
        except KeyError:
            raise TSConfigError(f"Unsupported compilerOptions.jsx: {jsx}") from None
        pragma = _expect(options, "jsxFactory", str)
        if pragma:
            react["pragma"] = pragma
        pragma_frag = _expect(options, "jsxFragmentFactory", str)
        if pragma_frag:
            react["pragmaFrag"] = pragma_frag
        import_source = _expect(options, "jsxImportSource", str)
        if import_source:
            react["importSource"] = import_source
        transform["react"] = react

    helpers = _expect(options, "importHelpers", bool)
    if helpers is not None:
        jsc["externalHelpers"] = helpers

    base_url = _expect(options, "baseUrl", str)
    if base_url:
        jsc["baseUrl"] = base_url
    paths = _expect(options, "paths", dict)
    if paths:
        jsc["paths"] = paths

    if _expect(options, "inlineSourceMap", bool):
        config["sourceMaps"] = "inline"
    else:
        source_map = _expect(options, "sourceMap", bool)
        if source_map is not None:
            config["sourceMaps"] = source_map

    if parser:
        jsc["parser"] = parser
    if transform:
        jsc["transform"] = transform
    if jsc:
        config["jsc"] = jsc
    return config
