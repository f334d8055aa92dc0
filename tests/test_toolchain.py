from __future__ import annotations

import json
from pathlib import Path

import pytest

from cmplr.toolchain import (
    ScratchConfigs,
    ToolchainError,
    compile_project,
    ensure_typescript_installed,
    has_typescript_installed,
)
from cmplr.tsconfig import TSConfig
from tests.conftest import RecordedRun, write


def _config_path(cmd: list[str]) -> Path:
    return Path(cmd[cmd.index("--config-file") + 1])


def test_scratch_configs_are_removed_on_error() -> None:
    with pytest.raises(RuntimeError):
        with ScratchConfigs() as scratch:
            directory = scratch.directory
            assert directory.is_dir()
            raise RuntimeError("boom")
    assert not directory.exists()


def test_scratch_directory_outside_context() -> None:
    with pytest.raises(ToolchainError):
        ScratchConfigs().directory


def test_compile_runs_swc_twice_then_tsc(project: Path, fake_run: RecordedRun) -> None:
    write(project / "src" / "index.ts")
    write(project / "dist" / "stale.js")
    seen: dict[str, dict] = {}

    def _capture(cmd: list[str]) -> None:
        if "swc" in cmd:
            seen[cmd[cmd.index("-d") + 1]] = json.loads(_config_path(cmd).read_text())

    fake_run.on_call = _capture

    compile_project(tsconfig=TSConfig.from_dict({}), src_dir="src", out_dir="dist")

    commands = fake_run.commands
    assert commands[0][:5] == ["npx", "swc", "src", "-d", "dist/cjs"]
    assert commands[0][-1] == "--strip-leading-paths"
    assert commands[1][:5] == ["npx", "swc", "src", "-d", "dist/esm"]
    assert commands[2] == ["npx", "tsc", "--declaration", "--emitDeclarationOnly", "--outDir", "dist/types"]
    assert len(commands) == 3

    assert seen["dist/cjs"]["module"] == {"type": "commonjs"}
    assert seen["dist/esm"]["module"] == {"type": "es6"}
    assert seen["dist/cjs"]["jsc"]["parser"]["syntax"] == "typescript"

    assert not (project / "dist").exists()
    assert not _config_path(commands[0]).exists()
    assert not _config_path(commands[1]).exists()


def test_declarations_skipped_without_tsconfig_or_with_no_types(project: Path, fake_run: RecordedRun) -> None:
    write(project / "src" / "index.js")
    compile_project(tsconfig=None, src_dir="src", out_dir="dist")
    compile_project(tsconfig=TSConfig.from_dict({}), src_dir="src", out_dir="dist", no_types=True)
    assert all("tsc" not in cmd for cmd in fake_run.commands)
    assert len(fake_run.commands) == 4


def test_swc_failure_aborts_and_cleans_scratch(project: Path, fake_run: RecordedRun) -> None:
    write(project / "src" / "index.ts")
    fake_run.fail_when = lambda cmd: "dist/cjs" in cmd

    with pytest.raises(ToolchainError, match="exit code 1"):
        compile_project(tsconfig=TSConfig.from_dict({}), src_dir="src", out_dir="dist")

    assert len(fake_run.commands) == 1
    assert not _config_path(fake_run.commands[0]).exists()


def test_npx_can_be_overridden(project: Path, fake_run: RecordedRun, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CMPLR_NPX", "/opt/node/bin/npx")
    write(project / "src" / "index.ts")
    compile_project(tsconfig=None, src_dir="src", out_dir="dist")
    assert {cmd[0] for cmd in fake_run.commands} == {"/opt/node/bin/npx"}


def test_missing_npx_is_a_toolchain_error(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def _missing(*args, **kwargs):
        raise FileNotFoundError("npx")

    monkeypatch.setattr("subprocess.run", _missing)
    write(project / "src" / "index.ts")
    with pytest.raises(ToolchainError, match="not found"):
        compile_project(tsconfig=None, src_dir="src", out_dir="dist")


def test_type_check_with_typescript_declared(project: Path, fake_run: RecordedRun) -> None:
    write(project / "package.json", json.dumps({"devDependencies": {"typescript": "^5.0.0"}}))
    write(project / "src" / "index.ts")

    compile_project(tsconfig=None, src_dir="src", out_dir="dist", check_types=True)

    assert fake_run.commands[-1] == ["npx", "tsc", "--noEmit", "--rootDir", "src"]
    assert not any(cmd[0] == "npm" for cmd in fake_run.commands)


def test_type_check_failure_is_fatal(project: Path, fake_run: RecordedRun) -> None:
    write(project / "package.json", json.dumps({"dependencies": {"typescript": "5"}}))
    write(project / "src" / "index.ts")
    fake_run.fail_when = lambda cmd: "--noEmit" in cmd

    with pytest.raises(ToolchainError, match="Type check failed"):
        compile_project(tsconfig=None, src_dir="src", out_dir="dist", check_types=True)


def test_typescript_is_installed_when_missing(project: Path, fake_run: RecordedRun) -> None:
    write(project / "package.json", json.dumps({"name": "pkg"}))
    assert has_typescript_installed(project) is False

    ensure_typescript_installed(project)

    assert fake_run.calls == [(["npm", "install", "--save-dev", "typescript"], str(project))]


def test_typescript_resolved_from_node_modules(tmp_path: Path, fake_run: RecordedRun) -> None:
    write(tmp_path / "node_modules" / "typescript" / "package.json", "{}")
    nested = tmp_path / "packages" / "app"
    nested.mkdir(parents=True)

    ensure_typescript_installed(nested)

    assert fake_run.calls == []


def test_undecodable_manifest_falls_through_to_node_modules(tmp_path: Path, fake_run: RecordedRun) -> None:
    (tmp_path / "package.json").write_bytes(b'{"name": "\xff"}')
    assert has_typescript_installed(tmp_path) is False

    write(tmp_path / "node_modules" / "typescript" / "package.json", "{}")
    assert has_typescript_installed(tmp_path) is True

    ensure_typescript_installed(tmp_path)
    assert fake_run.calls == []


def test_failed_typescript_install_is_fatal(project: Path, fake_run: RecordedRun) -> None:
    fake_run.fail_when = lambda cmd: cmd[0] == "npm"
    with pytest.raises(ToolchainError, match="Failed to install TypeScript"):
        ensure_typescript_installed(project)
