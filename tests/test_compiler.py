"""Tests for rscc.compiler: backend command building, dependency files, lifecycle."""

import subprocess
from collections.abc import Sequence
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from rich.console import Console

from rscc.compiler import (
    BackendCompiler,
    Compiler,
    CompilerContext,
    backend_flags,
    format_dependency_rule,
    resolve_backend_command,
)
from rscc.config import ToolchainConfig
from rscc.resolve import BitcodeStorage, OutputType

# ---------------------------------------------------------------------------
# resolve_backend_command()
# ---------------------------------------------------------------------------


class TestResolveBackendCommand:
    def test_bare_name_left_for_path_lookup(self) -> None:
        assert resolve_backend_command(ToolchainConfig(compiler_command="clang")) == ["clang"]

    def test_relative_path_resolved_against_config_dir(self, tmp_path: Path) -> None:
        cfg = ToolchainConfig(path=tmp_path / "rscc.toml", compiler_command="tools/bin/clang")
        assert resolve_backend_command(cfg) == [str(tmp_path / "tools/bin/clang")]

    def test_absolute_path_kept(self) -> None:
        cfg = ToolchainConfig(compiler_command="/usr/bin/clang-15 -Wall")
        assert resolve_backend_command(cfg) == ["/usr/bin/clang-15", "-Wall"]

    def test_quoted_path(self, tmp_path: Path) -> None:
        cfg = ToolchainConfig(path=tmp_path / "rscc.toml", compiler_command='"my tools/clang"')
        assert resolve_backend_command(cfg) == [str(tmp_path / "my tools" / "clang")]

    def test_empty_command_fallback(self) -> None:
        assert resolve_backend_command(ToolchainConfig(compiler_command="")) == ["clang"]


class TestBackendFlags:
    def test_bitcode(self) -> None:
        assert backend_flags(OutputType.BITCODE) == ["-c", "-emit-llvm"]

    def test_nothing(self) -> None:
        assert backend_flags(OutputType.NOTHING) == ["-fsyntax-only"]

    def test_dependency_has_no_backend_run(self) -> None:
        with pytest.raises(ValueError):
            backend_flags(OutputType.DEPENDENCY)


class TestFormatDependencyRule:
    def test_simple(self) -> None:
        assert format_dependency_rule(["out/foo.bc"], ["foo.rs"]) == "out/foo.bc: foo.rs\n"

    def test_additional_targets_and_spaces(self) -> None:
        rule = format_dependency_rule(["a b.bc", "extra"], ["a b.rs"])
        assert rule == "a\\ b.bc extra: a\\ b.rs\n"


# ---------------------------------------------------------------------------
# BackendCompiler
# ---------------------------------------------------------------------------


def _compile(compiler: BackendCompiler, **overrides: Any) -> bool:
    kwargs: dict[str, Any] = dict(
        io_files=[],
        dep_files=[],
        include_paths=[],
        additional_dep_targets=[],
        output_type=OutputType.BITCODE,
        bitcode_storage=BitcodeStorage.APK_RESOURCE,
        allow_rs_prefix=False,
        output_dep=False,
        target_api=16,
        java_reflection_path_base="",
        java_reflection_package_name="",
    )
    kwargs.update(overrides)
    return compiler.compile(**kwargs)


@pytest.fixture
def quiet_console() -> Console:
    return Console(record=True, width=200)


class TestBackendCompiler:
    def test_init_target_args(self) -> None:
        compiler = BackendCompiler(ToolchainConfig())
        compiler.init("armv7-none-linux-gnueabi", "cortex-a9", ["+long64"])
        assert compiler.target_args == [
            "-target",
            "armv7-none-linux-gnueabi",
            "-mcpu=cortex-a9",
            "-Xclang",
            "-target-feature",
            "-Xclang",
            "+long64",
        ]
        compiler.reset()
        assert compiler.target_args == []

    def test_build_command(self) -> None:
        compiler = BackendCompiler(ToolchainConfig(compiler_command="clang"))
        compiler.init("armv7-none-linux-gnueabi", "", [])
        cmd = compiler.build_command(
            "foo.rs", "out/foo.S", ["inc"], OutputType.ASSEMBLY, True, 14
        )
        assert cmd[:3] == ["clang", "-target", "armv7-none-linux-gnueabi"]
        assert "-DRS_VERSION=14" in cmd
        assert "-DRS_ALLOW_RS_PREFIX=1" in cmd
        assert "-Iinc" in cmd
        assert "-S" in cmd
        assert cmd[-3:] == ["-o", "out/foo.S", "foo.rs"]

    def test_runs_backend_per_input(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_console: Console
    ) -> None:
        calls: list[list[str]] = []

        def _fake_run(cmd: list[str], **kwargs: Any) -> SimpleNamespace:
            calls.append(cmd)
            return SimpleNamespace(returncode=0, stdout=b"", stderr=b"")

        monkeypatch.setattr("rscc.compiler.subprocess.run", _fake_run)
        compiler = BackendCompiler(ToolchainConfig(), quiet_console)
        out = tmp_path / "out"
        ok = _compile(
            compiler,
            io_files=[("a.rs", str(out / "a.bc")), ("b.rs", str(out / "b.bc"))],
        )
        assert ok is True
        assert [c[-1] for c in calls] == ["a.rs", "b.rs"]
        assert out.is_dir()

    def test_failure_reported(
        self, monkeypatch: pytest.MonkeyPatch, quiet_console: Console
    ) -> None:
        def _fake_run(cmd: list[str], **kwargs: Any) -> SimpleNamespace:
            return SimpleNamespace(returncode=1, stdout=b"", stderr=b"foo.rs:1: error: boom")

        monkeypatch.setattr("rscc.compiler.subprocess.run", _fake_run)
        compiler = BackendCompiler(ToolchainConfig(), quiet_console)
        ok = _compile(compiler, io_files=[("foo.rs", "foo.bc")], output_type=OutputType.NOTHING)
        assert ok is False
        text = quiet_console.export_text()
        assert "compilation failed" in text
        assert "boom" in text

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch, quiet_console: Console) -> None:
        def _fake_run(cmd: list[str], **kwargs: Any) -> SimpleNamespace:
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout", 0))

        monkeypatch.setattr("rscc.compiler.subprocess.run", _fake_run)
        compiler = BackendCompiler(ToolchainConfig(compile_timeout=5), quiet_console)
        ok = _compile(compiler, io_files=[("foo.rs", "foo.bc")], output_type=OutputType.NOTHING)
        assert ok is False
        assert "timed out after 5s" in quiet_console.export_text()

    def test_missing_backend(self, monkeypatch: pytest.MonkeyPatch, quiet_console: Console) -> None:
        def _fake_run(cmd: list[str], **kwargs: Any) -> SimpleNamespace:
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        monkeypatch.setattr("rscc.compiler.subprocess.run", _fake_run)
        compiler = BackendCompiler(ToolchainConfig(), quiet_console)
        ok = _compile(compiler, io_files=[("foo.rs", "foo.bc")], output_type=OutputType.NOTHING)
        assert ok is False
        assert "compiler not found" in quiet_console.export_text()

    def test_dependency_only_skips_backend(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_console: Console
    ) -> None:
        def _fail_run(cmd: list[str], **kwargs: Any) -> SimpleNamespace:
            raise AssertionError("backend should not run")

        monkeypatch.setattr("rscc.compiler.subprocess.run", _fail_run)
        compiler = BackendCompiler(ToolchainConfig(), quiet_console)
        dep = tmp_path / "deps" / "foo.d"
        bc = tmp_path / "foo.bc"
        ok = _compile(
            compiler,
            io_files=[("foo.rs", str(dep))],
            dep_files=[(str(bc), str(dep))],
            additional_dep_targets=["extra.stamp"],
            output_type=OutputType.DEPENDENCY,
            output_dep=True,
        )
        assert ok is True
        assert dep.read_text() == f"{bc} extra.stamp: foo.rs\n"

    def test_dependency_written_after_successful_compile(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_console: Console
    ) -> None:
        monkeypatch.setattr(
            "rscc.compiler.subprocess.run",
            lambda cmd, **kw: SimpleNamespace(returncode=0, stdout=b"", stderr=b""),
        )
        compiler = BackendCompiler(ToolchainConfig(), quiet_console)
        bc = tmp_path / "foo.bc"
        dep = tmp_path / "foo.d"
        ok = _compile(
            compiler,
            io_files=[("foo.rs", str(bc))],
            dep_files=[(str(bc), str(dep))],
            output_dep=True,
        )
        assert ok is True
        assert dep.read_text() == f"{bc}: foo.rs\n"

    def test_no_dependency_after_failed_compile(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, quiet_console: Console
    ) -> None:
        monkeypatch.setattr(
            "rscc.compiler.subprocess.run",
            lambda cmd, **kw: SimpleNamespace(returncode=1, stdout=b"", stderr=b""),
        )
        compiler = BackendCompiler(ToolchainConfig(), quiet_console)
        dep = tmp_path / "foo.d"
        ok = _compile(
            compiler,
            io_files=[("foo.rs", str(tmp_path / "foo.bc"))],
            dep_files=[(str(tmp_path / "foo.bc"), str(dep))],
            output_dep=True,
        )
        assert ok is False
        assert not dep.exists()


# ---------------------------------------------------------------------------
# CompilerContext
# ---------------------------------------------------------------------------


class RecordingCompiler(Compiler):
    def __init__(self) -> None:
        self.events: list[str] = []

    def init(self, triple: str, cpu: str, features: Sequence[str]) -> None:
        self.events.append("init")

    def compile(self, *args: Any, **kwargs: Any) -> bool:
        self.events.append("compile")
        return True

    def reset(self) -> None:
        self.events.append("reset")


class TestCompilerContext:
    def test_initialize_is_idempotent(self) -> None:
        created: list[RecordingCompiler] = []

        def factory() -> RecordingCompiler:
            created.append(RecordingCompiler())
            return created[-1]

        context = CompilerContext(factory)
        first = context.initialize("t", "", [])
        second = context.initialize("t", "", [])
        assert first is second
        assert len(created) == 1
        assert created[0].events == ["init"]

    def test_shutdown_is_idempotent(self) -> None:
        compiler = RecordingCompiler()
        context = CompilerContext(lambda: compiler)
        context.initialize("t", "", [])
        context.shutdown()
        context.shutdown()
        assert compiler.events == ["init", "reset"]
        assert context.compiler is None

    def test_shutdown_without_initialize(self) -> None:
        context = CompilerContext(RecordingCompiler)
        context.shutdown()
        assert context.compiler is None

    def test_context_manager_resets_on_error(self) -> None:
        compiler = RecordingCompiler()
        with pytest.raises(RuntimeError):
            with CompilerContext(lambda: compiler) as context:
                context.initialize("t", "", [])
                raise RuntimeError("boom")
        assert compiler.events == ["init", "reset"]
