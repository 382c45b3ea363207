"""Compiler backend interface and the subprocess-based backend.

The driver only sees :class:`Compiler`: ``init`` once with the target,
``compile`` once with the whole batch, ``reset`` on the way out.
:class:`CompilerContext` owns that lifecycle so ``reset`` runs on every exit
path, including a failed compile.

Architecture
~~~~~~~~~~~~
``resolve_backend_command(cfg)``
    Builds the backend command prefix from ``cfg.compiler_command``.

``backend_flags(output_type)``
    Maps an :class:`~rscc.resolve.OutputType` to backend flags.

``BackendCompiler``
    Runs the backend once per input and writes make-style dependency files.
"""

from __future__ import annotations

import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from pathlib import Path
from types import TracebackType

from rich.console import Console
from rich.markup import escape

from rscc.config import ToolchainConfig
from rscc.resolve import BitcodeStorage, OutputType
from rscc.utils import atomic_write_text, ensure_parent_dir

PathPair = tuple[str, str]


class Compiler(ABC):
    """The compilation engine behind the driver."""

    @abstractmethod
    def init(self, triple: str, cpu: str, features: Sequence[str]) -> None:
        """Configure the target; called once before :meth:`compile`."""

    @abstractmethod
    def compile(
        self,
        io_files: Sequence[PathPair],
        dep_files: Sequence[PathPair],
        include_paths: Sequence[str],
        additional_dep_targets: Sequence[str],
        output_type: OutputType,
        bitcode_storage: BitcodeStorage,
        allow_rs_prefix: bool,
        output_dep: bool,
        target_api: int,
        java_reflection_path_base: str,
        java_reflection_package_name: str,
    ) -> bool:
        """Compile the batch; return ``True`` if every input succeeded."""

    @abstractmethod
    def reset(self) -> None:
        """Release everything acquired since :meth:`init`."""


CompilerFactory = Callable[[], Compiler]


class CompilerContext:
    """Create/destroy lifecycle for one compiler instance.

    ``initialize`` and ``shutdown`` are idempotent.  Used as a context
    manager, ``shutdown`` runs however the block exits.
    """

    def __init__(self, factory: CompilerFactory) -> None:
        self._factory = factory
        self._compiler: Compiler | None = None

    @property
    def compiler(self) -> Compiler | None:
        return self._compiler

    def initialize(self, triple: str, cpu: str, features: Sequence[str]) -> Compiler:
        if self._compiler is None:
            compiler = self._factory()
            compiler.init(triple, cpu, features)
            self._compiler = compiler
        return self._compiler

    def shutdown(self) -> None:
        compiler, self._compiler = self._compiler, None
        if compiler is not None:
            compiler.reset()

    def __enter__(self) -> CompilerContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()


# ---------------------------------------------------------------------------
# Command resolution
# ---------------------------------------------------------------------------


def resolve_backend_command(cfg: ToolchainConfig) -> list[str]:
    """Build the backend command list from config.

    Relative paths containing a separator are resolved against the directory
    holding ``rscc.toml``; bare names are left for ``PATH`` lookup.
    """
    try:
        cmd_parts = shlex.split(cfg.compiler_command)
    except ValueError:
        cmd_parts = cfg.compiler_command.split()
    if not cmd_parts:
        cmd_parts = ["clang"]
    exe = Path(cmd_parts[0])
    if not exe.is_absolute() and len(exe.parts) > 1:
        cmd_parts[0] = str(cfg.root / exe)
    return cmd_parts


_BACKEND_FLAGS: dict[OutputType, list[str]] = {
    OutputType.BITCODE: ["-c", "-emit-llvm"],
    OutputType.ASSEMBLY: ["-S"],
    OutputType.LLVM_ASSEMBLY: ["-S", "-emit-llvm"],
    OutputType.OBJECT: ["-c"],
    OutputType.NOTHING: ["-fsyntax-only"],
}


def backend_flags(output_type: OutputType) -> list[str]:
    """Return the backend flags producing *output_type*.

    Raises:
        ValueError: For ``OutputType.DEPENDENCY``, which needs no backend run.
    """
    try:
        return list(_BACKEND_FLAGS[output_type])
    except KeyError:
        raise ValueError(f"No backend invocation for output type {output_type.value!r}") from None


def format_dependency_rule(targets: Sequence[str], prerequisites: Sequence[str]) -> str:
    """Return a make rule ``targets: prerequisites`` with spaces escaped."""

    def _esc(path: str) -> str:
        return path.replace(" ", "\\ ")

    lhs = " ".join(_esc(t) for t in targets)
    rhs = " ".join(_esc(p) for p in prerequisites)
    return f"{lhs}: {rhs}\n"


# ---------------------------------------------------------------------------
# Subprocess backend
# ---------------------------------------------------------------------------


class BackendCompiler(Compiler):
    """Compile each input by running an external C-family compiler.

    Reflection settings (``bitcode_storage``, ``java_reflection_*``) belong
    to the reflection generator and are not passed to the backend.
    """

    def __init__(self, cfg: ToolchainConfig, console: Console | None = None) -> None:
        self.cfg = cfg
        self.console = console if console is not None else Console(stderr=True)
        self.target_args: list[str] = []

    def init(self, triple: str, cpu: str, features: Sequence[str]) -> None:
        args = ["-target", triple]
        if cpu:
            args.append(f"-mcpu={cpu}")
        for feature in features:
            args += ["-Xclang", "-target-feature", "-Xclang", feature]
        self.target_args = args

    def reset(self) -> None:
        self.target_args = []

    def _error(self, msg: str) -> None:
        self.console.print(f"[red bold]error:[/red bold] {escape(msg)}", highlight=False)

    def build_command(
        self,
        input_file: str,
        output_file: str,
        include_paths: Sequence[str],
        output_type: OutputType,
        allow_rs_prefix: bool,
        target_api: int,
    ) -> list[str]:
        """Return the full backend command line for one input."""
        cmd = resolve_backend_command(self.cfg) + self.target_args
        cmd += ["-x", "c", "-std=c99", f"-DRS_VERSION={target_api}"]
        if allow_rs_prefix:
            cmd.append("-DRS_ALLOW_RS_PREFIX=1")
        cmd += [f"-I{p}" for p in include_paths]
        cmd += backend_flags(output_type)
        cmd += ["-o", output_file, input_file]
        return cmd

    def _run(self, cmd: list[str], input_file: str) -> bool:
        try:
            r = subprocess.run(cmd, capture_output=True, timeout=self.cfg.compile_timeout)
        except subprocess.TimeoutExpired:
            self._error(f"{input_file}: compile timed out after {self.cfg.compile_timeout}s")
            return False
        except FileNotFoundError as e:
            self._error(f"compiler not found: {e}")
            return False
        except OSError as e:
            self._error(f"failed to run compiler: {e}")
            return False

        if r.returncode != 0:
            err = (r.stdout + r.stderr).decode("utf-8", errors="replace").strip()
            self._error(f"{input_file}: compilation failed (exit {r.returncode})")
            if err:
                self.console.print(escape(err), highlight=False)
            return False
        return True

    def compile(
        self,
        io_files: Sequence[PathPair],
        dep_files: Sequence[PathPair],
        include_paths: Sequence[str],
        additional_dep_targets: Sequence[str],
        output_type: OutputType,
        bitcode_storage: BitcodeStorage,
        allow_rs_prefix: bool,
        output_dep: bool,
        target_api: int,
        java_reflection_path_base: str,
        java_reflection_package_name: str,
    ) -> bool:
        ok = True
        for index, (input_file, output_file) in enumerate(io_files):
            if output_type != OutputType.DEPENDENCY:
                if output_type != OutputType.NOTHING:
                    ensure_parent_dir(Path(output_file))
                cmd = self.build_command(
                    input_file,
                    output_file,
                    include_paths,
                    output_type,
                    allow_rs_prefix,
                    target_api,
                )
                if not self._run(cmd, input_file):
                    ok = False
                    continue

            if output_dep and index < len(dep_files):
                bc_file, dep_file = dep_files[index]
                rule = format_dependency_rule([bc_file, *additional_dep_targets], [input_file])
                try:
                    dep_path = Path(dep_file)
                    ensure_parent_dir(dep_path)
                    atomic_write_text(dep_path, rule)
                except OSError as e:
                    self._error(f"cannot write dependency file '{dep_file}': {e}")
                    ok = False
        return ok
