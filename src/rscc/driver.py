"""The rscc compiler driver.

``Driver.run`` takes the raw argument vector through the whole front end:

1. expand ``@file`` response files
2. resolve options; stop with status 1 on any error
3. ``-help`` / ``-version`` print and stop with status 0
4. stop with status 1 if there are no inputs
5. derive output (and dependency) paths for every input
6. initialise the compiler with the target
7. compile the batch
8. reset the compiler and return its status
"""

from __future__ import annotations

import platform
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console

from rscc import RS_MAXIMUM_TARGET_API, RS_MINIMUM_TARGET_API, __version__
from rscc.compiler import BackendCompiler, CompilerContext, CompilerFactory
from rscc.config import ToolchainConfig, load_config
from rscc.diagnostics import DID, ConsoleDiagnosticConsumer, DiagnosticConsumer, DiagnosticEngine
from rscc.option_table import create_rscc_opt_table
from rscc.output_paths import plan_outputs
from rscc.resolve import parse_arguments
from rscc.response_files import ArgumentExpander

__all__ = ["Driver", "print_version"]

HELP_TITLE = "RenderScript source compiler"


def print_version(console: Console) -> None:
    """Print the version banner."""
    console.print("rscc: RenderScript compiler", highlight=False)
    console.print("  (http://developer.android.com/guide/topics/renderscript)", highlight=False)
    console.print("  based on LLVM (http://llvm.org):", highlight=False)
    console.print(f"  Version {__version__} (Python {platform.python_version()}).", highlight=False)
    console.print(
        f"  Target APIs: {RS_MINIMUM_TARGET_API} - {RS_MAXIMUM_TARGET_API}", highlight=False
    )


class Driver:
    """Run one compiler invocation.

    Args:
        config: Toolchain configuration; loaded from ``rscc.toml`` on first
            use when omitted.
        compiler_factory: Builds the compiler for the batch.  Defaults to a
            :class:`~rscc.compiler.BackendCompiler` over *config*.
        console: Destination for help and version output.
        err_console: Destination for diagnostics.
        consumers: Diagnostic consumers replacing the default console printer.
    """

    def __init__(
        self,
        config: ToolchainConfig | None = None,
        compiler_factory: CompilerFactory | None = None,
        console: Console | None = None,
        err_console: Console | None = None,
        consumers: Sequence[DiagnosticConsumer] | None = None,
    ) -> None:
        self._config = config
        self.console = console if console is not None else Console()
        self.err_console = err_console if err_console is not None else Console(stderr=True)
        self.compiler_factory = compiler_factory or self._default_compiler
        self.consumers = list(consumers) if consumers is not None else None
        self.diags: DiagnosticEngine | None = None

    @property
    def config(self) -> ToolchainConfig:
        if self._config is None:
            self._config = load_config()
        return self._config

    def _default_compiler(self) -> BackendCompiler:
        return BackendCompiler(self.config, self.err_console)

    def _make_diagnostics(self, prog: str) -> DiagnosticEngine:
        if self.consumers is not None:
            return DiagnosticEngine(prog=prog, consumers=list(self.consumers))
        printer = ConsoleDiagnosticConsumer(prog, self.err_console)
        return DiagnosticEngine(prog=prog, consumers=[printer])

    def run(self, argv: Sequence[str]) -> int:
        """Run the invocation described by *argv* (program name first)."""
        expander = ArgumentExpander()
        args = expander.expand(argv)

        prog = Path(args[0]).stem if args else "rscc"
        diags = self.diags = self._make_diagnostics(prog)
        for file_name in expander.skipped:
            diags.report(DID.warn_drv_response_file_cycle, file_name)

        table = create_rscc_opt_table()
        opts, inputs = parse_arguments(args, diags, self.config.default_options(), table)
        if diags.has_error_occurred:
            return 1

        if opts.show_help:
            table.print_help(self.console, prog, HELP_TITLE)
            return 0

        if opts.show_version:
            print_version(self.console)
            return 0

        if not inputs:
            diags.report(DID.err_drv_no_input_files)
            return 1

        plan = plan_outputs(opts, inputs)

        with CompilerContext(self.compiler_factory) as context:
            compiler = context.initialize(opts.triple, opts.cpu, opts.features)
            ok = compiler.compile(
                plan.io_files,
                plan.dep_files,
                opts.include_paths,
                opts.additional_dep_targets,
                opts.output_type,
                opts.bitcode_storage,
                opts.allow_rs_prefix,
                opts.output_dep,
                opts.target_api,
                opts.java_reflection_path_base,
                opts.java_reflection_package_name,
            )
        return 0 if ok else 1
