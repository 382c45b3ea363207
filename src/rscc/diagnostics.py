"""Diagnostics for the rscc driver.

The driver never raises for a malformed command line.  Problems are reported
through a :class:`DiagnosticEngine` which counts them by severity and hands
them to one or more consumers for rendering.  Callers check
:attr:`DiagnosticEngine.has_error_occurred` once, after all arguments have
been looked at, so a single invocation can report several problems.

Usage::

    from rscc.diagnostics import DID, DiagnosticEngine

    diags = DiagnosticEngine(prog="rscc")
    diags.report(DID.err_drv_unknown_argument, "-bogus")
    if diags.has_error_occurred:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, auto

from rich.console import Console
from rich.markup import escape


class DiagnosticSeverity(IntEnum):
    """Severity of a diagnostic; ERROR and above fail the run."""

    NOTE = auto()
    WARNING = auto()
    ERROR = auto()
    FATAL = auto()


class DID(IntEnum):
    """Diagnostic identifiers."""

    err_drv_missing_argument = auto()
    err_drv_unknown_argument = auto()
    err_drv_argument_not_allowed_with = auto()
    err_drv_invalid_value = auto()
    err_drv_invalid_int_value = auto()
    err_drv_no_input_files = auto()
    warn_drv_response_file_cycle = auto()


@dataclass(frozen=True)
class DiagnosticDefinition:
    severity: DiagnosticSeverity
    text: str


# Message text uses str.format() positional fields for the arguments.
diagnostic_definitions: dict[DID, DiagnosticDefinition] = {
    DID.err_drv_missing_argument: DiagnosticDefinition(
        DiagnosticSeverity.ERROR, "argument to '{0}' is missing (expected {1} value{2})"
    ),
    DID.err_drv_unknown_argument: DiagnosticDefinition(
        DiagnosticSeverity.ERROR, "unknown argument: '{0}'"
    ),
    DID.err_drv_argument_not_allowed_with: DiagnosticDefinition(
        DiagnosticSeverity.ERROR, "invalid argument '{0}' not allowed with '{1}'"
    ),
    DID.err_drv_invalid_value: DiagnosticDefinition(
        DiagnosticSeverity.ERROR, "invalid value '{1}' in '{0}'"
    ),
    DID.err_drv_invalid_int_value: DiagnosticDefinition(
        DiagnosticSeverity.ERROR, "invalid integral value '{1}' in '{0}'"
    ),
    DID.err_drv_no_input_files: DiagnosticDefinition(DiagnosticSeverity.ERROR, "no input files"),
    DID.warn_drv_response_file_cycle: DiagnosticDefinition(
        DiagnosticSeverity.WARNING,
        "response file '{0}' not expanded (recursive or too deeply nested)",
    ),
}

_SEVERITY_STYLE: dict[DiagnosticSeverity, str] = {
    DiagnosticSeverity.NOTE: "[cyan bold]note:[/cyan bold]",
    DiagnosticSeverity.WARNING: "[yellow bold]warning:[/yellow bold]",
    DiagnosticSeverity.ERROR: "[red bold]error:[/red bold]",
    DiagnosticSeverity.FATAL: "[red bold]fatal error:[/red bold]",
}


@dataclass(frozen=True)
class Diagnostic:
    """A single reported diagnostic with its positional arguments."""

    did: DID
    severity: DiagnosticSeverity
    args: tuple[object, ...] = ()

    @property
    def message(self) -> str:
        """Return the message text with the arguments substituted."""
        text = diagnostic_definitions[self.did].text
        args = list(self.args)
        if self.did == DID.err_drv_missing_argument:
            # Plural suffix for the value count.
            count = args[1] if len(args) > 1 else 1
            args = [args[0], count, "" if count == 1 else "s"]
        return text.format(*args)


class DiagnosticConsumer:
    """Receives every diagnostic the engine accepts."""

    def emit(self, diagnostic: Diagnostic) -> None:
        raise NotImplementedError


class ConsoleDiagnosticConsumer(DiagnosticConsumer):
    """Render diagnostics as ``prog: error: message`` on a rich console."""

    def __init__(self, prog: str = "", console: Console | None = None) -> None:
        self.prog = prog
        self.console = console if console is not None else Console(stderr=True)

    def emit(self, diagnostic: Diagnostic) -> None:
        prefix = f"{escape(self.prog)}: " if self.prog else ""
        label = _SEVERITY_STYLE[diagnostic.severity]
        self.console.print(f"{prefix}{label} {escape(diagnostic.message)}", highlight=False)


class CollectingConsumer(DiagnosticConsumer):
    """Keep diagnostics in a list; used by tests and embedding callers."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []

    def emit(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def dids(self) -> list[DID]:
        return [d.did for d in self.diagnostics]


@dataclass
class DiagnosticEngine:
    """Counts diagnostics by severity and forwards them to consumers.

    With no consumers given, diagnostics are printed to stderr prefixed with
    *prog*.
    """

    prog: str = ""
    consumers: list[DiagnosticConsumer] = field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0

    def __post_init__(self) -> None:
        if not self.consumers:
            self.consumers.append(ConsoleDiagnosticConsumer(self.prog))

    def report(self, did: DID, *args: object) -> Diagnostic:
        """Report diagnostic *did* with positional *args*."""
        severity = diagnostic_definitions[did].severity
        diagnostic = Diagnostic(did, severity, tuple(args))
        if severity >= DiagnosticSeverity.ERROR:
            self.error_count += 1
        elif severity == DiagnosticSeverity.WARNING:
            self.warning_count += 1
        for consumer in self.consumers:
            consumer.emit(diagnostic)
        return diagnostic

    @property
    def has_error_occurred(self) -> bool:
        return self.error_count > 0
