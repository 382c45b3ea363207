"""Option-table primitives and the table-driven argument matcher.

OptionDescriptor: one row of the static option table
OptTable:         matches tokens against the table
Arg / ParsedArgs: the matched command line, queried by option ID

Matching follows the usual compiler-driver conventions: the longest option
name that is a prefix of a token wins, ``FLAG`` and ``SEPARATE`` options must
match the whole token, ``JOINED`` options take the rest of the token as their
value, and anything not starting with ``-`` (or ``-`` on its own) is an input.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag, auto

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rscc.diagnostics import DID, DiagnosticEngine

# Optional minus sign and ASCII digits only: no "+", "_" or surrounding space.
_DECIMAL_RE = re.compile(r"-?[0-9]+")

class OptionID(IntEnum):
    """Stable option identifiers.  ``INVALID`` (0) is not an option."""

    INVALID = 0
    INPUT = auto()
    UNKNOWN = auto()
    # Groups
    M_Group = auto()
    Output_Type_Group = auto()
    # Options
    I = auto()  # noqa: E741
    o = auto()
    M = auto()
    MD = auto()
    emit_asm = auto()
    S = auto()
    emit_llvm = auto()
    emit_bc = auto()
    emit_nothing = auto()
    allow_rs_prefix = auto()
    java_reflection_path_base = auto()
    p = auto()
    java_reflection_package_name = auto()
    j = auto()
    bitcode_storage = auto()
    bitcode_storage_EQ = auto()
    s = auto()
    output_dep_dir = auto()
    d = auto()
    additional_dep_target = auto()
    a = auto()
    target_api = auto()
    help = auto()
    help_long = auto()
    version = auto()
    version_long = auto()


class OptionKind(IntEnum):
    GROUP = auto()
    INPUT = auto()
    UNKNOWN = auto()
    FLAG = auto()
    JOINED = auto()
    SEPARATE = auto()
    JOINED_OR_SEPARATE = auto()
    MULTI_ARG = auto()


class OptionFlag(IntFlag):
    NONE = 0
    HELP_HIDDEN = auto()
    DRIVER_OPTION = auto()


@dataclass(frozen=True)
class OptionDescriptor:
    """A single option-table entry."""

    id: OptionID
    name: str
    kind: OptionKind
    group: OptionID | None = None
    alias: OptionID | None = None
    flags: OptionFlag = OptionFlag.NONE
    arity: int = 0
    help_text: str = ""
    metavar: str = ""


@dataclass
class Arg:
    """One matched command-line argument.

    ``option`` is the resolved option (aliases followed); ``spelling`` is the
    table entry the user actually typed.
    """

    option: OptionDescriptor
    spelling: OptionDescriptor
    index: int
    values: list[str] = field(default_factory=list)

    @property
    def id(self) -> OptionID:
        return self.option.id

    @property
    def value(self) -> str:
        return self.values[0] if self.values else ""

    def as_string(self) -> str:
        """Render the argument as it was presented on the command line."""
        kind = self.spelling.kind
        if kind in (OptionKind.INPUT, OptionKind.UNKNOWN):
            return self.value
        if kind == OptionKind.FLAG:
            return self.spelling.name
        if kind == OptionKind.JOINED:
            return self.spelling.name + self.value
        return " ".join([self.spelling.name, *self.values])


@dataclass
class ParsedArgs:
    """The result of :meth:`OptTable.parse_args`."""

    table: OptTable
    tokens: list[str]
    args: list[Arg] = field(default_factory=list)
    missing_arg_index: int = 0
    missing_arg_count: int = 0

    def _matches(self, arg: Arg, ids: Sequence[OptionID]) -> bool:
        return arg.id in ids or (arg.option.group is not None and arg.option.group in ids)

    def filtered(self, *ids: OptionID) -> list[Arg]:
        """Return all args whose option (or option group) is in *ids*, in order."""
        return [a for a in self.args if self._matches(a, ids)]

    def has_arg(self, *ids: OptionID) -> bool:
        return any(self._matches(a, ids) for a in self.args)

    def get_last_arg(self, *ids: OptionID) -> Arg | None:
        for arg in reversed(self.args):
            if self._matches(arg, ids):
                return arg
        return None

    def get_last_arg_value(self, option_id: OptionID, default: str = "") -> str:
        arg = self.get_last_arg(option_id)
        return arg.value if arg is not None else default

    def get_all_arg_values(self, option_id: OptionID) -> list[str]:
        values: list[str] = []
        for arg in self.filtered(option_id):
            values.extend(arg.values)
        return values

    def get_last_arg_int_value(
        self, option_id: OptionID, default: int, diags: DiagnosticEngine
    ) -> int:
        """Return the integer value of the last *option_id*, or *default*.

        An unparsable value is reported as ``err_drv_invalid_int_value`` and
        *default* is returned.
        """
        arg = self.get_last_arg(option_id)
        if arg is None:
            return default
        if not _DECIMAL_RE.fullmatch(arg.value):
            diags.report(DID.err_drv_invalid_int_value, arg.as_string(), arg.value)
            return default
        return int(arg.value, 10)

    def get_arg_string(self, index: int) -> str:
        return self.tokens[index]


class OptTable:
    """Match command-line tokens against a static table of descriptors."""

    def __init__(self, descriptors: Iterable[OptionDescriptor]) -> None:
        self._by_id: dict[OptionID, OptionDescriptor] = {}
        for desc in descriptors:
            if desc.id in self._by_id:
                raise ValueError(f"Duplicate option ID in table: {desc.id.name}")
            self._by_id[desc.id] = desc
        self._input = OptionDescriptor(OptionID.INPUT, "<input>", OptionKind.INPUT)
        self._unknown = OptionDescriptor(OptionID.UNKNOWN, "<unknown>", OptionKind.UNKNOWN)
        # Longest name first so the most specific descriptor wins.
        self._matchable = sorted(
            (
                d
                for d in self._by_id.values()
                if d.kind not in (OptionKind.GROUP, OptionKind.INPUT, OptionKind.UNKNOWN)
            ),
            key=lambda d: (-len(d.name), d.id),
        )

    def get_option(self, option_id: OptionID) -> OptionDescriptor:
        return self._by_id[option_id]

    def get_option_name(self, option_id: OptionID) -> str:
        return self._by_id[option_id].name

    def descriptors(self) -> list[OptionDescriptor]:
        """Return all descriptors ordered by ID."""
        return [self._by_id[k] for k in sorted(self._by_id)]

    def _resolve_alias(self, desc: OptionDescriptor) -> OptionDescriptor:
        seen: set[OptionID] = set()
        while desc.alias is not None and desc.id not in seen:
            seen.add(desc.id)
            desc = self._by_id[desc.alias]
        return desc

    def parse_args(self, tokens: Sequence[str]) -> ParsedArgs:
        """Match every token in *tokens*.

        Parsing stops at the first option that is short of values; the index
        of that option and the number of missing values are recorded on the
        result.
        """
        parsed = ParsedArgs(self, list(tokens))
        index = 0
        count = len(tokens)
        while index < count:
            token = tokens[index]
            if token == "-" or not token.startswith("-"):
                parsed.args.append(Arg(self._input, self._input, index, [token]))
                index += 1
                continue

            arg, consumed, missing = self._match(tokens, index)
            if missing:
                parsed.missing_arg_index = index
                parsed.missing_arg_count = missing
                break
            parsed.args.append(arg)
            index += consumed
        return parsed

    def _match(self, tokens: Sequence[str], index: int) -> tuple[Arg, int, int]:
        """Return ``(arg, tokens_consumed, missing_value_count)``."""
        token = tokens[index]
        remaining = len(tokens) - index - 1
        for desc in self._matchable:
            if not token.startswith(desc.name):
                continue
            exact = len(token) == len(desc.name)
            option = self._resolve_alias(desc)
            kind = desc.kind

            if kind == OptionKind.FLAG:
                if exact:
                    return Arg(option, desc, index), 1, 0
            elif kind == OptionKind.JOINED:
                return Arg(option, desc, index, [token[len(desc.name) :]]), 1, 0
            elif kind == OptionKind.SEPARATE:
                if exact:
                    if remaining < 1:
                        return Arg(option, desc, index), 0, 1
                    return Arg(option, desc, index, [tokens[index + 1]]), 2, 0
            elif kind == OptionKind.JOINED_OR_SEPARATE:
                if not exact:
                    return Arg(option, desc, index, [token[len(desc.name) :]]), 1, 0
                if remaining < 1:
                    return Arg(option, desc, index), 0, 1
                return Arg(option, desc, index, [tokens[index + 1]]), 2, 0
            elif kind == OptionKind.MULTI_ARG:
                if exact:
                    if remaining < desc.arity:
                        return Arg(option, desc, index), 0, desc.arity - remaining
                    values = list(tokens[index + 1 : index + 1 + desc.arity])
                    return Arg(option, desc, index, values), 1 + desc.arity, 0

        return Arg(self._unknown, self._unknown, index, [token]), 1, 0

    def print_help(self, console: Console, prog: str, title: str) -> None:
        """Print the visible options as a table."""
        console.print(f"[bold]OVERVIEW:[/bold] {escape(title)}")
        console.print()
        console.print(f"[bold]USAGE:[/bold] {escape(prog)} \\[options] <inputs>")
        console.print()

        table = Table(title="OPTIONS", show_header=False, box=None, pad_edge=False)
        table.add_column("option", style="bold", no_wrap=True)
        table.add_column("help")
        for desc in self.descriptors():
            if desc.kind in (OptionKind.GROUP, OptionKind.INPUT, OptionKind.UNKNOWN):
                continue
            if desc.flags & OptionFlag.HELP_HIDDEN:
                continue
            table.add_row(escape(_render_option_synopsis(desc)), escape(desc.help_text))
        console.print(table)


def _render_option_synopsis(desc: OptionDescriptor) -> str:
    metavar = desc.metavar or "<value>"
    if desc.kind == OptionKind.FLAG:
        return desc.name
    if desc.kind == OptionKind.JOINED:
        return f"{desc.name}{metavar}"
    if desc.kind == OptionKind.MULTI_ARG:
        return " ".join([desc.name] + [metavar] * desc.arity)
    return f"{desc.name} {metavar}"
