"""Resolve a command line into a typed :class:`CompilerOptions` record.

``parse_arguments`` matches the expanded argument vector against the option
table, reports malformed arguments through the diagnostics engine, and
returns the resolved options together with the input files.  It never raises
and never stops at the first problem; callers check
``diags.has_error_occurred`` afterwards.

Single-valued options and mutually exclusive groups follow a "last one wins"
rule so that build systems can override a flag by appending another.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from rscc import RS_VERSION
from rscc.diagnostics import DID, DiagnosticEngine
from rscc.option_table import create_rscc_opt_table
from rscc.options import OptionID, OptTable

DEFAULT_TRIPLE = "armv7-none-linux-gnueabi"
DEFAULT_CPU = ""
DEFAULT_FEATURES: tuple[str, ...] = ("+long64",)


class OutputType(Enum):
    BITCODE = "bitcode"
    ASSEMBLY = "assembly"
    LLVM_ASSEMBLY = "llvm-assembly"
    OBJECT = "object"
    DEPENDENCY = "dependency"
    NOTHING = "nothing"


class BitcodeStorage(Enum):
    APK_RESOURCE = "ar"
    JAVA_CODE = "jc"


_OUTPUT_TYPE_BY_OPTION: dict[OptionID, OutputType] = {
    OptionID.emit_asm: OutputType.ASSEMBLY,
    OptionID.emit_llvm: OutputType.LLVM_ASSEMBLY,
    OptionID.emit_bc: OutputType.BITCODE,
    OptionID.emit_nothing: OutputType.NOTHING,
}


@dataclass
class CompilerOptions:
    """Options resolved from the command line."""

    include_paths: list[str] = field(default_factory=list)
    output_dir: str = ""
    output_type: OutputType = OutputType.BITCODE
    allow_rs_prefix: bool = False

    # Triple/CPU/features are fixed to the portable ABI unless rscc.toml says otherwise.
    triple: str = DEFAULT_TRIPLE
    cpu: str = DEFAULT_CPU
    features: list[str] = field(default_factory=lambda: list(DEFAULT_FEATURES))

    java_reflection_path_base: str = ""
    java_reflection_package_name: str = ""
    bitcode_storage: BitcodeStorage = BitcodeStorage.APK_RESOURCE

    output_dep: bool = False
    output_dep_dir: str = ""
    additional_dep_targets: list[str] = field(default_factory=list)

    show_help: bool = False
    show_version: bool = False

    target_api: int = RS_VERSION


def _option_name_for(table: OptTable, output_type: OutputType) -> str:
    for option_id, value in _OUTPUT_TYPE_BY_OPTION.items():
        if value == output_type:
            return table.get_option_name(option_id)
    return output_type.value


def parse_arguments(
    argv: Sequence[str],
    diags: DiagnosticEngine,
    defaults: CompilerOptions | None = None,
    table: OptTable | None = None,
) -> tuple[CompilerOptions, list[str]]:
    """Resolve *argv* (program name first) into options and input files.

    Args:
        argv: Expanded argument vector; ``argv[0]`` is the program name.
        diags: Engine receiving every problem found.
        defaults: Starting values, e.g. from ``rscc.toml``.
        table: Option table; the rscc table by default.

    Returns:
        ``(options, inputs)`` with inputs in command-line order.
    """
    opts = defaults if defaults is not None else CompilerOptions()
    inputs: list[str] = []
    if len(argv) <= 1:
        return opts, inputs

    table = table if table is not None else create_rscc_opt_table()
    # Indices in ParsedArgs are relative to argv[1:].
    args = table.parse_args(argv[1:])

    if args.missing_arg_count:
        diags.report(
            DID.err_drv_missing_argument,
            args.get_arg_string(args.missing_arg_index),
            args.missing_arg_count,
        )

    for arg in args.filtered(OptionID.UNKNOWN):
        diags.report(DID.err_drv_unknown_argument, arg.as_string())

    for arg in args.filtered(OptionID.INPUT):
        inputs.append(arg.value)

    opts.include_paths = args.get_all_arg_values(OptionID.I)
    opts.output_dir = args.get_last_arg_value(OptionID.o, opts.output_dir)

    dep_arg = args.get_last_arg(OptionID.M_Group)
    if dep_arg is not None:
        opts.output_dep = True
        if dep_arg.id == OptionID.M:
            opts.output_type = OutputType.DEPENDENCY
        else:
            opts.output_type = OutputType.BITCODE

    type_arg = args.get_last_arg(OptionID.Output_Type_Group)
    if type_arg is not None:
        opts.output_type = _OUTPUT_TYPE_BY_OPTION[type_arg.id]

    if opts.output_dep and opts.output_type not in (OutputType.BITCODE, OutputType.DEPENDENCY):
        dep_str = dep_arg.as_string() if dep_arg else table.get_option_name(OptionID.MD)
        type_str = type_arg.as_string() if type_arg else _option_name_for(table, opts.output_type)
        diags.report(DID.err_drv_argument_not_allowed_with, dep_str, type_str)

    opts.allow_rs_prefix = opts.allow_rs_prefix or args.has_arg(OptionID.allow_rs_prefix)

    opts.java_reflection_path_base = args.get_last_arg_value(
        OptionID.java_reflection_path_base, opts.java_reflection_path_base
    )
    opts.java_reflection_package_name = args.get_last_arg_value(
        OptionID.java_reflection_package_name, opts.java_reflection_package_name
    )

    storage_value = args.get_last_arg_value(OptionID.bitcode_storage)
    if storage_value == BitcodeStorage.APK_RESOURCE.value:
        opts.bitcode_storage = BitcodeStorage.APK_RESOURCE
    elif storage_value == BitcodeStorage.JAVA_CODE.value:
        opts.bitcode_storage = BitcodeStorage.JAVA_CODE
    elif storage_value:
        diags.report(
            DID.err_drv_invalid_value,
            table.get_option_name(OptionID.bitcode_storage),
            storage_value,
        )

    opts.output_dep_dir = args.get_last_arg_value(OptionID.output_dep_dir, opts.output_dir)
    opts.additional_dep_targets = args.get_all_arg_values(OptionID.additional_dep_target)

    opts.show_help = args.has_arg(OptionID.help)
    opts.show_version = args.has_arg(OptionID.version)

    opts.target_api = args.get_last_arg_int_value(OptionID.target_api, opts.target_api, diags)

    return opts, inputs
