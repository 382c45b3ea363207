"""The rscc option table.

One :class:`~rscc.options.OptionDescriptor` per accepted spelling.  Short
spellings (``-S``, ``-p``, ``-j``, ...) are aliases of the long option and
resolve to it during matching.  Options sharing a ``group`` are mutually
exclusive: the last one given wins.
"""

from rscc.options import OptionDescriptor, OptionFlag, OptionID, OptionKind, OptTable

_ID = OptionID
_K = OptionKind

RSCC_OPTIONS: tuple[OptionDescriptor, ...] = (
    # Groups
    OptionDescriptor(_ID.M_Group, "<M group>", _K.GROUP),
    OptionDescriptor(_ID.Output_Type_Group, "<output type group>", _K.GROUP),
    # Search paths and outputs
    OptionDescriptor(
        _ID.I,
        "-I",
        _K.JOINED_OR_SEPARATE,
        help_text="Add directory to include search path",
        metavar="<dir>",
    ),
    OptionDescriptor(
        _ID.o, "-o", _K.SEPARATE, help_text="Specify output directory", metavar="<directory>"
    ),
    # Dependency modes
    OptionDescriptor(
        _ID.M,
        "-M",
        _K.FLAG,
        group=_ID.M_Group,
        help_text="Generate a .d dependency file only",
    ),
    OptionDescriptor(
        _ID.MD,
        "-MD",
        _K.FLAG,
        group=_ID.M_Group,
        help_text="Generate a .d dependency file alongside the bitcode",
    ),
    # Output types
    OptionDescriptor(
        _ID.emit_asm,
        "-emit-asm",
        _K.FLAG,
        group=_ID.Output_Type_Group,
        help_text="Emit target assembly files",
    ),
    OptionDescriptor(
        _ID.S,
        "-S",
        _K.FLAG,
        group=_ID.Output_Type_Group,
        alias=_ID.emit_asm,
        help_text="Alias for -emit-asm",
    ),
    OptionDescriptor(
        _ID.emit_llvm,
        "-emit-llvm",
        _K.FLAG,
        group=_ID.Output_Type_Group,
        help_text="Emit LLVM assembly (.ll) files",
    ),
    OptionDescriptor(
        _ID.emit_bc,
        "-emit-bc",
        _K.FLAG,
        group=_ID.Output_Type_Group,
        help_text="Emit LLVM bitcode (.bc) files (default)",
    ),
    OptionDescriptor(
        _ID.emit_nothing,
        "-emit-nothing",
        _K.FLAG,
        group=_ID.Output_Type_Group,
        help_text="Build the source without writing any output",
    ),
    # Reflection
    OptionDescriptor(
        _ID.allow_rs_prefix,
        "-allow-rs-prefix",
        _K.FLAG,
        flags=OptionFlag.HELP_HIDDEN,
        help_text="Allow user-defined functions prefixed with 'rs'",
    ),
    OptionDescriptor(
        _ID.java_reflection_path_base,
        "-java-reflection-path-base",
        _K.SEPARATE,
        help_text="Base directory for the reflected Java sources",
        metavar="<base directory>",
    ),
    OptionDescriptor(
        _ID.p,
        "-p",
        _K.SEPARATE,
        alias=_ID.java_reflection_path_base,
        help_text="Alias for -java-reflection-path-base",
        metavar="<base directory>",
    ),
    OptionDescriptor(
        _ID.java_reflection_package_name,
        "-java-reflection-package-name",
        _K.SEPARATE,
        help_text="Package name for the reflected Java sources",
        metavar="<package name>",
    ),
    OptionDescriptor(
        _ID.j,
        "-j",
        _K.SEPARATE,
        alias=_ID.java_reflection_package_name,
        help_text="Alias for -java-reflection-package-name",
        metavar="<package name>",
    ),
    # Bitcode storage
    OptionDescriptor(
        _ID.bitcode_storage,
        "-bitcode-storage",
        _K.SEPARATE,
        help_text="Where to store the bitcode: 'ar' (APK resource) or 'jc' (Java code)",
        metavar="<value>",
    ),
    OptionDescriptor(
        _ID.bitcode_storage_EQ,
        "-bitcode-storage=",
        _K.JOINED,
        alias=_ID.bitcode_storage,
        flags=OptionFlag.HELP_HIDDEN,
    ),
    OptionDescriptor(
        _ID.s,
        "-s",
        _K.SEPARATE,
        alias=_ID.bitcode_storage,
        help_text="Alias for -bitcode-storage",
        metavar="<value>",
    ),
    # Dependency outputs
    OptionDescriptor(
        _ID.output_dep_dir,
        "-output-dep-dir",
        _K.SEPARATE,
        help_text="Directory for the dependency files (default: the output directory)",
        metavar="<directory>",
    ),
    OptionDescriptor(
        _ID.d,
        "-d",
        _K.SEPARATE,
        alias=_ID.output_dep_dir,
        help_text="Alias for -output-dep-dir",
        metavar="<directory>",
    ),
    OptionDescriptor(
        _ID.additional_dep_target,
        "-additional-dep-target",
        _K.SEPARATE,
        help_text="Additional target to list in the dependency files",
        metavar="<target>",
    ),
    OptionDescriptor(
        _ID.a,
        "-a",
        _K.SEPARATE,
        alias=_ID.additional_dep_target,
        help_text="Alias for -additional-dep-target",
        metavar="<target>",
    ),
    OptionDescriptor(
        _ID.target_api,
        "-target-api",
        _K.SEPARATE,
        help_text="Target API level",
        metavar="<level>",
    ),
    # Driver
    OptionDescriptor(
        _ID.help,
        "-help",
        _K.FLAG,
        flags=OptionFlag.DRIVER_OPTION,
        help_text="Print this help text",
    ),
    OptionDescriptor(
        _ID.help_long,
        "--help",
        _K.FLAG,
        alias=_ID.help,
        flags=OptionFlag.DRIVER_OPTION | OptionFlag.HELP_HIDDEN,
    ),
    OptionDescriptor(
        _ID.version,
        "-version",
        _K.FLAG,
        flags=OptionFlag.DRIVER_OPTION,
        help_text="Print the compiler version",
    ),
    OptionDescriptor(
        _ID.version_long,
        "--version",
        _K.FLAG,
        alias=_ID.version,
        flags=OptionFlag.DRIVER_OPTION | OptionFlag.HELP_HIDDEN,
    ),
)


def create_rscc_opt_table() -> OptTable:
    """Build an :class:`OptTable` over :data:`RSCC_OPTIONS`."""
    return OptTable(RSCC_OPTIONS)
