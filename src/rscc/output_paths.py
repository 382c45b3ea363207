"""Output and dependency-file path derivation.

Every input gets one primary output path.  With ``-M``/``-MD`` it also gets a
(bitcode, dependency file) pair; whichever half matches the primary output
type reuses the primary path, the other half is derived against the
dependency output directory.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass, field

from rscc.reflect_utils import bc_file_name_from_rs_file_name, get_file_name_stem
from rscc.resolve import CompilerOptions, OutputType

_SUFFIXES: dict[OutputType, str] = {
    OutputType.DEPENDENCY: ".d",
    OutputType.ASSEMBLY: ".S",
    OutputType.LLVM_ASSEMBLY: ".ll",
    OutputType.OBJECT: ".o",
    OutputType.BITCODE: ".bc",
}


def determine_output_file(output_dir: str, input_file: str, output_type: OutputType) -> str:
    """Return the output path for *input_file* under *output_dir*.

    ``OutputType.NOTHING`` always maps to :data:`os.devnull`.  Dependency
    files keep the source file's stem (build systems look for ``foo.d`` next
    to ``foo.rs``); everything else uses the bitcode naming convention.
    """
    if output_type == OutputType.NOTHING:
        return os.devnull

    output_file = output_dir
    if output_file and not output_file.endswith(os.sep):
        output_file += os.sep

    if output_type == OutputType.DEPENDENCY:
        output_file += get_file_name_stem(input_file)
    else:
        output_file += bc_file_name_from_rs_file_name(input_file)

    return output_file + _SUFFIXES[output_type]


def determine_dependency_pair(
    opts: CompilerOptions, input_file: str, output_file: str
) -> tuple[str, str]:
    """Return ``(bitcode_path, dependency_path)`` for *input_file*.

    *output_file* is the primary output already derived for the input.
    """
    if opts.output_type == OutputType.BITCODE:
        bc_file = output_file
    else:
        bc_file = determine_output_file(opts.output_dep_dir, input_file, OutputType.BITCODE)

    if opts.output_type == OutputType.DEPENDENCY:
        dep_file = output_file
    else:
        dep_file = determine_output_file(opts.output_dep_dir, input_file, OutputType.DEPENDENCY)

    return bc_file, dep_file


@dataclass
class OutputPlan:
    """Path pairs for one compiler batch, in input order."""

    io_files: list[tuple[str, str]] = field(default_factory=list)
    dep_files: list[tuple[str, str]] = field(default_factory=list)


def plan_outputs(opts: CompilerOptions, inputs: Sequence[str]) -> OutputPlan:
    """Derive the (input, output) and (bitcode, dependency) pairs for *inputs*."""
    plan = OutputPlan()
    for input_file in inputs:
        output_file = determine_output_file(opts.output_dir, input_file, opts.output_type)
        if opts.output_dep:
            plan.dep_files.append(determine_dependency_pair(opts, input_file, output_file))
        plan.io_files.append((input_file, output_file))
    return plan
