"""File-name conventions shared with the reflection code generator.

The backend names its bitcode after the script file, mangled so the result
is a valid identifier fragment; dependency files keep the plain stem so
build systems can find them next to the source.
"""

import os


def get_file_name_stem(file_name: str) -> str:
    """Return the base name of *file_name* without its last extension.

    ``"dir/foo.rs"`` → ``"foo"``, ``"dir/foo.bar.rs"`` → ``"foo.bar"``.
    """
    base = file_name.rsplit(os.sep, 1)[-1]
    dot = base.rfind(".")
    if dot == -1:
        return base
    return base[:dot]


def bc_file_name_from_rs_file_name(rs_file_name: str) -> str:
    """Return the bitcode stem for a script file.

    Every character of the stem that is not alphanumeric becomes ``_``:
    ``"my-script.rs"`` → ``"my_script"``.
    """
    stem = get_file_name_stem(rs_file_name)
    return "".join(c if c.isascii() and c.isalnum() else "_" for c in stem)
