"""rscc: command-line front end for the RenderScript bitcode compiler.

Expands ``@file`` response files, resolves the option table into a typed
options record, derives output and dependency-file paths for every input,
and hands the batch to a compiler backend.
"""

__version__ = "0.1.0"

# Target API levels understood by the backend.
RS_MINIMUM_TARGET_API = 11
RS_MAXIMUM_TARGET_API = 16
RS_VERSION = RS_MAXIMUM_TARGET_API
