"""Response-file (``@file``) expansion for the command line.

An argument of the form ``@path`` is replaced, in place, by the arguments
read from ``path``.  The file is split on whitespace; single and double
quotes group words, a backslash takes the next character literally, and
arguments read from a file may themselves be ``@path`` references.

The file is read as UTF-8 with undecodable bytes carried through as
surrogate escapes, and line endings are left untouched.

A reference that cannot be opened is kept as the literal argument, so a real
argument that merely starts with ``@`` still reaches the option parser.
"""

from __future__ import annotations

import os
from collections.abc import Iterable

MAX_RESPONSE_FILE_DEPTH = 64

_QUOTES = ("'", '"')
# C-locale isspace(); other Unicode separators are ordinary characters.
_WHITESPACE = " \t\n\v\f\r"


def tokenize_response_text(text: str) -> list[str]:
    """Split the contents of a response file into arguments.

    Does not expand nested ``@file`` references; see :class:`ArgumentExpander`.
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quote = ""
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        i += 1
        if c in _WHITESPACE:
            if in_quote:
                current.append(c)
            elif current:
                tokens.append("".join(current))
                current = []
            continue
        if c in _QUOTES:
            if in_quote == c:
                in_quote = ""
            elif not in_quote:
                in_quote = c
            else:
                current.append(c)
            continue
        if c == "\\":
            # A trailing backslash is dropped.
            if i < n:
                current.append(text[i])
                i += 1
            continue
        current.append(c)

    # An unterminated quote closes at end of buffer.
    if current:
        tokens.append("".join(current))
    return tokens


class ArgumentExpander:
    """Expand ``@file`` references in an argument vector.

    References to a file that is already being expanded, or nested deeper
    than *max_depth*, are left as literal arguments and recorded in
    :attr:`skipped`.
    """

    def __init__(self, max_depth: int = MAX_RESPONSE_FILE_DEPTH) -> None:
        self.max_depth = max_depth
        self.skipped: list[str] = []
        self._stack: list[str] = []

    def expand(self, argv: Iterable[str]) -> list[str]:
        """Return *argv* with every readable ``@file`` argument expanded."""
        result: list[str] = []
        for arg in argv:
            self._expand_arg(arg, result)
        return result

    def _expand_arg(self, arg: str, result: list[str]) -> None:
        if not arg.startswith("@"):
            result.append(arg)
            return

        file_name = arg[1:]
        try:
            with open(file_name, encoding="utf-8", errors="surrogateescape", newline="") as f:
                text = f.read()
        except OSError:
            result.append(arg)
            return

        key = os.path.realpath(file_name)
        if key in self._stack or len(self._stack) >= self.max_depth:
            self.skipped.append(file_name)
            result.append(arg)
            return

        self._stack.append(key)
        try:
            for token in tokenize_response_text(text):
                self._expand_arg(token, result)
        finally:
            self._stack.pop()


def expand_argv(argv: Iterable[str]) -> list[str]:
    """Expand ``@file`` references in *argv* with the default depth limit."""
    return ArgumentExpander().expand(argv)
