"""Toolchain configuration loader for rscc.

Reads ``rscc.toml`` from the project root (found by walking up from the
current directory) and exposes the target and backend settings.  Every
setting has a built-in default, so a missing file is not an error.

Example ``rscc.toml``::

    [target]
    triple = "armv7-none-linux-gnueabi"
    cpu = ""
    features = ["+long64"]
    api = 16

    [compiler]
    command = "clang"
    timeout = 120

Usage::

    from rscc.config import load_config

    cfg = load_config()
    opts = cfg.default_options()
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rscc import RS_VERSION
from rscc.resolve import DEFAULT_CPU, DEFAULT_FEATURES, DEFAULT_TRIPLE, CompilerOptions

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import,no-redef]

CONFIG_FILE_NAME = "rscc.toml"
CONFIG_ENV_VAR = "RSCC_CONFIG"


class ConfigError(Exception):
    """Raised when rscc.toml exists but cannot be used."""


@dataclass
class ToolchainConfig:
    """Parsed toolchain configuration."""

    # File the settings came from; None when running on built-in defaults.
    path: Path | None = None

    # --- [target] ---
    triple: str = DEFAULT_TRIPLE
    cpu: str = DEFAULT_CPU
    features: list[str] = field(default_factory=lambda: list(DEFAULT_FEATURES))
    target_api: int = RS_VERSION

    # --- [compiler] ---
    compiler_command: str = "clang"
    compile_timeout: int = 120

    @property
    def root(self) -> Path:
        """Directory holding the config file (cwd when running on defaults)."""
        return self.path.parent if self.path is not None else Path.cwd()

    def default_options(self) -> CompilerOptions:
        """Return a :class:`CompilerOptions` seeded with the configured target."""
        return CompilerOptions(
            triple=self.triple,
            cpu=self.cpu,
            features=list(self.features),
            target_api=self.target_api,
        )


def _find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (or cwd) to find rscc.toml, like git finds .git/."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    candidate = (start if start is not None else Path.cwd()).resolve()
    while True:
        if (candidate / CONFIG_FILE_NAME).is_file():
            return candidate / CONFIG_FILE_NAME
        if candidate == candidate.parent:
            return None
        candidate = candidate.parent


def _expect(section: dict[str, Any], key: str, kind: type, default: Any, where: str) -> Any:
    value = section.get(key, default)
    # bool is an int subclass; reject it for integer settings.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(f"{where}: '{key}' must be of type {kind.__name__}, got {value!r}")
    return value


def load_config(start: Path | None = None) -> ToolchainConfig:
    """Load rscc.toml.

    Args:
        start: Directory to start searching from.  Defaults to the current
            working directory.  ``$RSCC_CONFIG`` overrides the search.

    Raises:
        ConfigError: The file is unreadable, not valid TOML, or a setting has
            the wrong type.
    """
    toml_path = _find_config(start)
    if toml_path is None:
        return ToolchainConfig()

    try:
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read {toml_path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {toml_path}: {e}") from e

    target = raw.get("target", {})
    compiler = raw.get("compiler", {})
    if not isinstance(target, dict) or not isinstance(compiler, dict):
        raise ConfigError(f"{toml_path}: [target] and [compiler] must be tables")

    where = str(toml_path)
    features = _expect(target, "features", list, list(DEFAULT_FEATURES), where)
    if not all(isinstance(f, str) for f in features):
        raise ConfigError(f"{where}: 'features' must be a list of strings")

    return ToolchainConfig(
        path=toml_path,
        triple=_expect(target, "triple", str, DEFAULT_TRIPLE, where),
        cpu=_expect(target, "cpu", str, DEFAULT_CPU, where),
        features=list(features),
        target_api=_expect(target, "api", int, RS_VERSION, where),
        compiler_command=_expect(compiler, "command", str, "clang", where),
        compile_timeout=_expect(compiler, "timeout", int, 120, where),
    )
