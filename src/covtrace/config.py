"""Configuration loading and management for covtrace.

Configuration sources are merged in priority order:
    1. Defaults (defined in TraceConfig)
    2. Global config (~/.covtrace.toml)
    3. Project config (./covtrace.toml)
    4. Explicit config file
    5. Environment variables (COVTRACE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(branch_coverage=True)
    >>> config.branch_coverage
    True
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ERROR_CATEGORIES, ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]


@dataclass(frozen=True)
class TraceConfig:
    """Settings shared by the decoder, the codec and the engines.

    Attributes:
        Coverage kinds:
            function_coverage: Read and write function records
            branch_coverage: Read and write branch records
            checksum: Write per-line checksums; compute them when assembling

        Graph decoding:
            split_checksum: Force the gcno split-checksum layout on or off
                (None = auto-detect per file)
            ignore_errors: FormatError categories downgraded to warnings
                ("graph", "source", "gcov")

        Diff remapping:
            diff_path: Base directory diff paths are relative to
            diff_strip: Leading path components stripped from diff paths
            convert_filenames: Apply renames found in the diff to file paths

        Output control:
            verbosity: Logging verbosity level
    """

    function_coverage: bool = True
    branch_coverage: bool = False
    checksum: bool = False

    split_checksum: Optional[bool] = None
    ignore_errors: list[str] = field(default_factory=list)

    diff_path: Optional[str] = None
    diff_strip: int = 0
    convert_filenames: bool = False

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for category in self.ignore_errors:
            if category not in ERROR_CATEGORIES:
                raise ValueError(
                    f"unknown error category '{category}' "
                    f"(expected one of {', '.join(ERROR_CATEGORIES)})"
                )
        if self.diff_strip < 0:
            raise ValueError("diff_strip must be non-negative")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be quiet, normal or verbose")

    def ignores(self, category: str) -> bool:
        """Whether errors of ``category`` are downgraded to warnings."""
        return category in self.ignore_errors


DEFAULT_CONFIG = TraceConfig()


def load_config(config_file: Optional[Path] = None, **overrides) -> TraceConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags); ``None``
            values are ignored so unset flags do not mask file settings

    Returns:
        Validated TraceConfig instance

    Raises:
        ConfigurationError: If a config file or value is invalid
    """
    merged: dict = {}

    global_config = Path.home() / ".covtrace.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "covtrace.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"

    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return TraceConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from COVTRACE_* environment variables.

    Supported environment variables:
        COVTRACE_FUNCTION_COVERAGE: bool (true/false/1/0)
        COVTRACE_BRANCH_COVERAGE: bool
        COVTRACE_CHECKSUM: bool
        COVTRACE_SPLIT_CHECKSUM: bool
        COVTRACE_IGNORE_ERRORS: comma-separated categories
        COVTRACE_DIFF_PATH: str
        COVTRACE_DIFF_STRIP: int
        COVTRACE_CONVERT_FILENAMES: bool
        COVTRACE_VERBOSITY: quiet/normal/verbose
    """
    type_hints = get_type_hints(TraceConfig)

    result: dict[str, Any] = {}

    for field_name in TraceConfig.__dataclass_fields__:
        env_key = f"COVTRACE_{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint, field_name)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

    return result


def _parse_env_value(value: str, type_hint: Any, field_name: str) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list:
        return [item.strip() for item in value.split(",") if item.strip()]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
