"""Configuration loading and management for Alertboard.

Configuration sources are merged in priority order:
    1. Defaults (defined in DashboardConfig)
    2. Global config (~/.alertboard.toml)
    3. Project config (./alertboard.toml)
    4. Explicit config file
    5. Environment variables (ALERTBOARD_* prefix)
    6. Overrides (passed as kwargs, typically CLI flags)

Example:
    >>> config = load_config(verbose=True, unknown_label="N/A")
    >>> config.verbosity
    'verbose'
    >>> config.treemap.header_height
    28.0
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, Tuple, get_type_hints

from .exceptions import ConfigFileError, ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
ExpansionDefault = Literal["collapsed", "expanded"]

# Overflow cap: (max total nodes, fraction of leaves kept). Step function,
# evaluated top to bottom; anything above the last breakpoint keeps
# OVERFLOW_FLOOR_FRACTION.
OVERFLOW_BREAKPOINTS: Tuple[Tuple[int, float], ...] = (
    (30, 1.0),
    (60, 0.8),
    (100, 0.6),
    (200, 0.4),
)
OVERFLOW_FLOOR_FRACTION = 0.3
OVERFLOW_WEIGHT = 2.0


@dataclass(frozen=True)
class TableConfig:
    """Windowed table geometry.

    Attributes:
        group_row_height: Estimated height of a group header row (px)
        leaf_row_height: Estimated height of an alert row (px)
        overscan: Rows materialized beyond each viewport edge
    """

    group_row_height: float = 32.0
    leaf_row_height: float = 40.0
    overscan: int = 5

    def __post_init__(self) -> None:
        if self.group_row_height <= 0:
            raise InvalidConfigError("table.group_row_height", self.group_row_height, "must be positive")
        if self.leaf_row_height <= 0:
            raise InvalidConfigError("table.leaf_row_height", self.leaf_row_height, "must be positive")
        if self.overscan < 0:
            raise InvalidConfigError("table.overscan", self.overscan, "must be non-negative")


@dataclass(frozen=True)
class TreemapConfig:
    """Treemap layout and overflow tuning.

    The label thresholds gate which sub-elements of a rectangle are drawn;
    each is a (min width, min height) pair in pixels.

    Attributes:
        Layout:
            header_height: Header band reserved at the top of group rectangles
            inner_padding: Gap between sibling rectangles
            outer_padding: Gap between a group's edge and its children
            round_coordinates: Snap rectangle edges to whole pixels

        Overflow:
            overflow_breakpoints: (max total nodes, kept fraction) steps
            overflow_floor_fraction: Kept fraction past the last breakpoint
            overflow_weight: Value given to the synthetic overflow leaf

        Labels:
            label_min_size: Any label at all
            icon_min_size: Integration icon on alert leaves
            percentage_min_size: Percentage badge on alert leaves
            count_min_size: Alert count line on leaves
            overflow_count_min_height: "+N" text on overflow leaves
    """

    header_height: float = 28.0
    inner_padding: float = 2.0
    outer_padding: float = 2.0
    round_coordinates: bool = True

    overflow_breakpoints: Tuple[Tuple[int, float], ...] = OVERFLOW_BREAKPOINTS
    overflow_floor_fraction: float = OVERFLOW_FLOOR_FRACTION
    overflow_weight: float = OVERFLOW_WEIGHT

    label_min_size: Tuple[float, float] = (30.0, 25.0)
    icon_min_size: Tuple[float, float] = (40.0, 30.0)
    percentage_min_size: Tuple[float, float] = (60.0, 35.0)
    count_min_size: Tuple[float, float] = (45.0, 35.0)
    overflow_count_min_height: float = 35.0

    def __post_init__(self) -> None:
        if self.header_height < 0:
            raise InvalidConfigError("treemap.header_height", self.header_height, "must be non-negative")
        if self.inner_padding < 0 or self.outer_padding < 0:
            raise InvalidConfigError("treemap.padding", (self.inner_padding, self.outer_padding), "must be non-negative")
        if self.overflow_weight <= 0:
            raise InvalidConfigError("treemap.overflow_weight", self.overflow_weight, "must be positive")

        # Breakpoints must ascend in node count and never raise the fraction
        previous_limit = 0
        previous_fraction = 1.0
        for limit, fraction in self.overflow_breakpoints:
            if limit <= previous_limit:
                raise InvalidConfigError(
                    "treemap.overflow_breakpoints", self.overflow_breakpoints, "limits must ascend"
                )
            if not 0.0 < fraction <= previous_fraction:
                raise InvalidConfigError(
                    "treemap.overflow_breakpoints",
                    self.overflow_breakpoints,
                    "fractions must be in (0, 1] and non-increasing",
                )
            previous_limit, previous_fraction = limit, fraction
        if not 0.0 < self.overflow_floor_fraction <= previous_fraction:
            raise InvalidConfigError(
                "treemap.overflow_floor_fraction",
                self.overflow_floor_fraction,
                "must be in (0, last breakpoint fraction]",
            )


@dataclass(frozen=True)
class RefreshConfig:
    """Record-set refresh timing.

    Attributes:
        interval_seconds: Auto-refresh period
        resize_debounce_seconds: Quiet period before a resize re-layout
        request_timeout_seconds: HTTP source timeout
    """

    interval_seconds: float = 5.0
    resize_debounce_seconds: float = 0.15
    request_timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.interval_seconds <= 0:
            raise InvalidConfigError("refresh.interval_seconds", self.interval_seconds, "must be positive")
        if self.resize_debounce_seconds < 0:
            raise InvalidConfigError(
                "refresh.resize_debounce_seconds", self.resize_debounce_seconds, "must be non-negative"
            )
        if self.request_timeout_seconds <= 0:
            raise InvalidConfigError(
                "refresh.request_timeout_seconds", self.request_timeout_seconds, "must be positive"
            )


@dataclass(frozen=True)
class DashboardConfig:
    """Top-level dashboard configuration.

    Attributes:
        unknown_label: Sentinel for blank or missing grouping values
        default_expanded: Initial expansion of uncontrolled table groups
        verbosity: Logging verbosity level
        table: Windowed table geometry
        treemap: Treemap layout and overflow tuning
        refresh: Refresh timing
    """

    unknown_label: str = "Unknown"
    default_expanded: ExpansionDefault = "collapsed"
    verbosity: Verbosity = "normal"

    table: TableConfig = field(default_factory=TableConfig)
    treemap: TreemapConfig = field(default_factory=TreemapConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)

    def __post_init__(self) -> None:
        if not self.unknown_label.strip():
            raise InvalidConfigError("unknown_label", self.unknown_label, "must not be blank")
        if self.default_expanded not in ("collapsed", "expanded"):
            raise InvalidConfigError("default_expanded", self.default_expanded, "expected collapsed/expanded")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")


# Nested sections and the dataclass that parses each
_SECTIONS = {
    "table": TableConfig,
    "treemap": TreemapConfig,
    "refresh": RefreshConfig,
}


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> DashboardConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``verbose``
            and ``quiet`` booleans are folded into ``verbosity``.

    Returns:
        Validated DashboardConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing, or a
            value fails validation
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".alertboard.toml"
    if global_config.exists():
        _merge(merged, _load_toml_file(global_config))

    project_config = Path.cwd() / "alertboard.toml"
    if project_config.exists():
        _merge(merged, _load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigFileError(config_file, "not found")
        _merge(merged, _load_toml_file(config_file))

    _merge(merged, _load_env_vars())

    if "verbose" in overrides:
        if overrides.pop("verbose"):
            overrides["verbosity"] = "verbose"
    if "quiet" in overrides:
        if overrides.pop("quiet"):
            overrides["verbosity"] = "quiet"
    _merge(merged, overrides)

    for section, section_cls in _SECTIONS.items():
        raw = merged.pop(section, None)
        if raw is None:
            continue
        if isinstance(raw, section_cls):
            merged[section] = raw
        elif isinstance(raw, dict):
            try:
                merged[section] = section_cls(**_coerce_tuples(raw))
            except TypeError as e:
                raise ConfigurationError(f"Invalid [{section}] config: {e}")
        else:
            raise InvalidConfigError(section, raw, "expected a table")

    try:
        return DashboardConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _merge(target: dict[str, Any], source: dict[str, Any]) -> None:
    """Merge *source* into *target*, one level deep for section tables."""
    for key, value in source.items():
        if key in _SECTIONS and isinstance(value, dict) and isinstance(target.get(key), dict):
            target[key] = {**target[key], **value}
        else:
            target[key] = value


def _coerce_tuples(section: dict[str, Any]) -> dict[str, Any]:
    """TOML arrays arrive as lists; the frozen configs hold tuples."""
    result: dict[str, Any] = {}
    for key, value in section.items():
        if isinstance(value, list):
            result[key] = tuple(tuple(v) if isinstance(v, list) else v for v in value)
        else:
            result[key] = value
    return result


def _load_env_vars() -> dict[str, Any]:
    """Load scalar top-level fields from ALERTBOARD_* environment variables.

    Supported environment variables:
        ALERTBOARD_UNKNOWN_LABEL: str
        ALERTBOARD_DEFAULT_EXPANDED: collapsed/expanded
        ALERTBOARD_VERBOSITY: quiet/normal/verbose

    Section fields use a double underscore, e.g.
    ``ALERTBOARD_REFRESH__INTERVAL_SECONDS=10``.
    """
    result: dict[str, Any] = {}

    type_hints = get_type_hints(DashboardConfig)
    for field_name in DashboardConfig.__dataclass_fields__:
        if field_name in _SECTIONS:
            continue
        env_value = os.environ.get(f"ALERTBOARD_{field_name.upper()}")
        if env_value is not None:
            result[field_name] = _parse_env_value(env_value, type_hints[field_name], field_name)

    for section, section_cls in _SECTIONS.items():
        section_hints = get_type_hints(section_cls)
        for field_name in section_cls.__dataclass_fields__:
            env_key = f"ALERTBOARD_{section.upper()}__{field_name.upper()}"
            env_value = os.environ.get(env_key)
            if env_value is None:
                continue
            parsed = _parse_env_value(env_value, section_hints[field_name], env_key)
            if parsed is not None:
                result.setdefault(section, {})[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any, name: str) -> Any:
    """Parse an environment variable string to the field's type.

    Returns None for types too complex for an env var (tuples).

    Raises:
        InvalidConfigError: If the value can't be parsed to the expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    if origin is tuple or type_hint is tuple:
        return None

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise InvalidConfigError(name, value, "expected true/false")

    try:
        if type_hint is int:
            return int(value)
        if type_hint is float:
            return float(value)
    except ValueError:
        raise InvalidConfigError(name, value, f"expected {type_hint.__name__}")

    return value


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigFileError: If TOML parsing fails
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, str(e))
