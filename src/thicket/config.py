"""Configuration loader for thicket.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from .errors import ConfigError
from .search.fuzzy import ACCESSORS, DEFAULT_KEYS, DEFAULT_THRESHOLD

CONFIG_NAME = "thicket.toml"


@dataclass
class StoreConfig:
    """Where notes live."""
    root: Path


@dataclass
class SearchConfig:
    """Fuzzy search settings."""
    threshold: float = DEFAULT_THRESHOLD
    keys: tuple[str, ...] = DEFAULT_KEYS
    max_history: int = 10


@dataclass
class DailyConfig:
    """Daily note settings."""
    tags: tuple[str, ...] = ("daily", "journal")


@dataclass
class LogConfig:
    """Logging settings."""
    level: str = "WARNING"
    file: Path | None = None


@dataclass
class ThicketConfig:
    """Complete thicket configuration."""
    store: StoreConfig
    search: SearchConfig = field(default_factory=SearchConfig)
    daily: DailyConfig = field(default_factory=DailyConfig)
    log: LogConfig = field(default_factory=LogConfig)


def _parse_search(data: dict[str, Any]) -> SearchConfig:
    threshold = data.get("threshold", DEFAULT_THRESHOLD)
    if not isinstance(threshold, (int, float)) or not 0 <= threshold <= 1:
        raise ConfigError(f"search.threshold must be between 0 and 1, got {threshold!r}")

    keys = tuple(data.get("keys", DEFAULT_KEYS))
    unknown = [k for k in keys if k not in ACCESSORS]
    if not keys or unknown:
        raise ConfigError(
            f"search.keys must be a non-empty subset of {sorted(ACCESSORS)}, got {list(keys)}"
        )

    max_history = data.get("max_history", 10)
    if not isinstance(max_history, int) or max_history < 1:
        raise ConfigError(f"search.max_history must be a positive integer, got {max_history!r}")

    return SearchConfig(threshold=float(threshold), keys=keys, max_history=max_history)


def _parse_daily(data: dict[str, Any]) -> DailyConfig:
    tags = data.get("tags", DailyConfig.tags)
    if isinstance(tags, str):
        tags = [tags]
    if not isinstance(tags, (list, tuple)) or not all(
        isinstance(t, str) and t.strip() for t in tags
    ):
        raise ConfigError(f"daily.tags must be a list of non-empty strings, got {tags!r}")
    return DailyConfig(tags=tuple(t.strip() for t in tags))


def load_config(config_path: Path | None = None, store_path: Path | None = None) -> ThicketConfig:
    """
    Load configuration from thicket.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/thicket.toml
    3. store_path/thicket.toml

    Args:
        config_path: Explicit path to config file
        store_path: Store root for fallback search

    Returns:
        ThicketConfig with resolved settings

    Raises:
        ConfigError: a value is out of range or malformed
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_NAME)
    if store_path:
        search_paths.append(store_path / CONFIG_NAME)

    for path in search_paths:
        if path.exists():
            try:
                with open(path, "rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"{path}: {e}") from e
            break

    store_data = toml_data.get("store", {})
    store_config = StoreConfig(
        root=Path(store_data.get("root", store_path or Path("./garden")))
    )

    search_config = _parse_search(toml_data.get("search", {}))

    daily_config = _parse_daily(toml_data.get("daily", {}))

    log_data = toml_data.get("log", {})
    log_file = log_data.get("file") or None
    log_config = LogConfig(
        level=str(log_data.get("level", "WARNING")).upper(),
        file=Path(log_file) if log_file else None,
    )

    return ThicketConfig(
        store=store_config,
        search=search_config,
        daily=daily_config,
        log=log_config,
    )
