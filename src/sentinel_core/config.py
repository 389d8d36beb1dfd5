"""Configuration discovery, parsing and validation for sentinel."""

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

import yaml

from sentinel_core.errors import ConfigError
from sentinel_core.models import ConfigValidationResult
from sentinel_core.rules import FILE_PLACEHOLDER, RuleTable, resolve_command
from sentinel_core.watchers import WatcherConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAMES = (
    "sentinel.toml",
    ".sentinel.toml",
    "sentinel.yaml",
    "sentinel.yml",
    ".sentinel.yaml",
    ".sentinel.yml",
)
GLOBAL_CONFIG_NAMES = ("config.toml", "config.yaml", "config.yml")

DEFAULT_RULES = {"py": ["ruff format {file}", "ruff check {file}"]}


@dataclass
class SentinelConfig:
    """Fully resolved configuration."""

    watcher: WatcherConfig
    """Where and how to watch."""

    rules: RuleTable = field(default_factory=RuleTable)
    """Extension -> command templates."""

    source: Path | None = None
    """File the configuration came from (None for built-in defaults)."""

    @property
    def root(self) -> Path:
        return self.watcher.dir


def global_config_dir() -> Path:
    """User-global config directory (``$XDG_CONFIG_HOME/sentinel``)."""
    base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    return Path(base) / "sentinel"


def discover_config(start_dir: str | Path = ".") -> Path | None:
    """Find the config file to use for ``start_dir``.

    Project-local files win over the user-global ones.

    Args:
        start_dir: Directory being watched

    Returns:
        Path of the first existing candidate, or None
    """
    start_dir = Path(start_dir)
    candidates = [start_dir / name for name in PROJECT_CONFIG_NAMES]
    candidates += [global_config_dir() / name for name in GLOBAL_CONFIG_NAMES]
    for candidate in candidates:
        if candidate.is_file():
            logger.debug(f"Using config file {candidate}")
            return candidate
    return None


def default_config(root: str | Path = ".", debounce_ms: int | None = None) -> SentinelConfig:
    """Configuration used when no config file exists."""
    watcher = WatcherConfig(dir=Path(root))
    if debounce_ms is not None:
        watcher.debounce_ms = _positive_int(debounce_ms, "debounce_ms")
    return SentinelConfig(watcher=watcher, rules=RuleTable(DEFAULT_RULES))


def load_config(
    path: str | Path,
    root_override: str | Path | None = None,
    debounce_override: int | None = None,
) -> SentinelConfig:
    """Load a TOML or YAML config file.

    Args:
        path: Config file (``.toml``, ``.yaml`` or ``.yml``)
        root_override: Watch this directory instead of ``watch.dir``
        debounce_override: Use this window instead of ``watch.debounce_ms``

    Returns:
        SentinelConfig

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    raw = _read_raw(path)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: configuration root must be a mapping")

    watch_raw = raw.get("watch") or {}
    if not isinstance(watch_raw, dict):
        raise ConfigError(f"{path}: 'watch' section must be a mapping")

    if root_override is not None:
        root = Path(root_override)
    else:
        root = path.parent / Path(str(watch_raw.get("dir", ".")))

    debounce_ms = watch_raw.get("debounce_ms", WatcherConfig.debounce_ms)
    if debounce_override is not None:
        debounce_ms = debounce_override

    watcher = WatcherConfig(
        dir=root,
        debounce_ms=_positive_int(debounce_ms, "watch.debounce_ms"),
        queue_size=_positive_int(watch_raw.get("queue_size", WatcherConfig.queue_size), "watch.queue_size"),
    )
    rules = parse_rules(raw.get("commands", {}))
    logger.info(f"Loaded {len(rules)} rule(s) from {path}")
    return SentinelConfig(watcher=watcher, rules=rules, source=path)


def resolve_config(
    config_path: str | Path | None = None,
    root: str | Path | None = None,
    debounce_ms: int | None = None,
) -> SentinelConfig:
    """Load the explicit config, else a discovered one, else the defaults.

    Args:
        config_path: Explicit config file (skips discovery)
        root: Directory to watch (overrides the file's ``watch.dir``)
        debounce_ms: Debounce window override

    Returns:
        SentinelConfig
    """
    if config_path is None:
        config_path = discover_config(root if root is not None else ".")
    if config_path is None:
        logger.info("No config file found; using built-in rules")
        return default_config(root if root is not None else ".", debounce_ms)
    return load_config(config_path, root_override=root, debounce_override=debounce_ms)


def parse_rules(raw: Any) -> RuleTable:
    """Validate the ``commands`` section and build a RuleTable.

    A single string is accepted in place of a one-element list, and a
    leading dot on an extension is dropped.
    """
    if raw is None:
        return RuleTable()
    if not isinstance(raw, dict):
        raise ConfigError("'commands' section must be a mapping of extension -> commands")

    rules: dict[str, list[str]] = {}
    for extension, templates in raw.items():
        if not isinstance(extension, str) or not extension.lstrip("."):
            raise ConfigError(f"Invalid extension key: {extension!r}")
        key = extension[1:] if extension.startswith(".") else extension
        if key in rules:
            raise ConfigError(f"Duplicate extension: {key!r}")
        rules[key] = _ensure_str_list(templates, f"commands.{extension}")
    return RuleTable(rules)


def validate_config(config: SentinelConfig) -> ConfigValidationResult:
    """Check a loaded configuration for likely mistakes.

    Args:
        config: Configuration to check

    Returns:
        ConfigValidationResult with warnings (non-fatal) and errors (fatal)
    """
    result = ConfigValidationResult(
        rules_loaded=sum(1 for templates in config.rules.values() if templates),
        commands_loaded=config.rules.command_count,
    )

    if not config.root.exists():
        result.errors.append(f"Watch directory does not exist: {config.root}")
    elif not config.root.is_dir():
        result.errors.append(f"Watch path is not a directory: {config.root}")

    missing: set[str] = set()
    for extension, templates in config.rules.items():
        for template in templates:
            if FILE_PLACEHOLDER not in template:
                result.warnings.append(f"Command '{template}' for .{extension} files has no {FILE_PLACEHOLDER}")
            command = resolve_command(template, "x")
            if command is None:
                result.warnings.append(f"Blank command configured for .{extension} files")
            elif command.program not in missing and shutil.which(command.program) is None:
                missing.add(command.program)
                result.warnings.append(f"Program not found on PATH: {command.program}")

    return result


def _read_raw(path: Path) -> Any:
    if path.suffix == ".toml":
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    if path.suffix in (".yaml", ".yml"):
        try:
            return yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    raise ConfigError(f"Unsupported config format: {path.name} (use .toml, .yaml or .yml)")


def _positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer")
    if value <= 0:
        raise ConfigError(f"{field_name} must be positive")
    return value


def _ensure_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ConfigError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for elem in value:
        if not isinstance(elem, str):
            raise ConfigError(f"{field_name} must contain only strings")
        items.append(elem)
    return items
