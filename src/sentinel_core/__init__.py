"""sentinel-core: UI-agnostic watch, debounce, dispatch and execute pipeline."""

__version__ = "0.1.0"

# Config
from sentinel_core.config import SentinelConfig, discover_config, load_config, resolve_config, validate_config
from sentinel_core.debouncer import Debouncer
from sentinel_core.dispatcher import Dispatcher

# Errors
from sentinel_core.errors import (
    ConfigError,
    SentinelError,
    SpawnError,
    SuspendResumeError,
    WatchInitError,
)
from sentinel_core.executor import Executor

# Models
from sentinel_core.models import (
    ChangeEvent,
    CommandRun,
    ConfigValidationResult,
    ExecutionResult,
    RawEvent,
    RawEventKind,
    ResolvedCommand,
    WatchRoot,
)

# Reporting
from sentinel_core.reporter import ConsoleReporter, NullReporter, Reporter, render_report
from sentinel_core.rules import RuleTable, resolve_command
from sentinel_core.watch_controller import WatchController

__all__ = [
    "__version__",
    # Models
    "ChangeEvent",
    "CommandRun",
    "ConfigValidationResult",
    "ExecutionResult",
    "RawEvent",
    "RawEventKind",
    "ResolvedCommand",
    "WatchRoot",
    # Errors
    "ConfigError",
    "SentinelError",
    "SpawnError",
    "SuspendResumeError",
    "WatchInitError",
    # Pipeline
    "Debouncer",
    "Dispatcher",
    "Executor",
    "RuleTable",
    "WatchController",
    "resolve_command",
    # Reporting
    "ConsoleReporter",
    "NullReporter",
    "Reporter",
    "render_report",
    # Config
    "SentinelConfig",
    "discover_config",
    "load_config",
    "resolve_config",
    "validate_config",
]
