"""textual-sentinel: run commands on files as they change, in the console or a TUI."""

__version__ = "0.1.0"

# Public API
from textual_sentinel.app import SentinelApp
from textual_sentinel.controller import SentinelController

__all__ = [
    "__version__",
    # Primary components
    "SentinelApp",
    "SentinelController",
]
