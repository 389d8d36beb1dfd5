"""CLI entry point for sentinel: watch a directory and run commands on change."""

import argparse
import logging
import signal
import sys
from pathlib import Path

from sentinel_core.config import SentinelConfig, resolve_config, validate_config
from sentinel_core.errors import ConfigError, WatchInitError
from sentinel_core.notifier import ConsoleNotifier
from sentinel_core.reporter import ConsoleReporter
from textual_sentinel import __version__
from textual_sentinel.controller import SentinelController

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "sentinel.toml"

# Default config template for Python projects
DEFAULT_CONFIG_TEMPLATE = """\
# Auto-generated sentinel.toml

[watch]
dir = "."
debounce_ms = 500

# extension (no dot) = commands run in order; {file} is the changed file
[commands]
py = ["ruff format {file}", "ruff check {file}"]
"""


def create_default_config(config_path: Path) -> bool:
    """
    Create a default sentinel.toml if it doesn't exist.

    Args:
        config_path: Path where config should be created

    Returns:
        True if config was created, False if it already exists

    Raises:
        PermissionError: If unable to write to the directory
        OSError: If other file system errors occur
    """
    if config_path.exists():
        return False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE)
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="sentinel",
        description="Watch a directory and run commands on files as they change.",
        epilog="Examples:\n"
        "  sentinel                     # Watch the current directory\n"
        "  sentinel -d src --tui        # Watch src/ in the terminal UI\n"
        "  sentinel -c ci.yaml          # Use a specific config file\n"
        "  sentinel --init              # Write a starter sentinel.toml",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-d",
        "--dir",
        default=None,
        help="Directory to watch (default: watch.dir from config, else .)",
    )
    parser.add_argument(
        "-c",
        "--config",
        default=None,
        help="Path to config file (default: discover sentinel.toml/.yaml)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        help="Ignore repeat changes to the same file within this window",
    )
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Show results in the terminal UI",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help=f"Create a default {DEFAULT_CONFIG_NAME} and exit",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def configure_logging(level_name: str, tui: bool = False) -> None:
    """Route log records to stderr, or to Textual devtools in TUI mode."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    if tui:
        from textual.logging import TextualHandler

        logging.basicConfig(level=level, handlers=[TextualHandler()])
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        )


def run_console(config: SentinelConfig) -> int:
    """Watch until interrupted, printing each report to stdout.

    Returns:
        Process exit code
    """
    reporter = ConsoleReporter()
    notifier = ConsoleNotifier(reporter.console)
    controller = SentinelController(config, reporter=reporter, notifier=notifier)

    for warning in controller.validate_config().warnings:
        notifier.warning(warning)

    signal.signal(signal.SIGTERM, lambda signum, frame: controller.request_stop())

    try:
        controller.start()
        reporter.console.print("Watching for changes...")
        controller.serve_forever()
    except WatchInitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        controller.shutdown()
    return 0


def run_tui(config: SentinelConfig) -> int:
    """Run the Textual app until the user quits.

    Returns:
        Process exit code
    """
    from textual_sentinel.app import SentinelApp

    app = SentinelApp(config)
    app.run()
    return 1 if app.startup_error else 0


def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the sentinel CLI.

    Handles:
    - Argument parsing
    - --init config creation
    - Config discovery and validation
    - Console or TUI watch loop
    - Error handling and exit codes
    """
    args = parse_args(argv)
    configure_logging(args.log_level, tui=args.tui)

    try:
        if args.init:
            config_path = Path(args.dir or ".").resolve() / DEFAULT_CONFIG_NAME
            if create_default_config(config_path):
                print(f"Created default config at: {config_path}")
            else:
                print(f"Config already exists: {config_path}")
            sys.exit(0)

        config = resolve_config(args.config, root=args.dir, debounce_ms=args.debounce_ms)
        config.watcher.dir = config.watcher.dir.resolve()
        logger.debug(f"Config source: {config.source or 'built-in defaults'}")

        validation = validate_config(config)
        if validation.errors:
            for error in validation.errors:
                print(f"Error: {error}", file=sys.stderr)
            sys.exit(1)

        if args.tui:
            sys.exit(run_tui(config))
        sys.exit(run_console(config))

    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        # Gracefully handle Ctrl+C
        sys.exit(130)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
