"""
apm CLI - addonkit Package Manager.

Pacman-style interface for managing addons.

Usage:
    apm -S <git-url>[#ref]...    Install addon(s)
    apm -R <name>...             Remove addon(s)
    apm -Q                       List installed addons
    apm -Qi <name>...            Show addon info
    apm -Y                       Synchronize default addons
"""

import argparse
import sys
from pathlib import Path

from addonkit.config import ConfigError, load_settings
from addonkit.core.log import setup_logging


class APMError(Exception):
    """Base exception for apm errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with pacman-style flags."""
    parser = argparse.ArgumentParser(
        prog="apm",
        description="addonkit Package Manager - Pacman-style addon manager",
        add_help=False,
    )

    # Operation flags (mutually exclusive)
    ops = parser.add_mutually_exclusive_group()
    ops.add_argument("-S", "--sync", action="store_true", help="Install addon(s)")
    ops.add_argument("-R", "--remove", action="store_true", help="Remove addon(s)")
    ops.add_argument("-Q", "--query", action="store_true", help="Query installed")
    ops.add_argument("-Y", "--defaults", action="store_true", help="Sync default addons")
    ops.add_argument("-h", "--help", action="store_true", help="Show help")

    # Query sub-flags
    parser.add_argument("-i", "--info", action="store_true", help="Show info (-Qi)")

    # Common options
    parser.add_argument("-c", "--config", type=Path, default=None, help="Settings file")
    parser.add_argument(
        "--no-reload", action="store_true", help="Skip registry refresh after -S"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Positional arguments
    parser.add_argument("targets", nargs="*", help="Addon sources or names")

    return parser


def print_help():
    """Print help message."""
    help_text = """
apm - addonkit Package Manager

Usage:
    apm -S <git-url>[#ref]...    Install addon(s)
    apm -R <name>...             Remove addon(s)
    apm -Q                       List installed addons
    apm -Qi <name>...            Show addon info
    apm -Y                       Synchronize default addons

Options:
    -c, --config <file>          Settings file (default: config/addonkit.toml)
    --no-reload                  Skip registry refresh after install
    -v, --verbose                Verbose output
    -h, --help                   Show this help
"""
    print(help_text.strip())


def main(argv: list[str] | None = None) -> int:
    """Main entry point for apm CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.help or not (args.sync or args.remove or args.query or args.defaults):
        print_help()
        return 0

    try:
        settings = load_settings(args.config)
        setup_logging("DEBUG" if args.verbose else settings.log_level)

        # Route to appropriate command
        if args.sync:
            from apm.commands.install import install_command

            return install_command(args, settings)

        elif args.remove:
            from apm.commands.remove import remove_command

            return remove_command(args, settings)

        elif args.query:
            from apm.commands.query import query_command

            return query_command(args, settings)

        else:
            from apm.commands.defaults import defaults_command

            return defaults_command(args, settings)

    except (APMError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
