"""Command-line interface for inspecting cache configuration."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.table import Table

from aidj_cache.core.config import DEFAULT_CONFIG_PATH, load_config
from aidj_cache.core.exceptions import ConfigurationError
from aidj_cache.core.logger import LogFormat as LF
from aidj_cache.core.logger import get_loggers, get_shared_console
from aidj_cache.core.models.settings import AppSettings, LogLevel
from aidj_cache.services.cache.cache_presets import CACHE_PRESETS
from aidj_cache.services.cache.cache_service import create_cache_service
from aidj_cache.services.cache.cache_utils import format_ttl

if TYPE_CHECKING:
    from collections.abc import Sequence

    from aidj_cache.core.models.cache_types import CacheConfig


def _add_presets_command(subparsers: Any) -> None:
    """Add the presets command."""
    subparsers.add_parser(
        "presets",
        help="Show the built-in namespace presets",
        description="List every preset namespace with its TTL, capacity and sweep interval",
    )


def _add_config_command(subparsers: Any) -> None:
    """Add the config command."""
    parser = subparsers.add_parser(
        "config",
        aliases=["cfg"],
        help="Show effective namespace configuration",
        description="Apply the config file overrides to the presets and print the result",
    )
    parser.add_argument(
        "--namespace",
        "-n",
        help="Namespace to show (all preset and configured namespaces if omitted)",
    )


class CLI:
    """Command-line interface handler."""

    def __init__(self) -> None:
        """Initialize CLI parser."""
        self.parser = self._create_parser()

    @staticmethod
    def _create_parser() -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="aidj-cache",
            description="AI DJ cache engine - inspect namespace presets and configuration",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
    # Show the preset table
    %(prog)s presets

    # Show effective config for the Last.fm namespace
    %(prog)s --config config.yaml config --namespace lastfm
            """,
        )
        parser.add_argument(
            "--config",
            help="Path to the YAML config file (defaults to $CONFIG_PATH or config.yaml)",
        )
        parser.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable debug logging on the console",
        )

        subparsers = parser.add_subparsers(dest="command", title="commands")
        _add_presets_command(subparsers)
        _add_config_command(subparsers)
        return parser

    def parse_args(self, args: Sequence[str] | None = None) -> argparse.Namespace:
        """Parse command line arguments."""
        return self.parser.parse_args(args)


def _config_row(namespace: str, config: CacheConfig) -> tuple[str, ...]:
    return (
        namespace,
        format_ttl(config.default_ttl_ms),
        str(config.max_entries) if config.max_entries > 0 else "unbounded",
        format_ttl(config.cleanup_interval_ms) if config.enable_auto_cleanup else "off",
        "yes" if config.track_access else "no",
    )


def build_presets_table() -> Table:
    """Render the preset table."""
    table = Table(title="Cache Presets")
    for column in ("Namespace", "Name", "TTL", "Max entries", "Sweep"):
        table.add_column(column)

    for namespace, preset in CACHE_PRESETS.items():
        config = preset.to_config()
        table.add_row(
            namespace,
            preset.name,
            format_ttl(config.default_ttl_ms),
            str(config.max_entries),
            format_ttl(config.cleanup_interval_ms),
        )
    return table


def build_config_table(settings: AppSettings, namespace: str | None = None) -> Table:
    """Render effective configuration after applying ``settings`` overrides."""
    service = create_cache_service()
    try:
        service.apply_settings(settings.caching)

        namespaces = [namespace] if namespace else list(dict.fromkeys([*CACHE_PRESETS, *settings.caching.namespaces]))

        table = Table(title="Effective Cache Configuration")
        for column in ("Namespace", "TTL", "Max entries", "Sweep", "Track access"):
            table.add_column(column)
        for name in namespaces:
            table.add_row(*_config_row(name, service.get_configuration(name)))
        return table
    finally:
        service.destroy()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    cli = CLI()
    args = cli.parse_args(argv)

    if args.command is None:
        cli.parser.print_help()
        return 0

    console = get_shared_console()

    config_path: str | None = None
    if args.command == "presets":
        settings = AppSettings()
    else:
        try:
            config_path = args.config or os.getenv("CONFIG_PATH")
            if config_path is None and Path(DEFAULT_CONFIG_PATH).is_file():
                config_path = DEFAULT_CONFIG_PATH
            settings = load_config(config_path) if config_path else AppSettings()
        except ConfigurationError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            return 2

    if args.verbose:
        settings.logging.console_level = LogLevel.DEBUG
    console_logger, _, listener = get_loggers(settings)
    try:
        if args.command == "presets":
            console_logger.debug("Rendering %s presets", LF.number(len(CACHE_PRESETS)))
            console.print(build_presets_table())
        else:
            console_logger.debug(
                "Loaded %s namespace overrides %s",
                LF.number(len(settings.caching.namespaces)),
                LF.dim(f"from {config_path or 'preset defaults'}"),
            )
            console.print(build_config_table(settings, args.namespace))
    except AttributeError as e:
        console.print(f"[red]Invalid cache override:[/red] {e}")
        return 2
    finally:
        if listener is not None:
            listener.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
