"""Shared utilities for Hearth CLI modules."""
from __future__ import annotations

from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape

from hearth.core.catalog import ServiceCatalog
from hearth.core.config import is_mock, load_settings
from hearth.models.settings import DeploySettings
from hearth.services.systemd import SystemdUserManager


def setup_file_logging(log_file: Optional[str] = None, verbose: bool = False) -> None:
    """Set up file logging for CLI commands."""
    from hearth.core.logger import setup_file_logging as _setup_file_logging
    _setup_file_logging(log_file=log_file, verbose=verbose)


def resolve_settings(settings_path: Optional[str], **overrides: Any) -> DeploySettings:
    """Load settings with command-line options taking precedence."""
    cli_overrides: Dict[str, Any] = {k: v for k, v in overrides.items() if v is not None}
    return load_settings(settings_path, cli_overrides)


def build_catalog(settings: DeploySettings) -> ServiceCatalog:
    return ServiceCatalog(settings.templates_dir, settings.unit_dir, settings.unit_extension)


def build_manager(settings: DeploySettings) -> SystemdUserManager:
    return SystemdUserManager(timeout=settings.manager_timeout, mock=is_mock())


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Print an error consistently and exit.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {escape(str(e))}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {escape(message)}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {escape(message)}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {escape(message)}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {escape(message)}")
