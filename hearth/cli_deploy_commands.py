"""Deployment CLI commands - deploy, render, status, validate."""
import signal
import threading
from typing import Optional

import typer
from rich.console import Console
from rich.rule import Rule

from hearth.cli_support import (
    build_catalog,
    build_manager,
    handle_cli_error,
    print_error,
    print_info,
    print_success,
    print_warning,
    resolve_settings,
    setup_file_logging,
)
from hearth.core import variables
from hearth.core.config import is_mock
from hearth.core.errors import HearthError
from hearth.core.reconciler import Reconciler, ReconcileResult
from hearth.core.renderer import render as render_template
from hearth.core.reporter import ERROR, OK, WARN, summary_lines
from hearth.core.validator import TemplateValidator
from hearth.models.settings import DeploySettings

# Module-level console instance (will be set by register function)
console: Console = Console()

COCKPIT_PORT = 9090


def _print_header(bindings, settings: DeploySettings) -> None:
    server_name = bindings.get("SERVER_NAME")
    host = bindings.get(settings.host_variable)
    console.print(Rule("[bold]Service Summary[/bold]"))
    if server_name:
        console.print(f"Server Name:  {server_name}")
    if host:
        console.print(f"Cockpit UI:   https://{host}:{COCKPIT_PORT}")


def _print_summary(result: ReconcileResult, bindings, settings: DeploySettings) -> None:
    _print_header(bindings, settings)
    printers = {OK: print_success, WARN: print_warning, ERROR: print_error}
    for severity, line in summary_lines(result, bindings, settings.host_variable):
        printers[severity](console, line)
    console.print(Rule())


def deploy(
    variables_file: Optional[str] = typer.Option(None, "--variables", "-e", help="Variables file (KEY=value)"),
    templates_dir: Optional[str] = typer.Option(None, "--templates", "-t", help="Directory with unit templates"),
    unit_dir: Optional[str] = typer.Option(None, "--unit-dir", help="Quadlet directory for rendered units"),
    settle: Optional[float] = typer.Option(None, "--settle", help="Seconds to wait before checking status"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Timeout per systemctl call in seconds"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Render every template, install the units, and enable-and-start them.

    Safe to run repeatedly: units are regenerated in place and services that
    already run are left running. Exit code 2 means at least one service is
    not active.

    Examples:
        hearth deploy
        hearth deploy --variables /srv/hearth/variables.env --settle 10
    """
    setup_file_logging(log_file, verbose)

    try:
        settings = resolve_settings(
            config,
            variables_file=variables_file,
            templates_dir=templates_dir,
            unit_dir=unit_dir,
            settle_delay=settle,
            manager_timeout=timeout,
        )
        bindings = variables.load(settings.variables_file)
        catalog = build_catalog(settings)
        templates = catalog.discover()
    except HearthError as e:
        handle_cli_error(e, console, verbose)

    if not templates:
        print_warning(console, f"No *.{settings.unit_extension} templates in {settings.templates_dir}")

    server = bindings.get("SERVER_NAME", "this host")
    console.print(f"[bold]Deploying {len(templates)} service(s) on {server}[/bold]")

    cancel_event = threading.Event()
    reconciler = Reconciler(
        catalog,
        build_manager(settings),
        settle_delay=0 if is_mock() else settings.settle_delay,
        data_root_variable=settings.data_root_variable,
        cancel_event=cancel_event,
    )

    def _on_interrupt(signum, frame):
        print_warning(console, "Interrupted; finishing the current service and stopping")
        cancel_event.set()

    previous_handler = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        result = reconciler.reconcile(bindings, templates)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    _print_summary(result, bindings, settings)

    if not result.all_active():
        raise typer.Exit(2)


def render(
    name: str = typer.Argument(..., help="Service name (template file name without extension)"),
    variables_file: Optional[str] = typer.Option(None, "--variables", "-e", help="Variables file (KEY=value)"),
    templates_dir: Optional[str] = typer.Option(None, "--templates", "-t", help="Directory with unit templates"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Print the rendered unit for one service without installing it."""
    try:
        settings = resolve_settings(config, variables_file=variables_file, templates_dir=templates_dir)
        bindings = variables.load(settings.variables_file)
        template = build_catalog(settings).get(name)
        if template is None:
            print_error(console, f"No template named '{name}' in {settings.templates_dir}")
            raise typer.Exit(1)
        unit = render_template(template, bindings)
    except HearthError as e:
        handle_cli_error(e, console, verbose)

    typer.echo(unit.text, nl=False)


def status(
    variables_file: Optional[str] = typer.Option(None, "--variables", "-e", help="Variables file (KEY=value)"),
    templates_dir: Optional[str] = typer.Option(None, "--templates", "-t", help="Directory with unit templates"),
    unit_dir: Optional[str] = typer.Option(None, "--unit-dir", help="Quadlet directory for rendered units"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show state and access URL of every service without changing anything."""
    try:
        settings = resolve_settings(
            config, variables_file=variables_file, templates_dir=templates_dir, unit_dir=unit_dir
        )
        bindings = variables.load(settings.variables_file)
        catalog = build_catalog(settings)
        templates = catalog.discover()
    except HearthError as e:
        handle_cli_error(e, console, verbose)

    result = Reconciler(catalog, build_manager(settings)).observe(templates)
    _print_summary(result, bindings, settings)

    if not result.all_active():
        raise typer.Exit(2)


def validate(
    variables_file: Optional[str] = typer.Option(None, "--variables", "-e", help="Variables file (KEY=value)"),
    templates_dir: Optional[str] = typer.Option(None, "--templates", "-t", help="Directory with unit templates"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Settings file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Check that every placeholder is defined and every unit is well-formed."""
    try:
        settings = resolve_settings(config, variables_file=variables_file, templates_dir=templates_dir)
        bindings = variables.load(settings.variables_file)
        templates = build_catalog(settings).discover()
    except HearthError as e:
        handle_cli_error(e, console, verbose)

    report = TemplateValidator().validate(templates, bindings)

    print_info(console, f"{len(templates)} template(s), {len(report.required)} variable(s) referenced")
    for name in report.required:
        marker = "[green]✓[/green]" if name in bindings else "[red]✗[/red]"
        console.print(f"  {marker} {name}")

    if report.ok:
        print_success(console, "All templates are valid")
        return

    for error in report.errors():
        print_error(console, error)
    raise typer.Exit(1)


def register_deploy_commands(app: typer.Typer, shared_console: Console):
    """Register deployment commands with the main Typer app.

    Args:
        app: Main Typer application
        shared_console: Shared Rich console instance
    """
    global console
    console = shared_console

    app.command()(deploy)
    app.command()(render)
    app.command()(status)
    app.command()(validate)
