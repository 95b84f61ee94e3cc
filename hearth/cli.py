#!/usr/bin/env python3
"""Hearth CLI - Declarative Podman Quadlet deployment for home media servers."""

import typer
from rich.console import Console

from hearth.cli_deploy_commands import register_deploy_commands

app = typer.Typer(
    name="hearth",
    help="""Hearth - Declarative Podman Quadlet deployment

Templates in configs/ + variables.env = running services.

Quick start:
  hearth validate     # Check templates against variables.env
  hearth deploy       # Render, install, enable and start everything
  hearth status       # Show what is running and where
""",
    add_completion=False,
)

console = Console()

register_deploy_commands(app, console)

if __name__ == "__main__":
    app()
