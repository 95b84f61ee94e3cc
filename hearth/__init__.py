"""Hearth - declarative Podman Quadlet deployment for home media servers."""

__version__ = "0.3.0"
