"""Shared test fixtures for Hearth tests."""
from pathlib import Path

import pytest

from hearth.core.catalog import ServiceCatalog
from hearth.core.errors import EnableError
from hearth.core.variables import Bindings

JELLYFIN_TEMPLATE = """\
[Unit]
Description=Jellyfin media server

[Container]
Image=docker.io/jellyfin/jellyfin:latest
PublishPort=${JELLYFIN_PORT}:8096
Volume=${SERVER_PODMAN_CONFIG_DIR}/jellyfin:/config:Z

[Service]
Restart=always

[Install]
WantedBy=default.target
"""


class FakeManager:
    """In-memory stand-in for SystemdUserManager."""

    def __init__(self, statuses=None, reject=(), reload_error=None):
        self.statuses = statuses or {}
        self.reject = set(reject)
        self.reload_error = reload_error
        self.calls = []

    def daemon_reload(self):
        self.calls.append(('daemon-reload', None))
        if self.reload_error:
            raise self.reload_error

    def enable_and_start(self, name):
        self.calls.append(('enable', name))
        if name in self.reject:
            raise EnableError(f"Failed to enable {name}: bad unit")

    def query_status(self, name):
        self.calls.append(('status', name))
        return self.statuses.get(name, 'active')


@pytest.fixture
def fake_manager():
    return FakeManager()


@pytest.fixture
def templates_dir(tmp_path):
    """Templates directory with a single jellyfin template."""
    path = tmp_path / "configs"
    path.mkdir()
    (path / "jellyfin.container").write_text(JELLYFIN_TEMPLATE)
    return path


@pytest.fixture
def unit_dir(tmp_path):
    return tmp_path / "systemd"


@pytest.fixture
def catalog(templates_dir, unit_dir):
    return ServiceCatalog(templates_dir, unit_dir)


@pytest.fixture
def bindings(tmp_path):
    return Bindings({
        'SERVER_NAME': 'mediabox',
        'SERVER_IP': '10.0.0.5',
        'JELLYFIN_PORT': '8096',
        'SERVER_PODMAN_CONFIG_DIR': str(tmp_path / "appdata"),
    })


def write_template(directory: Path, name: str, text: str, extension: str = "container") -> Path:
    path = directory / f"{name}.{extension}"
    path.write_text(text)
    return path
