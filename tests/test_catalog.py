"""Tests for template discovery and unit installation."""
import os
import stat

import pytest

from hearth.core.catalog import ServiceCatalog
from hearth.core.errors import UnboundVariable, WriteError

from conftest import write_template


def test_discover_is_sorted_by_name(templates_dir, unit_dir):
    write_template(templates_dir, "sonarr", "[Container]\n")
    write_template(templates_dir, "audiobookshelf", "[Container]\n")
    write_template(templates_dir, "notes", "ignored", extension="txt")

    templates = ServiceCatalog(templates_dir, unit_dir).discover()

    assert [t.name for t in templates] == ["audiobookshelf", "jellyfin", "sonarr"]
    assert all(t.extension == "container" for t in templates)


def test_discover_missing_directory_is_empty(tmp_path):
    catalog = ServiceCatalog(tmp_path / "nope", tmp_path / "units")
    assert catalog.discover() == []


def test_materialize_writes_rendered_unit(catalog, bindings, unit_dir):
    template = catalog.get("jellyfin")

    path = catalog.materialize(template, bindings)

    assert path == unit_dir / "jellyfin.container"
    content = path.read_text()
    assert "PublishPort=8096:8096" in content
    assert "${" not in content
    assert stat.S_IMODE(path.stat().st_mode) == 0o644


def test_materialize_is_idempotent(catalog, bindings):
    template = catalog.get("jellyfin")

    first_path = catalog.materialize(template, bindings)
    first_bytes = first_path.read_bytes()
    second_path = catalog.materialize(template, bindings)

    assert first_path == second_path
    assert second_path.read_bytes() == first_bytes
    assert sorted(p.name for p in second_path.parent.iterdir()) == ["jellyfin.container"]


def test_materialize_to_explicit_destination(catalog, bindings, tmp_path):
    destination = tmp_path / "elsewhere"

    path = catalog.materialize(catalog.get("jellyfin"), bindings, destination)

    assert path == destination / "jellyfin.container"


def test_unbound_variable_leaves_previous_unit(catalog, bindings, unit_dir):
    template = catalog.get("jellyfin")
    path = catalog.materialize(template, bindings)
    original = path.read_bytes()

    with pytest.raises(UnboundVariable):
        catalog.materialize(template, {'SERVER_IP': '10.0.0.5'})

    assert path.read_bytes() == original


def test_interrupted_write_keeps_previous_unit(catalog, bindings, unit_dir, monkeypatch):
    template = catalog.get("jellyfin")
    path = catalog.materialize(template, bindings)
    original = path.read_bytes()

    def broken_fsync(fd):
        raise OSError("disk full")

    monkeypatch.setattr(os, "fsync", broken_fsync)
    changed = dict(bindings)
    changed['JELLYFIN_PORT'] = '9000'

    with pytest.raises(WriteError):
        catalog.materialize(template, changed)

    assert path.read_bytes() == original
    assert [p.name for p in unit_dir.iterdir()] == ["jellyfin.container"]


def test_interrupted_first_write_leaves_nothing(catalog, bindings, unit_dir, monkeypatch):
    def broken_replace(src, dst):
        raise OSError("interrupted")

    monkeypatch.setattr(os, "replace", broken_replace)

    with pytest.raises(WriteError):
        catalog.materialize(catalog.get("jellyfin"), bindings)

    assert list(unit_dir.iterdir()) == []


def test_ensure_data_dir(catalog, tmp_path):
    template = catalog.get("jellyfin")

    data_dir = catalog.ensure_data_dir(template, str(tmp_path / "appdata"))

    assert data_dir == tmp_path / "appdata" / "jellyfin"
    assert data_dir.is_dir()
    assert catalog.ensure_data_dir(template, None) is None


def test_ensure_data_dir_failure_is_write_error(catalog, tmp_path):
    blocker = tmp_path / "appdata"
    blocker.write_text("not a directory")

    with pytest.raises(WriteError):
        catalog.ensure_data_dir(catalog.get("jellyfin"), str(blocker))


def test_find_orphans(catalog, bindings, unit_dir):
    unit_dir.mkdir()
    (unit_dir / "oldapp.container").write_text("[Container]\n")
    (unit_dir / "media.network").write_text("[Network]\n")
    catalog.materialize(catalog.get("jellyfin"), bindings)

    assert catalog.find_orphans(catalog.discover()) == ["oldapp"]
