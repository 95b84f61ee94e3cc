"""Tests for template pre-flight validation."""
from hearth.core.renderer import ServiceTemplate
from hearth.core.validator import TemplateValidator

from conftest import JELLYFIN_TEMPLATE


def make(name, text, extension="container"):
    return ServiceTemplate(name=name, extension=extension, text=text)


def test_valid_templates():
    templates = [make("jellyfin", JELLYFIN_TEMPLATE)]
    bindings = {'JELLYFIN_PORT': '8096', 'SERVER_PODMAN_CONFIG_DIR': '/srv/config'}

    report = TemplateValidator().validate(templates, bindings)

    assert report.ok
    assert report.required == ['JELLYFIN_PORT', 'SERVER_PODMAN_CONFIG_DIR']
    assert report.errors() == []


def test_missing_variables_grouped_by_name():
    templates = [
        make("sonarr", "[Unit]\n[Container]\nPublishPort=${SONARR_PORT}\nVolume=${MEDIA}\n[Service]\n[Install]\n"),
        make("radarr", "[Unit]\n[Container]\nVolume=${MEDIA}\n[Service]\n[Install]\n"),
    ]

    report = TemplateValidator().validate(templates, {})

    assert report.missing == {'SONARR_PORT': ['sonarr'], 'MEDIA': ['sonarr', 'radarr']}
    assert not report.ok


def test_missing_sections_reported():
    report = TemplateValidator().validate([make("broken", "[Container]\nImage=x\n")], {})

    assert report.structure == {'broken': ['Unit', 'Service', 'Install']}
    assert "broken: missing section(s) [Unit], [Service], [Install]" in report.errors()


def test_other_unit_types_use_their_own_sections():
    report = TemplateValidator().validate([make("media", "[Network]\nSubnet=10.89.0.0/24\n", "network")], {})
    assert report.ok


def test_malformed_placeholders_reported():
    text = "[Unit]\n[Container]\nPublishPort=${PORT:-8080}:80\n[Service]\n[Install]\n"

    report = TemplateValidator().validate([make("web", text)], {})

    assert report.malformed == {'web': ['${PORT:-8080}']}
    assert not report.ok
    assert "web: unsupported placeholder(s) ${PORT:-8080}" in report.errors()
