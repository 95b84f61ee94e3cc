"""Tests for template rendering."""
import pytest

from hearth.core.errors import MalformedPlaceholder, UnboundVariable
from hearth.core.renderer import PLACEHOLDER, ServiceTemplate, malformed_placeholders, placeholders, render


def make_template(text, name="jellyfin"):
    return ServiceTemplate(name=name, extension="container", text=text)


def test_render_replaces_every_occurrence():
    template = make_template("PublishPort=${JELLYFIN_PORT}:8096\nEnvironment=PORT=${JELLYFIN_PORT}\n")

    unit = render(template, {'JELLYFIN_PORT': '8096'})

    assert unit.text == "PublishPort=8096:8096\nEnvironment=PORT=8096\n"
    assert unit.filename == "jellyfin.container"
    assert unit.name == "jellyfin"


@pytest.mark.parametrize("text", [
    "",
    "no placeholders at all",
    "${A}${B}${A}",
    "Volume=${DATA}/media:/media\nImage=${IMAGE}:latest",
])
def test_complete_bindings_leave_no_placeholders(text):
    bindings = {'A': 'x', 'B': 'y', 'DATA': '/srv', 'IMAGE': 'jellyfin'}

    unit = render(make_template(text), bindings)

    assert not PLACEHOLDER.search(unit.text)


def test_unbound_variable_names_missing_key():
    template = make_template("PublishPort=${JELLYFIN_PORT}:8096\nVolume=${SERVER_MEDIA_DIR}:/media")

    with pytest.raises(UnboundVariable) as exc_info:
        render(template, {'SERVER_MEDIA_DIR': '/srv/media'})

    assert exc_info.value.name == 'JELLYFIN_PORT'
    assert exc_info.value.names == ('JELLYFIN_PORT',)
    assert exc_info.value.template == 'jellyfin'


def test_unbound_variable_lists_all_missing_keys_in_order():
    template = make_template("${B} ${A} ${B}")

    with pytest.raises(UnboundVariable) as exc_info:
        render(template, {})

    assert exc_info.value.names == ('B', 'A')


def test_empty_value_is_a_valid_binding():
    unit = render(make_template("Args=${EXTRA_ARGS}"), {'EXTRA_ARGS': ''})
    assert unit.text == "Args="


def test_substitution_is_not_recursive():
    unit = render(make_template("X=${OUTER}"), {'OUTER': '${INNER}'})
    assert unit.text == "X=${INNER}"


def test_non_placeholder_dollar_syntax_untouched():
    text = "Exec=sh -c 'echo $HOME ${lowercase-ok'"
    unit = render(make_template(text), {})
    assert unit.text == text


def test_placeholders_deduplicated_in_order():
    assert placeholders("${B}${A}${B}${C}") == ['B', 'A', 'C']


@pytest.mark.parametrize("text,token", [
    ("Environment=HOME=${home}", "${home}"),
    ("PublishPort=${PORT-8080}:80", "${PORT-8080}"),
    ("Volume=${}/data", "${}"),
])
def test_malformed_placeholder_is_a_hard_failure(text, token):
    with pytest.raises(MalformedPlaceholder) as exc_info:
        render(make_template(text), {'PORT': '8080', 'HOME': '/root'})

    assert exc_info.value.names == (token,)
    assert exc_info.value.kind == "MalformedPlaceholder"


def test_lowercase_braces_are_not_bindable():
    assert placeholders("${lower} ${UPPER}") == ['UPPER']
    assert malformed_placeholders("${lower} ${UPPER} ${lower}") == ['${lower}']
