import pytest

from patch_runner.errors import PlaceholderUnresolved
from patch_runner.lib.variables import VariableContext, placeholders, resolve


@pytest.fixture
def context():
    return VariableContext(
        exedir="/opt/app/Patcher",
        installdir="/opt/app/app",
        secret="c2VjcmV0",
        lockfile="/opt/app/launcher.lock",
        network_status="online",
    )


def test_every_placeholder_resolves(context):
    template = "{exedir}|{installdir}|{secret}|{lockfile}|{network-status}"
    out = resolve(template, context)
    assert out == "/opt/app/Patcher|/opt/app/app|c2VjcmV0|/opt/app/launcher.lock|online"
    assert placeholders(out) == []


def test_missing_placeholder_fails(context):
    mapping = context.as_mapping()
    del mapping["secret"]
    with pytest.raises(PlaceholderUnresolved) as exc:
        resolve("--secret={secret}", mapping)
    assert exc.value.name == "secret"


def test_undefined_placeholder_fails(context):
    with pytest.raises(PlaceholderUnresolved):
        resolve("{undefined}", context)


@pytest.mark.parametrize("template", ["{}", "{ exedir }", "{EXEDIR}"])
def test_malformed_tokens_fail(context, template):
    with pytest.raises(PlaceholderUnresolved):
        resolve(template, context)


def test_values_are_not_rescanned():
    out = resolve("{a}-{b}", {"a": "{b}", "b": "x"})
    assert out == "{b}-x"


def test_plain_text_passes_through(context):
    assert resolve("--verbose", context) == "--verbose"
