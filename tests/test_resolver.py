"""Tests for argument and element resolution."""

import types

import pytest

from mts.core.errors import ResolutionError
from mts.core.script.resolver import ArgumentResolver, freeze, is_numeric
from mts.core.script.tokenizer import Token, tokenize


def test_dotted_value_lookup(resolver):
    assert resolver.resolve_arg("a.b.c") == "5"
    assert resolver.resolve_arg("user.name") == "alice"


def test_missing_value_path(resolver):
    with pytest.raises(ResolutionError) as exc_info:
        resolver.resolve_arg("a.x.c")

    assert exc_info.value.path == "a.x.c"
    assert "a.x" in str(exc_info.value)


def test_numeric_literal_passthrough(resolver):
    value = resolver.resolve_arg("42")
    assert value == "42"
    assert isinstance(value, str)
    assert resolver.resolve_arg("-3.5e2") == "-3.5e2"


def test_quoted_token_is_literal(resolver):
    token = tokenize('x "user.name"')[1]
    assert resolver.resolve_arg(token) == "user.name"


def test_quote_delimited_text_is_literal(resolver):
    assert resolver.resolve_arg("'hello'") == "hello"
    assert resolver.resolve_arg('"a b"') == "a b"


def test_quoted_number_stays_text(resolver):
    assert resolver.resolve_arg(Token("7", quoted=True)) == "7"


@pytest.mark.parametrize("text", ["1", "+2", "-0.5", ".5", "3.", "1e10", "2.5E-3"])
def test_is_numeric_accepts(text):
    assert is_numeric(text)


@pytest.mark.parametrize("text", ["", "abc", "0x10", "inf", "nan", "1_000", " 1", "1.2.3", "e5"])
def test_is_numeric_rejects(text):
    assert not is_numeric(text)


def test_command_args_have_receiver_slot(resolver):
    args = resolver.resolve_command_args(tokenize('user.name 3 "x y"'))
    assert args == [None, "alice", "3", "x y"]


def test_resolve_element(resolver):
    assert resolver.resolve_element("login.button") == "//*[@name='login']"


def test_resolve_element_missing(resolver):
    with pytest.raises(ResolutionError):
        resolver.resolve_element("login.nothing")


def test_resolve_element_requires_string(resolver):
    with pytest.raises(ResolutionError) as exc_info:
        resolver.resolve_element("login")

    assert "expected a locator string" in str(exc_info.value)


def test_list_index_segments():
    resolver = ArgumentResolver({"items": [{"name": "first"}, {"name": "second"}]})
    assert resolver.resolve_arg("items.1.name") == "second"

    with pytest.raises(ResolutionError):
        resolver.resolve_arg("items.5.name")


def test_lookup_dictionaries_are_read_only(values):
    resolver = ArgumentResolver(values)

    with pytest.raises(TypeError):
        resolver.values["user"]["name"] = "mallory"

    values["user"]["name"] = "bob"
    assert resolver.resolve_arg("user.name") == "alice"


def test_freeze_converts_lists():
    frozen = freeze({"a": [1, {"b": 2}]})
    assert frozen["a"][1]["b"] == 2
    assert isinstance(frozen["a"], tuple)


@pytest.mark.parametrize("path", ["user.name.upper", "a.b.c.__class__", "user.name.0"])
def test_path_stops_at_leaf(resolver, path):
    with pytest.raises(ResolutionError) as exc_info:
        resolver.resolve_arg(path)

    assert exc_info.value.path == path


def test_module_attributes():
    module = types.ModuleType("elements")
    module.home = {"title": "home-title"}
    module._private = {"x": "y"}
    resolver = ArgumentResolver({"mod": module})

    assert resolver.resolve_arg("mod.home.title") == "home-title"
    with pytest.raises(ResolutionError):
        resolver.resolve_arg("mod._private.x")
