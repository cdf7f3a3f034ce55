from types import SimpleNamespace

import pytest

from weaver.tstring import check_template, interpolation_value, placeholder_source


def test_check_template_accepts_structural_match() -> None:
    tmpl = SimpleNamespace(
        strings=["Hello ", "!"],
        interpolations=[SimpleNamespace(value="World")],
    )

    assert check_template(tmpl, "html") is tmpl


def test_check_template_rejects_plain_strings() -> None:
    with pytest.raises(TypeError, match="html\\(\\) expects"):
        check_template("<p>Hello</p>", "html")


def test_check_template_rejects_mismatched_lengths() -> None:
    tmpl = SimpleNamespace(strings=["a", "b"], interpolations=[])

    with pytest.raises(TypeError, match="2 strings for 0 interpolations"):
        check_template(tmpl, "css")


def test_interpolation_value_is_raw_without_conversion() -> None:
    items = [1, 2]

    assert interpolation_value(SimpleNamespace(value=items)) is items


def test_interpolation_value_applies_conversion_and_spec() -> None:
    interp = SimpleNamespace(value="x", conversion="r", format_spec=">5")

    assert interpolation_value(interp) == "  'x'"


def test_placeholder_source() -> None:
    assert placeholder_source(("<p>", "</p>")) == "<p>{…}</p>"
