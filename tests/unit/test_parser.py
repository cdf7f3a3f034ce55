"""Tests for the html template parser."""

from __future__ import annotations

import pytest

from weaver import Element, ErrorCode, Fragment, Markup, TemplateSyntaxError, html
from weaver.template import parser

from ..conftest import render
from ..templates import t, text


def Card(title, children):
    yield from html(t("<div class=card><h2>", title, "</h2>", children, "</div>"))


class TestElements:
    """Tag structure and children."""

    def test_single_root_is_returned_directly(self):
        element = html(text("<div>Hello</div>"))
        assert isinstance(element, Element)
        assert element.type == "div"
        assert element.props == {}
        assert element.children == ("Hello",)

    def test_multiple_roots_become_fragment(self):
        element = html(text("<p>a</p><p>b</p>"))
        assert element.type is Fragment
        assert [child.type for child in element.children] == ["p", "p"]

    def test_text_only_template_is_fragment(self):
        element = html(text("just text"))
        assert element.type is Fragment
        assert element.children == ("just text",)

    def test_empty_template(self):
        element = html(text(""))
        assert element.type is Fragment
        assert element.children == ()

    def test_nested_elements(self):
        element = html(text("<ul><li>1</li><li>2</li></ul>"))
        assert [child.type for child in element.children] == ["li", "li"]
        assert element.children[0].children == ("1",)

    def test_interpolated_child_keeps_raw_value(self):
        items = ["a", "b"]
        element = html(t("<p>", items, "</p>"))
        assert element.children == (items,)

    def test_text_around_interpolation(self):
        element = html(t("<p>Hello ", "World", "!</p>"))
        assert element.children == ("Hello ", "World", "!")

    def test_void_element_needs_no_closing_tag(self):
        element = html(text("<div><br><img src=a.png>text</div>"))
        br, img, tail = element.children
        assert br.type == "br"
        assert img.props == {"src": "a.png"}
        assert tail == "text"

    def test_self_closing_tag(self):
        element = html(text("<div><span /></div>"))
        assert element.children[0].type == "span"
        assert element.children[0].children == ()

    def test_comments_are_dropped(self):
        element = html(text("<div><!-- hidden <b> -->shown</div>"))
        assert element.children == ("shown",)

    def test_doctype_is_kept_as_markup(self):
        element = html(text("<!DOCTYPE html><html></html>"))
        assert element.type is Fragment
        doctype = element.children[0]
        assert isinstance(doctype, Markup)
        assert doctype == "<!DOCTYPE html>"

    def test_uppercase_void_element_renders_without_end_tag(self):
        assert render(html(text('<P><IMG src="x"></P>'))) == '<P><IMG src="x"></P>'


class TestWhitespace:
    """Newline trimming of text runs."""

    def test_indentation_between_tags_is_dropped(self):
        element = html(text("<ul>\n    <li>a</li>\n    <li>b</li>\n</ul>"))
        assert [child.type for child in element.children] == ["li", "li"]

    def test_surrounding_newlines_do_not_create_fragment(self):
        element = html(text("\n  <div>x</div>\n"))
        assert element.type == "div"

    def test_inline_spaces_are_kept(self):
        element = html(text("<p>a <b>b</b> c</p>"))
        assert element.children[0] == "a "
        assert element.children[2] == " c"

    def test_text_touching_newline_is_trimmed(self):
        element = html(text("<p>\n    Hello\n</p>"))
        assert element.children == ("Hello",)


class TestAttributes:
    """Attribute values, spreads and booleans."""

    def test_quoted_values(self):
        element = html(text("<a href=\"/home\" title='Home'>x</a>"))
        assert element.props == {"href": "/home", "title": "Home"}

    def test_unquoted_value(self):
        element = html(text("<a href=/home>x</a>"))
        assert element.props == {"href": "/home"}

    def test_bare_attribute_is_true(self):
        element = html(text("<input disabled>"))
        assert element.props == {"disabled": True}

    def test_single_interpolation_keeps_raw_object(self):
        data = {"k": 1}
        element = html(t("<div data=", data, "></div>"))
        assert element.props["data"] is data

    def test_quoted_single_interpolation_keeps_raw_object(self):
        element = html(t('<div tabindex="', 3, '"></div>'))
        assert element.props["tabindex"] == 3

    def test_mixed_value_is_concatenated(self):
        element = html(t('<div class="card ', "wide", '">x</div>'))
        assert element.props["class"] == "card wide"

    def test_spread(self):
        element = html(t("<div ...", {"id": "main", "role": "note"}, ' class="x"></div>'))
        assert element.props == {"id": "main", "role": "note", "class": "x"}

    def test_spread_requires_mapping(self):
        with pytest.raises(TypeError, match="spread expects a mapping"):
            html(t("<div ...", ["id"], "></div>"))

    def test_attribute_order_is_preserved(self):
        element = html(text('<p z="1" a="2" m="3"></p>'))
        assert list(element.props) == ["z", "a", "m"]

    def test_unquoted_interpolation_before_self_close(self):
        element = html(t("<img src=", "a.png", "/>"))
        assert element.props == {"src": "a.png"}


class TestComponents:
    """Interpolated tag types."""

    def test_component_tag_with_props(self):
        element = html(t("<", Card, " title=", "Hi", " />"))
        assert element.type is Card
        assert element.props == {"title": "Hi"}

    def test_short_closing_tag(self):
        element = html(t("<", Card, " title=x>body<//>"))
        assert element.type is Card
        assert element.children == ("body",)

    def test_interpolated_closing_tag(self):
        element = html(t("<", Card, " title=x>body</", Card, ">"))
        assert element.children == ("body",)

    def test_component_renders_children(self):
        page = html(t("<", Card, " title=Hello><p>content</p><//>"))
        assert render(page) == '<div class="card"><h2>Hello</h2><p>content</p></div>'

    def test_html_attributes_not_declared_by_component_are_dropped(self):
        page = html(t("<", Card, ' title=Hi class="c" />'))
        assert render(page) == '<div class="card"><h2>Hi</h2></div>'


class TestSyntaxErrors:
    """Malformed templates raise TemplateSyntaxError with a location."""

    def test_unclosed_tag(self):
        with pytest.raises(TemplateSyntaxError, match=r"Unclosed tag <div>"):
            html(text("<div><p>hi</p>"))

    def test_unexpected_closing_tag(self):
        with pytest.raises(TemplateSyntaxError, match="Unexpected closing tag"):
            html(text("</div>"))

    def test_mismatched_closing_tag(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            html(text("<div>\n<span>\n</div>"))
        exc = exc_info.value
        assert "expected </span>, got </div>" in exc.message
        assert exc.lineno == 3
        assert exc.col_offset == 5
        assert exc.code is ErrorCode.SYNTAX_ERROR

    def test_message_includes_snippet(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            html(text("<div>\n<span>\n</div>"))
        message = str(exc_info.value)
        assert "--> <html>:3:5" in message
        assert "</div>" in message
        assert "^" in message

    def test_unterminated_tag(self):
        with pytest.raises(TemplateSyntaxError, match="Unterminated tag"):
            html(text("<div"))

    def test_unterminated_attribute_value(self):
        with pytest.raises(TemplateSyntaxError, match="Unterminated attribute value"):
            html(text('<div class="x>'))

    def test_missing_attribute_value(self):
        with pytest.raises(TemplateSyntaxError, match="Missing value for attribute 'class'"):
            html(text("<div class=></div>"))

    def test_missing_tag_name(self):
        with pytest.raises(TemplateSyntaxError, match="Expected a tag name"):
            html(text("<p>a < b</p>"))

    def test_interpolation_inside_tag_name(self):
        with pytest.raises(TemplateSyntaxError, match="Interpolation inside a tag name"):
            html(t("<di", "x", "v></div>"))

    def test_garbage_after_slash(self):
        with pytest.raises(TemplateSyntaxError, match="Expected '>' after '/'"):
            html(text("<br / x>"))

    def test_interpolated_source_shown_as_placeholder(self):
        with pytest.raises(TemplateSyntaxError) as exc_info:
            html(t("<div>", "value", "<p>"))
        assert exc_info.value.source == "<div>{…}<p>"


class TestInputs:
    """Template argument validation and caching."""

    def test_plain_string_rejected(self):
        with pytest.raises(TypeError, match="html\\(\\) expects"):
            html("<div></div>")

    def test_parse_is_cached_per_static_strings(self):
        parser._compile.cache_clear()
        first = html(t("<p>", "a", "</p>"))
        second = html(t("<p>", "b", "</p>"))
        info = parser._compile.cache_info()
        assert info.misses == 1
        assert info.hits == 1
        assert first.children == ("a",)
        assert second.children == ("b",)

    def test_invalid_interpolated_tag_type(self):
        with pytest.raises(TypeError, match="Element type"):
            html(t("<", 42, " />"))
