"""End-to-end tests with real PEP 750 template strings (Python 3.14+).

Collected only on interpreters that accept t-string literals; see conftest.
"""

from __future__ import annotations

import asyncio

import pytest

from weaver import Route, create_context, css, html

Title = create_context("title")
Items = create_context("items")

heading = css(".heading { font-weight: bold; }")


def Item(label):
    yield from html(t"<li>{label}</li>")


def ItemList():
    items = yield from Items
    yield from html(t"<ul>{[html(t'<{Item} label={item} />') for item in items]}</ul>")


def Page(children):
    title = yield from Title
    yield heading
    yield from html(t"""
        <main>
            <h1 class="heading">{title}</h1>
            {children}
        </main>
    """)


def App():
    yield from html(t"<{Page}><{ItemList} /></{Page}>")


class TestTemplateStrings:
    """The html and css tags with native t-strings."""

    def test_full_page(self):
        route = Route(App).set_context(Title, "Inbox").set_context(Items, ["a", "b"])
        assert route.render() == (
            "<style>.heading { font-weight: bold; }</style>"
            '<main><h1 class="heading">Inbox</h1><ul><li>a</li><li>b</li></ul></main>'
        )

    def test_attribute_interpolation(self):
        href = "/home"
        classes = "nav active"
        element = html(t'<a href={href} class="link {classes}">Home</a>')
        assert Route(element).render() == '<a href="/home" class="link nav active">Home</a>'

    def test_spread_and_conversion(self):
        attrs = {"id": "main", "hidden": True}
        count = 3
        element = html(t"<div ...{attrs}>{count!r:>3}</div>")
        assert Route(element).render() == '<div id="main" hidden>  3</div>'

    def test_css_interpolation(self):
        color = "red"
        fragment = css(t".x {{ color: {color}; }}")
        assert fragment.content == ".x { color: red; }"

    @pytest.mark.asyncio
    async def test_async_provider(self):
        async def load_title():
            await asyncio.sleep(0)
            return "Async"

        route = Route(App).set_context(Title, load_title).set_context(Items, [])
        assert await route.render_async() == (
            "<style>.heading { font-weight: bold; }</style>"
            '<main><h1 class="heading">Async</h1><ul></ul></main>'
        )
