"""Pytest configuration and fixtures for Weaver tests."""

import sys

import pytest

from weaver import Route, create_context, terminal

# Real t-string literals are a syntax error before Python 3.14
collect_ignore = []
if sys.version_info < (3, 14):
    collect_ignore.append("test_tstring_syntax.py")


@pytest.fixture(autouse=True)
def plain_error_messages(monkeypatch):
    """Keep error messages free of ANSI codes, whatever the terminal."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def title():
    """A context token for a page title."""
    return create_context("title")


@pytest.fixture
def user():
    """A context token for the current user."""
    return create_context("user")


def render(app, contexts=None, **options) -> str:
    """Render ``app`` synchronously with the given ``{token: provider}`` map."""
    route = Route(app, **options)
    for context, provider in (contexts or {}).items():
        route.set_context(context, provider)
    return route.render()


async def render_async(app, contexts=None, **options) -> str:
    """Async counterpart of :func:`render`."""
    route = Route(app, **options)
    for context, provider in (contexts or {}).items():
        route.set_context(context, provider)
    return await route.render_async()
