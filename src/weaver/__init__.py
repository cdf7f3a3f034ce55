"""Weaver: streaming server-side HTML rendering from generator components.

Components are generator functions. They produce markup by delegating to
templates, and request the data they need by delegating to context tokens;
a Route resolves those requests and streams the document out as it goes.

Quickstart:
    >>> from weaver import Route, create_context, css, html
    >>> Title = create_context("title")
    >>> heading = css(".title { font-weight: bold; }")
    >>> def App():
    ...     title = yield from Title
    ...     yield heading
    ...     yield from html(t'<h1 class="title">{title}</h1>')
    >>> Route(App).set_context(Title, "Hello").render()
    '<style>.title { font-weight: bold; }</style><h1 class="title">Hello</h1>'

Async providers:
    >>> async def load_user():
    ...     session = await Session
    ...     return await db.fetch_user(session.user_id)
    >>> route = Route(App).set_context(User, load_user)
    >>> async for chunk in route.render_stream_async():
    ...     await send(chunk)

Architecture:
html(t"...") → Element tree (lazy) → StreamRenderer trampoline → HTML text → bytes

1. **Tree builder**: ``html``/``h`` build lazy Elements; iterating one yields
   tag markers, text, styles, and nested elements to delegate
2. **Context protocol**: ``yield from Token`` / ``await Token`` suspends the
   caller until the driver supplies the registered value
3. **Driver**: an explicit frame stack advances one coroutine step at a time,
   resolving contexts and serializing effects in document order
4. **Route**: owns the context registry and exposes sync and async byte streams

Not escaped by default: text and attribute values are written as given.
Pass ``Route(..., autoescape=True)`` to escape them.

"""

from weaver._types import VOID_ELEMENTS, Css, EndTag, Fragment, StartTag
from weaver.config import RenderConfig
from weaver.context import Context, ContextRegistry, Provider, ProviderKind, create_context
from weaver.driver import StreamRenderer
from weaver.exceptions import (
    ContextCycleError,
    ErrorCode,
    InvalidComponentError,
    MissingContextError,
    RenderDepthError,
    RenderRuntimeError,
    TemplateSyntaxError,
    WeaverError,
)
from weaver.render_context import (
    RenderContext,
    async_render_context,
    get_render_context,
    get_render_context_required,
    render_context,
)
from weaver.route import Route
from weaver.template import Element, Markup, css, h, html

__version__ = "0.1.0"

__all__ = [
    "VOID_ELEMENTS",
    "Context",
    "ContextCycleError",
    "ContextRegistry",
    "Css",
    "Element",
    "EndTag",
    "ErrorCode",
    "Fragment",
    "InvalidComponentError",
    "Markup",
    "MissingContextError",
    "Provider",
    "ProviderKind",
    "RenderConfig",
    "RenderContext",
    "RenderDepthError",
    "RenderRuntimeError",
    "Route",
    "StartTag",
    "StreamRenderer",
    "TemplateSyntaxError",
    "WeaverError",
    "__version__",
    "async_render_context",
    "create_context",
    "css",
    "get_render_context",
    "get_render_context_required",
    "h",
    "html",
    "render_context",
]
