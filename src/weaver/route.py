"""Weaver Route: a component tree plus the contexts it needs.

A Route is configured once, at setup time, and rendered per request:

    ```python
    route = (
        Route(App, name="home")
        .set_context(Db, database)            # plain value
        .set_context(User, load_user)         # async def provider
        .set_context(Theme, pick_theme)       # generator provider
    )

    async def endpoint(request):
        return StreamingResponse(route.render_stream_async(), media_type="text/html")
    ```

Each render takes a frozen snapshot of the registry and gets its own
driver, style dedup set and RenderContext, so one Route can serve
concurrent requests.

Output:
    ``render_stream_async()`` and ``render_stream()`` yield encoded bytes in
    document order as they are produced. Iteration is the backpressure: the
    driver only advances when the consumer asks for the next chunk. Closing
    the iterator early closes every live component. Any error aborts the
    stream; chunks already yielded stay yielded.

"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Iterable, Iterator
from contextlib import aclosing
from typing import Any

from weaver.config import RenderConfig
from weaver.context import Context, ContextRegistry
from weaver.driver import StreamRenderer
from weaver.exceptions import InvalidComponentError, describe
from weaver.render_context import async_render_context, render_context
from weaver.template.element import Element

logger = logging.getLogger(__name__)


class Route:
    """A renderable component tree and its context registry.

    Args:
        app: Zero-argument callable returning a generator, async generator
            or Element; or an Element
        name: Name used in logs and RenderContext (defaults to the app's name)
        autoescape: Escape text and attribute values
        encoding: Output encoding
        max_depth: Maximum number of live frames
        buffer_size: Coalesce output into chunks of at least this many characters

    Example:
        >>> Greeting = create_context("greeting")
        >>> def App():
        ...     text = yield from Greeting
        ...     yield from html(t"<p>{text}</p>")
        >>> Route(App).set_context(Greeting, "hello").render()
        '<p>hello</p>'
    """

    __slots__ = ("_app", "_config", "_registry", "name")

    def __init__(
        self,
        app: Any,
        *,
        name: str | None = None,
        autoescape: bool = False,
        encoding: str = "utf-8",
        max_depth: int = 500,
        buffer_size: int = 0,
    ):
        if not (isinstance(app, Element) or callable(app)):
            raise TypeError(f"Route app must be a component or an Element, got {type(app).__name__}")
        self._app = app
        self.name = name or describe(app)
        self._config = RenderConfig(
            autoescape=autoescape,
            encoding=encoding,
            max_depth=max_depth,
            buffer_size=buffer_size,
        )
        self._registry = ContextRegistry()

    @property
    def config(self) -> RenderConfig:
        return self._config

    @property
    def registry(self) -> ContextRegistry:
        return self._registry

    def set_context(self, context: Context[Any], provider: Any) -> Route:
        """Register ``provider`` for ``context`` and return the route.

        ``provider`` is a plain value, a generator function, or an
        ``async def`` function (see :class:`~weaver.context.Provider`).
        """
        self._registry.set(context, provider)
        return self

    def _root(self) -> Any:
        app = self._app
        if isinstance(app, Element):
            return app
        root = app()
        if isinstance(root, Element) or inspect.isgenerator(root) or inspect.isasyncgen(root):
            return root
        if inspect.iscoroutine(root):
            root.close()
        raise InvalidComponentError(app, root)

    # -- sync ---------------------------------------------------------------

    def render_stream(self) -> Iterator[bytes]:
        """Render as a stream of encoded chunks.

        Raises:
            RenderRuntimeError: If a provider or component needs the event
                loop; use :meth:`render_stream_async` for those.
        """
        config = self._config
        with render_context(route_name=self.name, max_depth=config.max_depth) as render_ctx:
            renderer = StreamRenderer(self._registry.snapshot(), config, render_ctx)
            logger.debug("Rendering route %s", self.name)
            try:
                yield from self._encode(renderer.stream(self._root()))
            except Exception as e:
                logger.debug("Render of route %s aborted: %s", self.name, type(e).__name__)
                raise
            logger.debug(
                "Rendered route %s (%d style blocks)", self.name, render_ctx.styles_emitted
            )

    def render(self) -> str:
        """Render the whole document to a string."""
        return b"".join(self.render_stream()).decode(self._config.encoding)

    def _encode(self, chunks: Iterable[str]) -> Iterator[bytes]:
        encoding = self._config.encoding
        threshold = self._config.buffer_size
        pending: list[str] = []
        size = 0
        for chunk in chunks:
            if not threshold:
                yield chunk.encode(encoding)
                continue
            pending.append(chunk)
            size += len(chunk)
            if size >= threshold:
                yield "".join(pending).encode(encoding)
                pending.clear()
                size = 0
        if pending:
            yield "".join(pending).encode(encoding)

    # -- async --------------------------------------------------------------

    async def render_stream_async(self) -> AsyncIterator[bytes]:
        """Render as an async stream of encoded chunks.

        Async providers and async generator components are awaited on the
        running event loop, one step at a time, in document order.

        Example:
            >>> async for chunk in route.render_stream_async():
            ...     await send(chunk)
        """
        config = self._config
        async with async_render_context(
            route_name=self.name, max_depth=config.max_depth
        ) as render_ctx:
            renderer = StreamRenderer(self._registry.snapshot(), config, render_ctx)
            logger.debug("Rendering route %s (async)", self.name)
            try:
                stream = self._encode_async(renderer.stream_async(self._root()))
                async with aclosing(stream):
                    async for chunk in stream:
                        yield chunk
            except Exception as e:
                logger.debug("Render of route %s aborted: %s", self.name, type(e).__name__)
                raise
            logger.debug(
                "Rendered route %s (%d style blocks)", self.name, render_ctx.styles_emitted
            )

    async def render_async(self) -> str:
        """Render the whole document to a string on the running event loop."""
        chunks = [chunk async for chunk in self.render_stream_async()]
        return b"".join(chunks).decode(self._config.encoding)

    async def _encode_async(self, chunks: AsyncGenerator[str, None]) -> AsyncIterator[bytes]:
        encoding = self._config.encoding
        threshold = self._config.buffer_size
        pending: list[str] = []
        size = 0
        async with aclosing(chunks):
            async for chunk in chunks:
                if not threshold:
                    yield chunk.encode(encoding)
                    continue
                pending.append(chunk)
                size += len(chunk)
                if size >= threshold:
                    yield "".join(pending).encode(encoding)
                    pending.clear()
                    size = 0
        if pending:
            yield "".join(pending).encode(encoding)

    def __repr__(self) -> str:
        return f"<Route {self.name!r} contexts={len(self._registry)}>"
