"""Weaver RenderContext: per-render state isolated from components.

Each render sets a :class:`RenderContext` in a ContextVar for its duration.
The driver keeps the chain of contexts being resolved there, so errors can
report where in the provider graph they happened, and frameworks can attach
request metadata that components read back with :func:`get_render_context`.

Thread Safety:
    ContextVars are thread-local by design. Concurrent renders on different
    threads or asyncio tasks each see their own RenderContext.

"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field


@dataclass
class RenderContext:
    """Per-render state.

    Attributes:
        route_name: Route name for log and error messages
        max_depth: Maximum number of live frames
        context_stack: Names of contexts currently being resolved, outermost first
        styles_emitted: Number of distinct style blocks written so far
    """

    route_name: str | None = None
    max_depth: int = 500
    context_stack: list[str] = field(default_factory=list)
    styles_emitted: int = 0

    # Framework metadata (request objects, CSRF tokens, ...)
    _meta: dict[str, object] = field(default_factory=dict)

    def get_meta(self, key: str, default: object = None) -> object:
        """Get framework-specific metadata.

        Example:
            with render_context(route_name="home") as ctx:
                ctx.set_meta("request_id", request.headers["X-Request-Id"])
                html = route.render()

            # In a component:
            request_id = get_render_context_required().get_meta("request_id")
        """
        return self._meta.get(key, default)

    def set_meta(self, key: str, value: object) -> None:
        """Set framework-specific metadata."""
        self._meta[key] = value


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "weaver_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


def get_render_context_required() -> RenderContext:
    """Get current render context, raise if not in render.

    Raises:
        RuntimeError: If not in a render context
    """
    ctx = _render_context.get()
    if ctx is None:
        raise RuntimeError("Not in a render context")
    return ctx


def _new_context(
    route_name: str | None,
    max_depth: int,
    parent_meta: dict[str, object] | None,
) -> RenderContext:
    if parent_meta is None:
        # Inherit metadata set by an enclosing render_context() block
        outer = _render_context.get()
        parent_meta = outer._meta if outer is not None else None
    return RenderContext(
        route_name=route_name,
        max_depth=max_depth,
        _meta=parent_meta.copy() if parent_meta else {},
    )


@contextmanager
def render_context(
    route_name: str | None = None,
    max_depth: int = 500,
    parent_meta: dict[str, object] | None = None,
) -> Iterator[RenderContext]:
    """Context manager for render-scoped state.

    Creates a new RenderContext and sets it as the current context for the
    duration of the with block, restoring the previous one on exit.
    Metadata of an enclosing render context is inherited when
    ``parent_meta`` is not given.

    Example:
        with render_context() as ctx:
            ctx.set_meta("user_agent", "test")
            html = route.render()   # components see user_agent
    """
    ctx = _new_context(route_name, max_depth, parent_meta)
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


@asynccontextmanager
async def async_render_context(
    route_name: str | None = None,
    max_depth: int = 500,
    parent_meta: dict[str, object] | None = None,
) -> AsyncIterator[RenderContext]:
    """Async variant of :func:`render_context` for ``async with``.

    ContextVar reset is synchronous; the async wrapper is structural only.
    """
    ctx = _new_context(route_name, max_depth, parent_meta)
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)
