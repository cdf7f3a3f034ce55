"""The stream driver: a trampoline over nested component coroutines.

Architecture:
    ```
    StreamRenderer.run(root)
    ├── _stack: list[Frame]      # explicit call stack, innermost last
    ├── _providers: Mapping      # frozen registry snapshot
    └── _serializer              # HTML text + style dedup
    ```

Every iteration advances the top frame by one step with its pending resume
value and classifies what it produced:

- ``Css`` / ``StartTag`` / ``EndTag`` / ``str``: serialized (O(1) type dispatch)
- ``Context``: resolved from the registry, either by resuming immediately or
  by pushing the provider's coroutine as a new frame
- ``Element`` / generator / async generator: delegation, pushed as a frame
- ``None``: a bare cooperative ``yield``, ignored

When a frame finishes, its return value becomes the resume value of the
frame beneath it. Nesting depth is bounded by ``max_depth`` rather than the
interpreter's recursion limit.

Async Steps:
    ``run()`` is a plain generator. A step that has to wait on the event loop
    (the next item of an async generator, or a future an ``async def``
    provider is awaiting) is handed to the caller as a :class:`Suspend`;
    :meth:`StreamRenderer.stream_async` awaits it and sends the result back,
    :meth:`StreamRenderer.stream` rejects it. Frames never make progress
    concurrently: while a provider waits on I/O, every other frame is paused.

"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Generator, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from weaver._types import Css, EndTag, StartTag
from weaver.config import RenderConfig
from weaver.context import Context, Provider, ProviderKind
from weaver.exceptions import (
    ContextCycleError,
    ErrorCode,
    InvalidComponentError,
    MissingContextError,
    RenderDepthError,
    RenderRuntimeError,
    describe,
)
from weaver.render_context import RenderContext
from weaver.serializer import HtmlSerializer
from weaver.template.element import Element

logger = logging.getLogger(__name__)


class FrameKind(Enum):
    GENERATOR = "generator"
    ASYNC_GENERATOR = "async_generator"
    COROUTINE = "coroutine"


@dataclass(slots=True)
class Frame:
    """One entry of the driver's call stack.

    Attributes:
        coroutine: Generator, async generator or native coroutine
        kind: How to advance ``coroutine``
        send: Value to resume it with on its next step
        error: Cancellation to deliver into a coroutine frame on its next step
        context: Token this frame is providing a value for, if any
    """

    coroutine: Any
    kind: FrameKind
    send: Any = None
    error: BaseException | None = None
    context: Context[Any] | None = None


@dataclass(frozen=True, slots=True)
class Suspend:
    """A step that must be awaited on the event loop before driving continues."""

    awaitable: Awaitable[Any]


def frame_for(value: Any, context: Context[Any] | None = None) -> Frame | None:
    """Wrap a delegation target in a frame; None if it is not one."""
    if isinstance(value, Element):
        return Frame(iter(value), FrameKind.GENERATOR, context=context)
    if inspect.isgenerator(value):
        return Frame(value, FrameKind.GENERATOR, context=context)
    if inspect.isasyncgen(value):
        return Frame(value, FrameKind.ASYNC_GENERATOR, context=context)
    if inspect.iscoroutine(value):
        return Frame(value, FrameKind.COROUTINE, context=context)
    return None


async def _settle(pending: Any) -> None:
    """Wait for what a manually driven coroutine handed up to its event loop.

    ``None`` is a bare yield (``asyncio.sleep(0)``); anything else must be
    an asyncio future, which is awaited without consuming its result. The
    coroutine reads the result itself when resumed.
    """
    if pending is None:
        await asyncio.sleep(0)
        return
    if getattr(pending, "_asyncio_future_blocking", None) is None:
        raise RenderRuntimeError(
            f"Async provider yielded {pending!r}, which is not an asyncio awaitable",
            code=ErrorCode.UNSUPPORTED_EFFECT,
        )
    pending._asyncio_future_blocking = False
    try:
        await asyncio.wait([pending])
    except asyncio.CancelledError:
        pending.cancel()
        raise


def _discard(awaitable: Awaitable[Any]) -> None:
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()


class StreamRenderer:
    """Drives one component tree to an ordered stream of HTML text.

    One instance per render: it owns the frame stack, the style dedup set
    and a frozen snapshot of the context registry.

    Example:
        >>> renderer = StreamRenderer(registry.snapshot(), RenderConfig())
        >>> "".join(renderer.stream(html(t"<div>Hello</div>")))
        '<div>Hello</div>'
    """

    __slots__ = ("_providers", "_config", "_serializer", "_render_ctx", "_stack", "_dispatch")

    def __init__(
        self,
        providers: Mapping[Context[Any], Provider],
        config: RenderConfig,
        render_ctx: RenderContext | None = None,
    ):
        self._providers = providers
        self._config = config
        self._serializer = HtmlSerializer(autoescape=config.autoescape)
        self._render_ctx = render_ctx or RenderContext(max_depth=config.max_depth)
        self._stack: list[Frame] = []
        self._dispatch = {
            Css: self._write_css,
            StartTag: self._write_start,
            EndTag: self._write_end,
            str: self._serializer.text,
        }

    @property
    def depth(self) -> int:
        """Number of live frames."""
        return len(self._stack)

    # -- front ends ---------------------------------------------------------

    def stream(self, root: Any) -> Iterator[str]:
        """Drive ``root`` synchronously.

        Raises:
            RenderRuntimeError: If a step has to wait on the event loop
        """
        steps = self.run(root)
        try:
            for item in steps:
                if isinstance(item, Suspend):
                    _discard(item.awaitable)
                    raise RenderRuntimeError(
                        "A component or provider awaits on the event loop",
                        code=ErrorCode.ASYNC_IN_SYNC_RENDER,
                        suggestion="Use render_stream_async() instead of render_stream()",
                        context_stack=list(self._render_ctx.context_stack),
                    )
                yield item
        finally:
            steps.close()

    async def stream_async(self, root: Any) -> AsyncIterator[str]:
        """Drive ``root``, awaiting asynchronous steps on the running loop."""
        steps = self.run(root)
        send: Any = None
        error: BaseException | None = None
        try:
            while True:
                try:
                    item = steps.throw(error) if error is not None else steps.send(send)
                except StopIteration:
                    return
                send, error = None, None

                if isinstance(item, Suspend):
                    try:
                        send = await item.awaitable
                    except (Exception, asyncio.CancelledError) as exc:
                        error = exc
                    continue

                yield item
        finally:
            steps.close()

    # -- trampoline ---------------------------------------------------------

    def run(self, root: Any) -> Generator[str | Suspend, Any, None]:
        """The driver loop.

        Yields HTML text in document order, and :class:`Suspend` for steps
        that must be awaited (the awaited result is expected back via
        ``send()``, a failure via ``throw()``).
        """
        frame = frame_for(root)
        if frame is None:
            raise InvalidComponentError(root, root)

        stack = self._stack
        self._push(frame)
        try:
            while stack:
                frame = stack[-1]
                value, frame.send = frame.send, None
                error, frame.error = frame.error, None

                try:
                    if frame.kind is FrameKind.ASYNC_GENERATOR:
                        effect = yield Suspend(frame.coroutine.asend(value))
                    elif error is not None:
                        effect = frame.coroutine.throw(error)
                    else:
                        effect = frame.coroutine.send(value)
                except StopIteration as stop:
                    result = stop.value
                except StopAsyncIteration:
                    result = None
                else:
                    if frame.kind is FrameKind.COROUTINE and not isinstance(effect, Context):
                        try:
                            yield Suspend(_settle(effect))
                        except asyncio.CancelledError as exc:
                            # Delivered into the provider, as a Task would
                            frame.error = exc
                        continue
                    chunk = self._handle(frame, effect)
                    if chunk:
                        yield chunk
                    continue

                self._pop()
                if stack:
                    stack[-1].send = result
                elif isinstance(result, (str, int, float)) and not isinstance(result, bool):
                    text = self._serializer.text(str(result))
                    if text:
                        yield text
        finally:
            self._close_frames()

    def _handle(self, frame: Frame, effect: Any) -> str | None:
        if isinstance(effect, Context):
            self._resolve(frame, effect)
            return None

        handler = self._dispatch.get(type(effect))
        if handler is not None:
            return handler(effect)
        if effect is None:
            return None
        if isinstance(effect, str):
            return self._serializer.text(effect)
        if isinstance(effect, (int, float)) and not isinstance(effect, bool):
            return self._serializer.text(str(effect))

        child = frame_for(effect)
        if child is not None:
            self._push(child)
            return None

        raise RenderRuntimeError(
            f"Unsupported value yielded by {describe(frame.coroutine)}: {effect!r}",
            code=ErrorCode.UNSUPPORTED_EFFECT,
            suggestion="Yield css fragments, text, elements or context tokens",
            context_stack=list(self._render_ctx.context_stack),
        )

    def _resolve(self, frame: Frame, context: Context[Any]) -> None:
        provider = self._providers.get(context)
        if provider is None:
            raise MissingContextError(
                context, [*self._render_ctx.context_stack, _label(context)]
            )

        if provider.kind is ProviderKind.VALUE:
            frame.send = provider.source
            return

        if any(live.context is context for live in self._stack):
            raise ContextCycleError(context, list(self._render_ctx.context_stack))

        kind = FrameKind.GENERATOR if provider.kind is ProviderKind.SYNC else FrameKind.COROUTINE
        logger.debug(
            "Resolving %s with %s provider %s", _label(context), provider.kind.value, describe(provider.source)
        )
        self._push(Frame(provider.source(), kind, context=context))

    # -- stack --------------------------------------------------------------

    def _push(self, frame: Frame) -> None:
        if len(self._stack) >= self._config.max_depth:
            if frame.kind is not FrameKind.ASYNC_GENERATOR:
                frame.coroutine.close()
            raise RenderDepthError(
                self._config.max_depth, context_stack=list(self._render_ctx.context_stack)
            )
        self._stack.append(frame)
        if frame.context is not None:
            self._render_ctx.context_stack.append(_label(frame.context))

    def _pop(self) -> Frame:
        frame = self._stack.pop()
        if frame.context is not None:
            self._render_ctx.context_stack.pop()
        return frame

    def _close_frames(self) -> None:
        # Innermost first. Async generators are finalized by the event loop's
        # asyncgen hooks; aclose() cannot be awaited here.
        while self._stack:
            frame = self._pop()
            if frame.kind is not FrameKind.ASYNC_GENERATOR:
                frame.coroutine.close()

    # -- effects ------------------------------------------------------------

    def _write_css(self, fragment: Css) -> str | None:
        chunk = self._serializer.css(fragment)
        if chunk is not None:
            self._render_ctx.styles_emitted += 1
        return chunk

    def _write_start(self, marker: StartTag) -> str | None:
        if not isinstance(marker.type, str):
            return None
        return self._serializer.start_tag(marker)

    def _write_end(self, marker: EndTag) -> str | None:
        if not isinstance(marker.type, str):
            return None
        return self._serializer.end_tag(marker)


def _label(context: Context[Any]) -> str:
    return context.name or repr(context)
