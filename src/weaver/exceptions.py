"""Exceptions for the Weaver rendering engine.

Exception Hierarchy:
WeaverError (base)
├── TemplateSyntaxError        # html`` template could not be parsed
├── MissingContextError        # Context token with no registry entry
├── ContextCycleError          # Provider (transitively) requests its own token
├── InvalidComponentError      # Component callable did not return a generator
└── RenderRuntimeError         # Any other driver-level failure
    └── RenderDepthError       # Frame stack exceeded max_depth

All render errors are fatal: the driver performs no recovery and no retries.
Bytes already handed to the consumer are not retracted, so a failing render
produces a truncated document followed by the exception.

Errors raised by user code inside components or providers are propagated
unchanged; only failures of the engine's own contracts use these classes.

Example:
    ```
    W-CTX-001: Context 'user' not provided
      Context stack:
        • session
        • user
      Hint: Register a provider with route.set_context(user, ...)
    ```

"""

from __future__ import annotations

from enum import Enum
from typing import Any

from weaver import terminal


class ErrorCode(Enum):
    """Searchable error codes for Weaver errors.

    Format: W-{CATEGORY}-{NUMBER}
    Categories: CTX (context), CMP (component), RUN (runtime), TPL (template)
    """

    # Context errors (W-CTX-xxx)
    MISSING_CONTEXT = "W-CTX-001"
    CONTEXT_CYCLE = "W-CTX-002"

    # Component errors (W-CMP-xxx)
    INVALID_COMPONENT = "W-CMP-001"

    # Runtime errors (W-RUN-xxx)
    RUNTIME_ERROR = "W-RUN-001"
    DEPTH_EXCEEDED = "W-RUN-002"
    ASYNC_IN_SYNC_RENDER = "W-RUN-003"
    UNSUPPORTED_EFFECT = "W-RUN-004"

    # Template errors (W-TPL-xxx)
    SYNTAX_ERROR = "W-TPL-001"

    @property
    def category(self) -> str:
        """Error category (e.g., 'context', 'component', 'runtime', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "CTX": "context",
            "CMP": "component",
            "RUN": "runtime",
            "TPL": "template",
        }.get(prefix, "unknown")


def format_context_stack(stack: list[str] | None) -> str:
    """Format the chain of contexts being resolved when an error occurred.

    Example:
        >>> print(format_context_stack(["session", "user"]))
        Context stack:
          • session
          • user
    """
    if not stack:
        return ""

    lines = [terminal.dim_text("Context stack:")]
    for name in stack:
        lines.append(f"  • {terminal.location(name)}")
    return "\n".join(lines)


def describe(obj: Any) -> str:
    """Short human-readable name for a component, provider or token."""
    name = getattr(obj, "__qualname__", None) or getattr(obj, "name", None)
    if name:
        return str(name)
    return type(obj).__name__


class WeaverError(Exception):
    """Base exception for all Weaver errors.

    Attributes:
        code: Optional ErrorCode for searchable error identification.
    """

    code: ErrorCode | None = None

    def format_compact(self) -> str:
        """Format error as a one-screen terminal diagnostic."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = terminal.format_error_header(self.code.value, header)
        return header


class TemplateSyntaxError(WeaverError):
    """An ``html`` template could not be parsed.

    When ``source`` and ``lineno`` are given, the message includes the
    offending line with a caret under ``col_offset``. ``source`` is the
    template's static text with interpolations shown as ``{…}``.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        source: str | None = None,
        lineno: int | None = None,
        col_offset: int | None = None,
    ):
        self.message = message
        self.source = source
        self.lineno = lineno
        self.col_offset = col_offset
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        location = "<html>"
        if self.lineno:
            location += f":{self.lineno}"
            if self.col_offset is not None:
                location += f":{self.col_offset}"

        header = f"Syntax Error: {self.message}\n  --> {location}"

        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                snippet = [terminal.dim_text("   |")]
                snippet.append(
                    terminal.format_source_line(self.lineno, lines[self.lineno - 1], is_error=True)
                )
                if self.col_offset is not None:
                    snippet.append(f"{terminal.dim_text('   |')} {' ' * (self.col_offset + 1)}^")
                return header + "\n" + "\n".join(snippet)

        return header


class MissingContextError(WeaverError):
    """A component requested a context token that has no provider.

    Fatal for the whole render.
    """

    code: ErrorCode | None = ErrorCode.MISSING_CONTEXT

    def __init__(self, context: Any, context_stack: list[str] | None = None):
        self.context = context
        self.context_stack = context_stack or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        name = getattr(self.context, "name", None)
        if name:
            msg = f"Context {name!r} not provided"
        else:
            msg = "Context not provided"

        if len(self.context_stack) > 1:
            msg += "\n" + format_context_stack(self.context_stack)

        target = name or "context"
        msg += f"\n  {terminal.hint('Hint:')} Register a provider with route.set_context({target}, ...)"
        return msg


class ContextCycleError(WeaverError):
    """A provider requested, directly or transitively, the token it provides."""

    code: ErrorCode | None = ErrorCode.CONTEXT_CYCLE

    def __init__(self, context: Any, context_stack: list[str]):
        self.context = context
        self.context_stack = context_stack
        chain = " → ".join([*context_stack, describe(context)])
        super().__init__(f"Circular context dependency: {chain}")


class InvalidComponentError(WeaverError):
    """A tag type was callable but did not produce a generator.

    Raised lazily, when the component is expanded during driving.
    """

    code: ErrorCode | None = ErrorCode.INVALID_COMPONENT

    def __init__(self, component: Any, result: Any = None):
        self.component = component
        self.result = result
        msg = f"Components must be generator functions: {describe(component)!r}"
        if result is not None:
            msg += f" returned {type(result).__name__}"
        super().__init__(msg)


class RenderRuntimeError(WeaverError):
    """Driver-level failure that is not one of the more specific errors.

    Attributes:
        message: Error description
        suggestion: Actionable fix suggestion
        context_stack: Contexts being resolved when the error occurred
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        suggestion: str | None = None,
        context_stack: list[str] | None = None,
    ):
        if code is not None:
            self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context_stack = context_stack or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]
        if self.context_stack:
            parts.append(format_context_stack(self.context_stack))
        if self.suggestion:
            parts.append(f"  {terminal.hint('Suggestion:')} {self.suggestion}")
        return "\n".join(parts)


class RenderDepthError(RenderRuntimeError):
    """The frame stack grew past ``max_depth``.

    Usually a component that renders itself without a base case.
    """

    code: ErrorCode | None = ErrorCode.DEPTH_EXCEEDED

    def __init__(self, max_depth: int, **kwargs: Any):
        self.max_depth = max_depth
        super().__init__(
            f"Maximum render depth exceeded ({max_depth})",
            suggestion="Check for components that render themselves unconditionally",
            **kwargs,
        )
