"""Context tokens, providers and the context registry.

A :class:`Context` is an opaque, identity-compared token standing for a
dependency a component needs but does not know how to produce. Components
request its value by delegating to it::

    User = create_context("user")

    def Greeting():
        user = yield from User          # generator components
        yield from html(t"<p>Hi {user.name}</p>")

    async def load_user():
        session = await Session         # async providers
        return await db.fetch_user(session.user_id)

The driver intercepts the yielded token, looks it up in the route's
:class:`ContextRegistry` and resumes the requester with the provider's value.

"""

from __future__ import annotations

import inspect
from collections.abc import Generator, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Context(Generic[T]):
    """Identity-compared handle for an externally supplied value of type ``T``.

    Iterating (``yield from``) or awaiting (``await``) a token suspends the
    caller with the token itself as the produced value; the driver sends back
    the resolved value, which becomes the result of the expression.
    """

    __slots__ = ("name",)

    def __init__(self, name: str | None = None):
        self.name = name

    def __iter__(self) -> Generator[Context[T], Any, T]:
        value = yield self
        return value

    __await__ = __iter__

    def __repr__(self) -> str:
        if self.name:
            return f"<Context {self.name!r}>"
        return f"<Context at {id(self):#x}>"


def create_context(name: str | None = None) -> Context[Any]:
    """Create a fresh context token.

    ``name`` only appears in reprs and error messages; two tokens with the
    same name are still distinct.
    """
    return Context(name)


class ProviderKind(Enum):
    """How a registered provider produces its value."""

    VALUE = "value"
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True, slots=True)
class Provider:
    """A registry entry: the provider object and how to resolve it."""

    kind: ProviderKind
    source: Any

    @classmethod
    def classify(cls, source: Any) -> Provider:
        """Classify ``source`` by what calling it returns.

        Generator functions are synchronous factories, ``async def``
        functions asynchronous ones. Any other object, callables included,
        is the value itself.

        Raises:
            TypeError: For async generator functions, which cannot return
                a value.
        """
        if inspect.isgeneratorfunction(source):
            return cls(ProviderKind.SYNC, source)
        if inspect.iscoroutinefunction(source):
            return cls(ProviderKind.ASYNC, source)
        if inspect.isasyncgenfunction(source):
            raise TypeError(
                f"Async generator {source.__qualname__!r} cannot be a context provider "
                f"because it cannot return a value; use an 'async def' function instead"
            )
        return cls(ProviderKind.VALUE, source)


class ContextRegistry:
    """Mapping from context token to :class:`Provider`.

    Supports:
        - registry.set(token, provider)
        - registry[token] = provider
        - registry.get(token)
        - token in registry

    All mutations are copy-on-write, so a :meth:`snapshot` taken when a
    render starts never observes later registrations.
    """

    __slots__ = ("_providers",)

    def __init__(self, providers: Mapping[Context[Any], Any] | None = None):
        self._providers: dict[Context[Any], Provider] = {}
        if providers:
            self.update(providers)

    def set(self, context: Context[Any], provider: Any) -> None:
        if not isinstance(context, Context):
            raise TypeError(f"Expected a Context token, got {type(context).__name__}")
        new = self._providers.copy()
        new[context] = Provider.classify(provider)
        self._providers = new

    __setitem__ = set

    def update(self, mapping: Mapping[Context[Any], Any]) -> None:
        """Batch registration."""
        for context, provider in mapping.items():
            self.set(context, provider)

    def __getitem__(self, context: Context[Any]) -> Provider:
        return self._providers[context]

    def get(self, context: object, default: Provider | None = None) -> Provider | None:
        return self._providers.get(context, default)  # type: ignore[arg-type]

    def __contains__(self, context: object) -> bool:
        return context in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[Context[Any]]:
        return iter(self._providers)

    def snapshot(self) -> Mapping[Context[Any], Provider]:
        """Read-only view of the current entries.

        The underlying dict is never mutated in place, so the view is frozen.
        """
        return MappingProxyType(self._providers)
