"""Lazy template elements.

An :class:`Element` is the tree builder's node: a tag type, its attributes
and its declared children. Nothing happens when it is built; iterating it
produces the effect sequence the driver serializes:

    ```
    h("ul", None, [h("li", None, i) for i in (1, 2)])
    → StartTag(ul), <Element li>, <Element li>, EndTag(ul)
    ```

Nested elements, generators and component results are not expanded in
place. They are yielded to the driver, which pushes them on its own frame
stack, so template depth never turns into Python call depth.

"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Generator, Iterator
from functools import lru_cache
from typing import Any

from weaver._types import CHILDREN_KEY, VOID_ELEMENTS, Css, EndTag, Fragment, StartTag
from weaver.exceptions import ErrorCode, InvalidComponentError, RenderRuntimeError


class Markup(str):
    """Text that is already HTML and must not be escaped.

    Objects with an ``__html__`` method are turned into Markup when used as
    children, so autoescaping leaves them alone.
    """

    __slots__ = ()

    def __html__(self) -> str:
        return self


class Element:
    """One node of a template: literal tag, fragment or component reference.

    Attributes:
        type: Tag name, :data:`~weaver._types.Fragment`, or a component callable
        props: Attribute mapping in declaration order
        children: Declared children, not yet flattened
    """

    __slots__ = ("type", "props", "children")

    def __init__(self, type: Any, props: dict[str, Any], children: tuple[Any, ...]):
        self.type = type
        self.props = props
        self.children = children

    def __iter__(self) -> Generator[Any, Any, None]:
        type_ = self.type

        if type_ is not Fragment and callable(type_):
            yield _invoke_component(type_, self.props, self.children)
            return

        is_tag = type_ is not Fragment
        if is_tag:
            yield StartTag(type_, self.props, self.children)

        for child in _flatten(self.children):
            effect = _child_effect(child)
            if effect is not None:
                yield effect

        if is_tag and (self.children or type_.lower() not in VOID_ELEMENTS):
            yield EndTag(type_, self.props, self.children)

    def __repr__(self) -> str:
        type_ = self.type
        name = type_ if isinstance(type_, str) else getattr(type_, "__qualname__", repr(type_))
        return f"<Element {name} props={self.props!r} children={len(self.children)}>"


def h(type: Any, props: dict[str, Any] | None = None, *children: Any) -> Element:
    """Build an :class:`Element`.

    Args:
        type: Tag name, :data:`~weaver._types.Fragment`, or a component callable
        props: Attributes (or component keyword arguments)
        *children: Child values; lists nest to any depth

    Example:
        >>> h("a", {"href": "/"}, "Home")
        <Element a props={'href': '/'} children=1>
    """
    if not (isinstance(type, str) or type is Fragment or callable(type)):
        raise TypeError(f"Element type must be a tag name or a callable, got {type!r}")
    return Element(type, dict(props) if props else {}, children)


def _flatten(children: tuple[Any, ...]) -> Iterator[Any]:
    """Yield children depth-first, expanding lists and tuples at any depth."""
    stack: list[Iterator[Any]] = [iter(children)]
    while stack:
        for child in stack[-1]:
            if isinstance(child, (list, tuple)):
                stack.append(iter(child))
                break
            yield child
        else:
            stack.pop()


def _child_effect(child: Any) -> Any:
    """Map one flattened child to the value yielded to the driver.

    Returns None for children that render nothing.
    """
    if isinstance(child, str):
        return child or None
    if child is None or isinstance(child, bool):
        return None
    if isinstance(child, (int, float)):
        return str(child)
    if isinstance(child, (Element, Css)) or inspect.isgenerator(child) or inspect.isasyncgen(child):
        return child
    if hasattr(child, "__html__"):
        return Markup(child.__html__()) or None
    raise RenderRuntimeError(
        f"Cannot render child of type {type(child).__name__}: {child!r}",
        code=ErrorCode.UNSUPPORTED_EFFECT,
        suggestion="Children must be text, numbers, elements, generators or lists of them",
    )


def _invoke_component(component: Callable[..., Any], props: dict[str, Any], children: tuple[Any, ...]) -> Any:
    kwargs = dict(props)
    kwargs[CHILDREN_KEY] = list(children)
    accepted = _accepted_props(component)
    if accepted is not None:
        # Undeclared attributes (and children) are dropped
        kwargs = {name: value for name, value in kwargs.items() if name in accepted}

    result = component(**kwargs)
    if inspect.isgenerator(result) or inspect.isasyncgen(result):
        return result

    if inspect.iscoroutine(result):
        result.close()
    raise InvalidComponentError(component, result)


def _accepted_props(component: Callable[..., Any]) -> frozenset[str] | None:
    """Keyword names ``component`` declares, or None if it takes ``**kwargs``."""
    try:
        return _accepted_props_cached(component)
    except TypeError:
        # Unhashable callable
        return _inspect_props(component)


def _inspect_props(component: Callable[..., Any]) -> frozenset[str] | None:
    try:
        params = inspect.signature(component).parameters.values()
    except (TypeError, ValueError):
        return None
    names = set()
    for param in params:
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY):
            names.add(param.name)
    return frozenset(names)


_accepted_props_cached = lru_cache(maxsize=512)(_inspect_props)
