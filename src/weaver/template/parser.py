"""The ``html`` tag: parse a template string into lazy elements.

Syntax follows the HTM dialect of tagged-template HTML:

    ```
    html(t'''
        <section class="feed {extra}">
            <{Header} title={title} />
            <ul>{[h("li", None, item) for item in items]}</ul>
            <img src={src}>
        </section>
    ''')
    ```

- Tag types may be interpolated: ``<{Component} key={value}>...</{Component}>``
  (or the short closer ``<//>``).
- An attribute whose value is a single interpolation keeps the raw object;
  mixed static and interpolated values are concatenated to text.
- ``<div ...{attrs}>`` spreads a mapping into the attributes.
- Bare attributes are ``True``.
- Void elements (``<br>``, ``<img>``, ...) need no closing tag.
- Text runs are trimmed where they touch a newline; whitespace-only runs
  containing a newline are dropped.

Parsing depends only on the static strings, so the parsed structure is
cached per strings tuple and re-filled with new values on every call.

"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from weaver._types import VOID_ELEMENTS, Fragment
from weaver.exceptions import TemplateSyntaxError
from weaver.template.element import Element, Markup, h
from weaver.tstring import check_template, interpolation_value, placeholder_source

_TRIM_NEWLINES = re.compile(r"^\s*\n\s*|\s*\n\s*$")


@dataclass(frozen=True, slots=True)
class _Slot:
    """Position of an interpolated value."""

    index: int


@dataclass(frozen=True, slots=True)
class _Spread:
    slot: _Slot


@dataclass(frozen=True, slots=True)
class _Concat:
    parts: tuple[str | _Slot, ...]


@dataclass(slots=True)
class _Node:
    type: str | _Slot | object
    props: list[tuple[str, Any] | _Spread] = field(default_factory=list)
    children: list[Any] = field(default_factory=list)


# Parser states
_TEXT = "text"
_TAG_OPEN = "tag_open"
_ATTRS = "attrs"
_ATTR_NAME = "attr_name"
_ATTR_EQ = "attr_eq"
_ATTR_QUOTED = "attr_quoted"
_ATTR_UNQUOTED = "attr_unquoted"
_SELF_CLOSE = "self_close"
_CLOSE_TAG = "close_tag"
_COMMENT = "comment"
_DECLARATION = "declaration"

# States that must not be active at the end of the template
_UNTERMINATED = {
    _TAG_OPEN: "Unterminated tag",
    _ATTRS: "Unterminated tag",
    _ATTR_NAME: "Unterminated tag",
    _ATTR_EQ: "Missing attribute value",
    _ATTR_QUOTED: "Unterminated attribute value",
    _ATTR_UNQUOTED: "Unterminated tag",
    _SELF_CLOSE: "Unterminated tag",
    _CLOSE_TAG: "Unterminated closing tag",
    _COMMENT: "Unterminated comment",
    _DECLARATION: "Unterminated declaration",
}


class _Parser:
    """Single-pass state machine over the static strings of a template."""

    def __init__(self, strings: tuple[str, ...]):
        self.strings = strings
        self.source = placeholder_source(strings)
        self.state = _TEXT
        self.root = _Node(Fragment)
        self.stack: list[_Node] = [self.root]
        self.pos = 0

        self.text: list[str] = []
        self.name = ""
        self.tag_slot: _Slot | None = None
        self.current: _Node | None = None
        self.value: list[str | _Slot] = []
        self.quote = ""
        self.tail = ""

    def parse(self) -> _Node:
        last = len(self.strings) - 1
        for i, static in enumerate(self.strings):
            for j, char in enumerate(static):
                nxt = static[j + 1] if j + 1 < len(static) else ""
                self._char(char, nxt)
                self.pos += 1
            if i < last:
                self._slot(_Slot(i))
                self.pos += len("{…}")

        if self.state != _TEXT:
            self._error(_UNTERMINATED[self.state])
        self._flush_text()
        if len(self.stack) > 1:
            self._error(f"Unclosed tag <{_type_name(self.stack[-1].type)}>")
        return self.root

    # -- characters ---------------------------------------------------------

    def _char(self, char: str, nxt: str) -> None:
        state = self.state

        if state == _TEXT:
            if char == "<":
                self._flush_text()
                self.name = ""
                self.tag_slot = None
                self.state = _TAG_OPEN
            else:
                self.text.append(char)

        elif state == _COMMENT:
            self.tail = (self.tail + char)[-3:]
            if self.tail == "-->":
                self.state = _TEXT

        elif state == _DECLARATION:
            if char == ">":
                self.stack[-1].children.append(Markup(f"<{self.name}>"))
                self.state = _TEXT
            else:
                self.name += char

        elif state == _TAG_OPEN:
            if char == "/" and not self.name and self.tag_slot is None:
                self.name = ""
                self.state = _CLOSE_TAG
            elif char.isspace():
                self._begin_element()
                self.state = _ATTRS
            elif char == ">":
                self._begin_element()
                self._open_element()
            elif char == "/":
                self._begin_element()
                self.state = _SELF_CLOSE
            else:
                self.name += char
                if self.name == "!--":
                    self.tail = ""
                    self.state = _COMMENT
                elif self.name.lower() == "!doctype":
                    self.state = _DECLARATION

        elif state == _ATTRS:
            if char.isspace():
                pass
            elif char == ">":
                self._open_element()
            elif char == "/":
                self.state = _SELF_CLOSE
            elif char in "\"'=":
                self._error(f"Unexpected {char!r} in tag")
            else:
                self.name = char
                self.state = _ATTR_NAME

        elif state == _ATTR_NAME:
            if char == "=":
                self.value = []
                self.state = _ATTR_EQ
            elif char.isspace():
                self._commit_attr(True)
                self.state = _ATTRS
            elif char == ">":
                self._commit_attr(True)
                self._open_element()
            elif char == "/":
                self._commit_attr(True)
                self.state = _SELF_CLOSE
            else:
                self.name += char

        elif state == _ATTR_EQ:
            if char in "\"'":
                self.quote = char
                self.state = _ATTR_QUOTED
            elif char.isspace():
                pass
            elif char == ">":
                self._error(f"Missing value for attribute {self.name!r}")
            else:
                self._append_value(char)
                self.state = _ATTR_UNQUOTED

        elif state == _ATTR_QUOTED:
            if char == self.quote:
                self._commit_attr(self._attr_value())
                self.state = _ATTRS
            else:
                self._append_value(char)

        elif state == _ATTR_UNQUOTED:
            if char.isspace():
                self._commit_attr(self._attr_value())
                self.state = _ATTRS
            elif char == ">":
                self._commit_attr(self._attr_value())
                self._open_element()
            elif char == "/" and nxt == ">":
                self._commit_attr(self._attr_value())
                self.state = _SELF_CLOSE
            else:
                self._append_value(char)

        elif state == _SELF_CLOSE:
            if char == ">":
                self._close_self()
            elif not char.isspace():
                self._error("Expected '>' after '/'")

        elif state == _CLOSE_TAG:
            if char == ">":
                self._close_element()
            elif not char.isspace() and char != "/":
                self.name += char

    # -- interpolations -----------------------------------------------------

    def _slot(self, slot: _Slot) -> None:
        state = self.state

        if state == _TEXT:
            self._flush_text()
            self.stack[-1].children.append(slot)
        elif state == _TAG_OPEN:
            if self.name or self.tag_slot is not None:
                self._error("Interpolation inside a tag name")
            self.tag_slot = slot
        elif state == _ATTR_NAME:
            if self.name != "...":
                self._error("Interpolation inside an attribute name")
            assert self.current is not None
            self.current.props.append(_Spread(slot))
            self.state = _ATTRS
        elif state == _ATTR_EQ:
            self.value = [slot]
            self.state = _ATTR_UNQUOTED
        elif state in (_ATTR_QUOTED, _ATTR_UNQUOTED):
            self.value.append(slot)
        elif state == _CLOSE_TAG:
            # </{Component}>: closing tags only need to balance
            pass
        elif state == _COMMENT:
            pass
        else:
            self._error("Interpolation must be an attribute value or '...' spread")

    # -- tree building ------------------------------------------------------

    def _flush_text(self) -> None:
        if not self.text:
            return
        text = _TRIM_NEWLINES.sub("", "".join(self.text))
        self.text.clear()
        if text:
            self.stack[-1].children.append(text)

    def _begin_element(self) -> None:
        if self.tag_slot is not None:
            tag_type: str | _Slot = self.tag_slot
        elif self.name:
            tag_type = self.name
        else:
            self._error("Expected a tag name after '<'")
        self.current = _Node(tag_type)
        self.stack[-1].children.append(self.current)

    def _open_element(self) -> None:
        node = self.current
        assert node is not None
        if not (isinstance(node.type, str) and node.type.lower() in VOID_ELEMENTS):
            self.stack.append(node)
        self.current = None
        self.state = _TEXT

    def _close_self(self) -> None:
        self.current = None
        self.state = _TEXT

    def _close_element(self) -> None:
        if len(self.stack) == 1:
            self._error(f"Unexpected closing tag </{self.name}>")
        node = self.stack.pop()
        if self.name and isinstance(node.type, str) and self.name != node.type:
            self._error(f"Mismatched closing tag: expected </{node.type}>, got </{self.name}>")
        self.state = _TEXT

    def _append_value(self, char: str) -> None:
        if self.value and isinstance(self.value[-1], str):
            self.value[-1] += char
        else:
            self.value.append(char)

    def _attr_value(self) -> str | _Slot | _Concat:
        parts = self.value
        self.value = []
        if not parts:
            return ""
        if len(parts) == 1:
            return parts[0]
        return _Concat(tuple(parts))

    def _commit_attr(self, value: Any) -> None:
        assert self.current is not None
        self.current.props.append((self.name, value))
        self.name = ""

    def _error(self, message: str) -> None:
        before = self.source[: self.pos]
        lineno = before.count("\n") + 1
        col = self.pos - (before.rfind("\n") + 1)
        raise TemplateSyntaxError(message, source=self.source, lineno=lineno, col_offset=col)


def _type_name(tag_type: object) -> str:
    return "{…}" if isinstance(tag_type, _Slot) else str(tag_type)


@lru_cache(maxsize=256)
def _compile(strings: tuple[str, ...]) -> _Node:
    return _Parser(strings).parse()


def _fill(node: _Node, values: list[Any]) -> Element:
    tag_type = values[node.type.index] if isinstance(node.type, _Slot) else node.type

    props: dict[str, Any] = {}
    for prop in node.props:
        if isinstance(prop, _Spread):
            spread = values[prop.slot.index]
            if not isinstance(spread, Mapping):
                raise TypeError(f"Attribute spread expects a mapping, got {type(spread).__name__}")
            props.update(spread)
        else:
            name, value = prop
            props[name] = _fill_value(value, values)

    children = tuple(_fill_child(child, values) for child in node.children)
    return h(tag_type, props, *children)


def _fill_value(value: Any, values: list[Any]) -> Any:
    if isinstance(value, _Slot):
        return values[value.index]
    if isinstance(value, _Concat):
        return "".join(
            str(values[part.index]) if isinstance(part, _Slot) else part for part in value.parts
        )
    return value


def _fill_child(child: Any, values: list[Any]) -> Any:
    if isinstance(child, _Node):
        return _fill(child, values)
    if isinstance(child, _Slot):
        return values[child.index]
    return child


def html(template: Any) -> Element:
    """Parse a template string into a lazy :class:`Element`.

    A template with a single root element returns that element; several
    roots (or bare text) are wrapped in a fragment.

    Raises:
        TypeError: If ``template`` is not a template string
        TemplateSyntaxError: If the markup is malformed

    Example:
        >>> name = "World"
        >>> html(t"<p>Hello {name}</p>")
        <Element p props={} children=2>
    """
    template = check_template(template, "html")
    root = _compile(tuple(template.strings))

    values = [interpolation_value(interpolation) for interpolation in template.interpolations]
    if len(root.children) == 1 and isinstance(root.children[0], _Node):
        return _fill(root.children[0], values)
    return Element(Fragment, {}, tuple(_fill_child(child, values) for child in root.children))
