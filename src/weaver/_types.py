"""Effect types produced by driven components.

A component generator may yield four kinds of values:

- :class:`Css`: a style fragment, emitted once per render (identity dedup)
- :class:`StartTag` / :class:`EndTag`: the boundaries of a literal tag
- ``str``: a text chunk, emitted verbatim
- :class:`~weaver.context.Context`: not an effect but a request to the driver

Markers and fragments are frozen, slotted dataclasses. ``Css`` compares by
identity so two fragments built from equal text stay distinct.

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True, eq=False)
class Css:
    """Immutable style fragment.

    Equality and hashing are inherited from ``object``: the dedup key is the
    fragment itself, not its text.

    """

    content: str

    def __repr__(self) -> str:
        preview = self.content.strip()
        if len(preview) > 40:
            preview = preview[:37] + "..."
        return f"Css({preview!r})"


@dataclass(frozen=True, slots=True)
class TagMarker:
    """Open or close boundary of a single tag."""

    type: Any
    props: dict[str, Any] = field(default_factory=dict)
    children: tuple[Any, ...] = ()


@dataclass(frozen=True, slots=True)
class StartTag(TagMarker):
    pass


@dataclass(frozen=True, slots=True)
class EndTag(TagMarker):
    pass


class _FragmentType:
    """Tag type of a multi-root template; expands children only."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "Fragment"


Fragment = _FragmentType()

# Elements closed by their start tag (WHATWG "void elements")
VOID_ELEMENTS: frozenset[str] = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)

# Attribute key holding the declared child list; never serialized
CHILDREN_KEY = "children"
