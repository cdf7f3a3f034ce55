"""HTML serialization of effects.

Wire format:
- start tags as ``<tag key="value">``, attributes in mapping order
- ``children`` is never an attribute; ``None``/``False`` attributes are
  omitted and ``True`` renders the bare attribute name
- end tags as ``</tag>``; none for void elements without children
- ``<style>…</style>`` at the first encounter of each distinct :class:`Css`
- text verbatim

Nothing is escaped unless ``autoescape=True``. With autoescape, text and
attribute values go through :func:`html.escape`, except values that provide
``__html__`` (already markup).

"""

from __future__ import annotations

import html as _html
from typing import Any

from weaver._types import CHILDREN_KEY, Css, EndTag, StartTag


class StyleSet:
    """Identity-keyed set of style fragments already emitted in one render."""

    __slots__ = ("_seen",)

    def __init__(self) -> None:
        self._seen: set[Css] = set()

    def add(self, fragment: Css) -> bool:
        """Record ``fragment``; True if it was not seen before."""
        if fragment in self._seen:
            return False
        self._seen.add(fragment)
        return True

    def __contains__(self, fragment: object) -> bool:
        return fragment in self._seen

    def __len__(self) -> int:
        return len(self._seen)


class HtmlSerializer:
    """Turns effects into HTML text for one render.

    Holds the render's :class:`StyleSet`; never share an instance between
    renders.
    """

    __slots__ = ("autoescape", "styles")

    def __init__(self, autoescape: bool = False):
        self.autoescape = autoescape
        self.styles = StyleSet()

    def _escape(self, value: Any) -> str:
        if hasattr(value, "__html__"):
            return value.__html__()
        text = str(value)
        if self.autoescape:
            return _html.escape(text, quote=True)
        return text

    def start_tag(self, marker: StartTag) -> str:
        attrs: list[str] = []
        for key, value in marker.props.items():
            if key == CHILDREN_KEY or value is None or value is False:
                continue
            if value is True:
                attrs.append(f" {key}")
            else:
                attrs.append(f' {key}="{self._escape(value)}"')
        return f"<{marker.type}{''.join(attrs)}>"

    def end_tag(self, marker: EndTag) -> str:
        return f"</{marker.type}>"

    def text(self, value: str) -> str:
        return self._escape(value)

    def css(self, fragment: Css) -> str | None:
        """``<style>`` block on first encounter, None afterwards."""
        if not self.styles.add(fragment):
            return None
        return f"<style>{fragment.content}</style>"

