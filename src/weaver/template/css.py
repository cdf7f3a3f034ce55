"""The ``css`` tag: build style fragments."""

from __future__ import annotations

from typing import Any

from weaver._types import Css
from weaver.tstring import check_template, interpolation_value


def css(template: Any) -> Css:
    """Build a :class:`~weaver._types.Css` fragment.

    Accepts a t-string or plain text. Falsy interpolated values are skipped.
    Every call returns a new fragment; define fragments once at module level
    to have them deduplicated across components.

    Example:
        >>> accent = "red"
        >>> css(t".title {{ color: {accent}; }}").content
        '.title { color: red; }'
    """
    if isinstance(template, str):
        return Css(template)

    template = check_template(template, "css")
    parts: list[str] = []
    for i, static in enumerate(template.strings):
        parts.append(static)
        if i < len(template.interpolations):
            value = interpolation_value(template.interpolations[i])
            if value:
                parts.append(str(value))
    return Css("".join(parts))
