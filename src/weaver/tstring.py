"""Template string support (PEP 750).

``html`` and ``css`` accept Python 3.14+ t-strings. On older interpreters,
or in tests, any object that structurally matches :class:`TemplateProtocol`
works: a ``strings`` sequence and an ``interpolations`` sequence whose items
expose ``value`` (and optionally ``conversion`` and ``format_spec``).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TemplateProtocol(Protocol):
    strings: tuple[str, ...]
    interpolations: tuple[Any, ...]


_CONVERTERS = {"r": repr, "s": str, "a": ascii}


def check_template(template: object, tag: str) -> TemplateProtocol:
    """Return ``template`` if it matches the protocol, else raise TypeError."""
    if isinstance(template, str) or not isinstance(template, TemplateProtocol):
        raise TypeError(
            f"{tag}() expects a string.templatelib.Template or compatible object, "
            f"got {type(template).__name__}"
        )
    if len(template.strings) != len(template.interpolations) + 1:
        raise TypeError(
            f"{tag}() template has {len(template.strings)} strings for "
            f"{len(template.interpolations)} interpolations"
        )
    return template


def interpolation_value(interpolation: Any) -> Any:
    """Value of an interpolation after ``!r``/``!s``/``!a`` and ``:spec``.

    Without a conversion or format spec the raw object is returned, so
    components, lists and nested templates pass through untouched.
    """
    value = interpolation.value
    conversion = getattr(interpolation, "conversion", None)
    format_spec = getattr(interpolation, "format_spec", "")

    if conversion:
        value = _CONVERTERS[conversion](value)
    if format_spec:
        value = format(value, format_spec)
    return value


def placeholder_source(strings: Sequence[str]) -> str:
    """Static text of a template with each interpolation shown as ``{…}``.

    Used for error snippets.
    """
    return "{…}".join(strings)
