"""Weaver tree builder: lazy elements, the ``html`` and ``css`` tags.

"""

from weaver.template.css import css
from weaver.template.element import Element, Markup, h
from weaver.template.parser import html

__all__ = [
    "Element",
    "Markup",
    "css",
    "h",
    "html",
]
