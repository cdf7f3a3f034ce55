"""Render configuration.

Collected from :class:`~weaver.route.Route` keyword arguments into one
immutable object shared by the driver and serializer of a render.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RenderConfig:
    """Options for a single route.

    Attributes:
        autoescape: Escape text and attribute values. Off by default: the
            engine trusts its inputs unless asked otherwise.
        encoding: Codec used to turn output text into bytes.
        max_depth: Maximum number of live frames. 500 is far deeper than any
            real page and catches runaway recursive components early.
        buffer_size: Coalesce output until at least this many characters are
            pending. 0 flushes on every effect.
    """

    autoescape: bool = False
    encoding: str = "utf-8"
    max_depth: int = 500
    buffer_size: int = 0

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.buffer_size < 0:
            raise ValueError(f"buffer_size must be >= 0, got {self.buffer_size}")
        # Raises LookupError for unknown codecs
        codecs.lookup(self.encoding)
