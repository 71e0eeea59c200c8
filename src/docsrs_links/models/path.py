"""
Simple path model, like `std::vec::Vec`, `anyhow::Result` or `thiserror`.

Parsing and validation live in ``docsrs_links.simple_path``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from docsrs_links.config import STDLIB_CRATES

from .base import frozen_config


class PathSegment(BaseModel):
    """One identifier of a path, with any raw marker (`r#`) stripped."""

    name: str = Field(..., min_length=1)
    raw: bool = Field(False, description="Whether the segment was written as r#name")

    model_config = frozen_config

    def __str__(self) -> str:
        return f"r#{self.name}" if self.raw else self.name


class SimplePath(BaseModel):
    """Path for any item within a crate (or just the crate itself)."""

    segments: tuple[PathSegment, ...] = Field(..., min_length=1)

    model_config = frozen_config

    @classmethod
    def parse(cls, value: str) -> SimplePath:
        """Parse a path string, see ``docsrs_links.simple_path.parse_path``."""
        from docsrs_links.simple_path import parse_path

        return parse_path(value)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(segment.name for segment in self.segments)

    @property
    def crate_name(self) -> str:
        return self.segments[0].name

    @property
    def is_crate_only(self) -> bool:
        """Whether the path only contains the crate name and no item."""
        return len(self.segments) == 1

    @property
    def is_std(self) -> bool:
        """Whether this path points into the standard library."""
        return self.crate_name in STDLIB_CRATES

    def __str__(self) -> str:
        return "::".join(str(segment) for segment in self.segments)
