"""
Crate identity used when building documentation URLs.
"""

from __future__ import annotations

from enum import Enum

import semver
from pydantic import BaseModel, Field, field_validator, model_validator

from docsrs_links.config import STDLIB_CRATES
from docsrs_links.errors import InvalidVersionFormatError

from .base import frozen_config

LATEST = "latest"
STDLIB_CHANNELS = {"stable", "beta", "nightly"}


class Hosting(str, Enum):
    """Where a crate's documentation is published."""

    REGISTRY = "registry"  # docs.rs
    STDLIB = "stdlib"  # doc.rust-lang.org


def parse_version(value: str | None) -> str:
    """Normalize a crate version: 'latest', a release channel or a semver string.

    Raises:
        InvalidVersionFormatError: If the value is none of the above
    """
    if value is None:
        return LATEST
    value = value.strip()
    if not value or value == LATEST:
        return LATEST
    if value in STDLIB_CHANNELS:
        return value
    try:
        return str(semver.Version.parse(value))
    except ValueError as e:
        raise InvalidVersionFormatError(
            f"version must be 'latest' or a semantic version, got {value!r}"
        ) from e


class CrateIdentity(BaseModel):
    """Name, version and hosting of a crate, as needed for its URLs."""

    name: str = Field(..., min_length=1)
    version: str = Field(LATEST, description="'latest', a channel or a semver string")
    hosting: Hosting = Hosting.REGISTRY

    model_config = frozen_config

    @field_validator("version", mode="before")
    @classmethod
    def normalize_version(cls, v):
        return parse_version(v)

    @model_validator(mode="after")
    def check_channel_hosting(self) -> CrateIdentity:
        if self.version in STDLIB_CHANNELS and self.hosting is not Hosting.STDLIB:
            raise ValueError(
                f"release channel {self.version!r} only applies to standard library crates"
            )
        return self

    @classmethod
    def for_crate(cls, name: str, version: str | None = None) -> CrateIdentity:
        """Build an identity, picking stdlib hosting for the standard library crates."""
        hosting = Hosting.STDLIB if name in STDLIB_CRATES else Hosting.REGISTRY
        return cls(name=name, version=version, hosting=hosting)

    @property
    def is_std(self) -> bool:
        return self.hosting is Hosting.STDLIB
