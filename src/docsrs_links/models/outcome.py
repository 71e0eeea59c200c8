"""
Resolution outcomes.

``resolve`` always returns one of ``CrateRoot``, ``Found`` or ``NotFound``;
a path that doesn't exist is a normal result, not an exception.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .base import frozen_config, strict_config
from .index import Item, ItemKind


class Owner(BaseModel):
    """The item or foreign entity an associated item belongs to."""

    kind: ItemKind
    name: str
    module_path: str
    position: int | None = Field(
        None, description="Position in the item list when documented in this crate"
    )

    model_config = frozen_config

    @property
    def is_documented(self) -> bool:
        return self.position is not None


class ResolvedItem(BaseModel):
    """An item a path was resolved to, with everything needed to link it."""

    position: int = Field(..., ge=0, description="Position in decode order")
    item: Item
    qualified_path: str = Field(..., description="Full path like 'anyhow::Error::new'")
    owner: Owner | None = None

    model_config = frozen_config


class CrateRoot(BaseModel):
    """The path named only the crate itself."""

    outcome: Literal["crate_root"] = "crate_root"
    crate_name: str

    model_config = frozen_config


class Found(BaseModel):
    """The path resolved to a single item."""

    outcome: Literal["found"] = "found"
    resolved: ResolvedItem

    model_config = frozen_config


class NotFound(BaseModel):
    """Nothing in the index matches the path."""

    outcome: Literal["not_found"] = "not_found"
    path: str

    model_config = frozen_config


ResolveOutcome = Annotated[CrateRoot | Found | NotFound, Field(discriminator="outcome")]


class LinkResponse(BaseModel):
    """Command line JSON output for a successful lookup."""

    path: str
    outcome: Literal["crate_root", "found"]
    kind: ItemKind | None = None
    url: str

    model_config = strict_config
