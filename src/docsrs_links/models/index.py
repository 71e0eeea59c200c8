"""
Normalized search index models.

Every index generation decodes into these types, so the resolver and the URL
builder never deal with generation-specific layouts.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator

from .base import frozen_config


class ItemKind(str, Enum):
    """Rustdoc item types, declared in the order of their numeric codes.

    The value is the tag rustdoc uses in page names and anchors, for example
    ``struct.Error.html`` or ``#method.new``.
    """

    MODULE = "mod"
    EXTERN_CRATE = "externcrate"
    IMPORT = "import"
    STRUCT = "struct"
    ENUM = "enum"
    FUNCTION = "fn"
    TYPEDEF = "type"
    STATIC = "static"
    TRAIT = "trait"
    IMPL = "impl"
    TY_METHOD = "tymethod"
    METHOD = "method"
    STRUCT_FIELD = "structfield"
    VARIANT = "variant"
    MACRO = "macro"
    PRIMITIVE = "primitive"
    ASSOC_TYPE = "associatedtype"
    CONSTANT = "constant"
    ASSOC_CONST = "associatedconstant"
    UNION = "union"
    FOREIGN_TYPE = "foreigntype"
    KEYWORD = "keyword"
    OPAQUE_TY = "opaque"
    PROC_ATTRIBUTE = "attr"
    PROC_DERIVE = "derive"
    TRAIT_ALIAS = "traitalias"

    @classmethod
    def from_code(cls, code: int) -> ItemKind:
        """Map a numeric rustdoc item type to its kind.

        Raises:
            ValueError: If the code is not a known item type
        """
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError(f"item type must be an integer, got {code!r}")
        if not 0 <= code < len(_KINDS_BY_CODE):
            raise ValueError(f"unknown item type code {code}")
        return _KINDS_BY_CODE[code]

    @property
    def code(self) -> int:
        return _KINDS_BY_CODE.index(self)

    @property
    def url_tag(self) -> str:
        return self.value

    @property
    def is_proc_macro(self) -> bool:
        return self in (ItemKind.PROC_ATTRIBUTE, ItemKind.PROC_DERIVE)


_KINDS_BY_CODE: tuple[ItemKind, ...] = tuple(ItemKind)


class SelfIndex(BaseModel):
    """Parent is the item at ``index`` in this crate's own item list."""

    space: Literal["self"] = "self"
    index: int = Field(..., ge=0)

    model_config = frozen_config


class ForeignIndex(BaseModel):
    """Parent is the entry at ``index`` in the paths table."""

    space: Literal["foreign"] = "foreign"
    index: int = Field(..., ge=0)

    model_config = frozen_config


ParentRef = Annotated[SelfIndex | ForeignIndex, Field(discriminator="space")]


class PathEntry(BaseModel):
    """An entity referenced as a parent, not necessarily documented here."""

    kind: ItemKind
    name: str

    model_config = frozen_config


class Item(BaseModel):
    """A single documented item of a crate."""

    kind: ItemKind
    name: str = Field(..., min_length=1)
    module_path: str = Field(
        ..., min_length=1, description="Containing module, like 'anyhow' or 'std::vec'"
    )
    description: str | None = Field(
        None, description="Short, likely truncated HTML description"
    )
    parent: ParentRef | None = None

    model_config = frozen_config

    @property
    def module_segments(self) -> tuple[str, ...]:
        return tuple(self.module_path.split("::"))


class Index(BaseModel):
    """Decoded search index data of one crate."""

    crate_name: str = Field(..., min_length=1)
    items: tuple[Item, ...] = ()
    paths: tuple[PathEntry, ...] = ()

    model_config = frozen_config

    @model_validator(mode="after")
    def check_parent_references(self) -> Index:
        """Reject parent references that point outside their target list."""
        for position, item in enumerate(self.items):
            parent = item.parent
            if parent is None:
                continue
            if isinstance(parent, SelfIndex):
                if parent.index >= len(self.items):
                    raise ValueError(
                        f"item {position} references item {parent.index}, "
                        f"but only {len(self.items)} items exist"
                    )
                if self.items[parent.index].parent is not None:
                    raise ValueError(
                        f"item {position} references item {parent.index}, "
                        "which is itself an associated item"
                    )
            elif parent.index >= len(self.paths):
                raise ValueError(
                    f"item {position} references path {parent.index}, "
                    f"but only {len(self.paths)} paths exist"
                )
        return self

    def __len__(self) -> int:
        return len(self.items)


class Crate(BaseModel):
    """A crate together with its decoded index."""

    name: str = Field(..., min_length=1)
    version: str | None = Field(None, description="Semantic version, if known")
    doc: str = Field("", description="Short documentation summary")
    index: Index

    model_config = frozen_config
