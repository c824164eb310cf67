from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Cardinality(Enum):
    ONE_TO_ONE = "ONE_TO_ONE"
    ONE_TO_MANY = "ONE_TO_MANY"
    MANY_TO_MANY = "MANY_TO_MANY"


@dataclass(frozen=True)
class Field:
    """A single field of a model or view.

    `type` is the declared base type: a scalar name (`String`, `Int`, ...),
    an enum name, or the name of another model/view for relation fields.
    """

    name: str
    type: str
    is_required: bool = True
    is_list: bool = False
    is_primary_key: bool = False
    is_unique: bool = False
    is_relation: bool = False
    is_foreign_key: bool = False


@dataclass(frozen=True)
class Relation:
    """One side of a relation between two models/views.

    The parser records relations on both sides, so a back-relation field on the
    related entity produces its own `Relation` pointing back here.
    """

    related_entity_name: str
    cardinality: Cardinality
    field_name: str
    is_owner: bool = False


@dataclass(frozen=True)
class Model:
    name: str
    fields: tuple[Field, ...] = ()
    relations: tuple[Relation, ...] = ()


@dataclass(frozen=True)
class View(Model):
    """Database view; structurally identical to a model."""


@dataclass(frozen=True)
class EnumDef:
    name: str
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedSchema:
    """Name-keyed models, views and enums, in schema declaration order."""

    models: dict[str, Model] = field(default_factory=dict)
    views: dict[str, View] = field(default_factory=dict)
    enums: dict[str, EnumDef] = field(default_factory=dict)
