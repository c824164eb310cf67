from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union, assert_never

from .constants import DEFAULT_MAX_DEPTH
from .schema_types import EnumDef, Model, ParsedSchema, View

Entity = Union[Model, View, EnumDef]


class EntityKind(str, Enum):
    MODEL = "model"
    VIEW = "view"
    ENUM = "enum"


@dataclass(frozen=True)
class TraversedEntity:
    entity: Entity
    kind: EntityKind
    depth: int

    @property
    def name(self) -> str:
        return self.entity.name


@dataclass(frozen=True)
class TraversalOptions:
    start_entity: str
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        # bool is an int subclass; reject it explicitly.
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ValueError(f"max_depth must be an integer, got {self.max_depth!r}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")


@dataclass(frozen=True)
class TraversalResult:
    """Outcome of `traverse_entities`.

    Callers check `success` before reading `entities`; on failure `entities` is
    empty and `error` names the unresolved start entity.
    """

    success: bool
    entities: tuple[TraversedEntity, ...] = ()
    error: Optional[str] = None

    @classmethod
    def ok(cls, entities: list[TraversedEntity]) -> "TraversalResult":
        return cls(success=True, entities=tuple(entities))

    @classmethod
    def fail(cls, error: str) -> "TraversalResult":
        return cls(success=False, error=error)


def _entity_key(kind: EntityKind, name: str) -> tuple[EntityKind, str]:
    return (kind, name)


def find_entity(schema: ParsedSchema, name: str) -> Optional[tuple[Entity, EntityKind]]:
    """Look a name up in models, then views, then enums."""
    model = schema.models.get(name)
    if model is not None:
        return model, EntityKind.MODEL

    view = schema.views.get(name)
    if view is not None:
        return view, EntityKind.VIEW

    enum_def = schema.enums.get(name)
    if enum_def is not None:
        return enum_def, EntityKind.ENUM

    return None


def find_entities_using_enum(
    schema: ParsedSchema, enum_name: str
) -> list[tuple[Model, EntityKind]]:
    """Return every model, then every view, with a field typed as `enum_name`."""
    users: list[tuple[Model, EntityKind]] = []

    for model in schema.models.values():
        if any(f.type == enum_name for f in model.fields):
            users.append((model, EntityKind.MODEL))

    for view in schema.views.values():
        if any(f.type == enum_name for f in view.fields):
            users.append((view, EntityKind.VIEW))

    return users


def get_referenced_enums(entity: Model, schema: ParsedSchema) -> list[EnumDef]:
    """Enums named by the entity's field types, in field order (duplicates kept)."""
    enums: list[EnumDef] = []
    for f in entity.fields:
        enum_def = schema.enums.get(f.type)
        if enum_def is not None:
            enums.append(enum_def)
    return enums


def get_related_entities(
    entity: Model, schema: ParsedSchema
) -> list[tuple[Model, EntityKind]]:
    """Resolve each relation target against models, then views.

    Relations naming neither are dropped.
    """
    related: list[tuple[Model, EntityKind]] = []

    for relation in entity.relations:
        target = relation.related_entity_name

        model = schema.models.get(target)
        if model is not None:
            related.append((model, EntityKind.MODEL))
            continue

        view = schema.views.get(target)
        if view is not None:
            related.append((view, EntityKind.VIEW))

    return related


def _neighbours(
    entity: Entity, kind: EntityKind, schema: ParsedSchema
) -> list[tuple[Entity, EntityKind]]:
    if kind is EntityKind.ENUM:
        return list(find_entities_using_enum(schema, entity.name))

    if kind is EntityKind.MODEL or kind is EntityKind.VIEW:
        out: list[tuple[Entity, EntityKind]] = list(get_related_entities(entity, schema))
        out.extend((e, EntityKind.ENUM) for e in get_referenced_enums(entity, schema))
        return out

    assert_never(kind)


def traverse_entities(schema: ParsedSchema, options: TraversalOptions) -> TraversalResult:
    """Breadth-first walk from `options.start_entity`, bounded by `options.max_depth`.

    Models and views expand to their relation targets and then to the enums
    their fields use; enums expand to the models/views that use them. Each
    (kind, name) is emitted once, at the depth it was first discovered, and
    the output is in non-decreasing depth order. Entities at `max_depth` are
    emitted but not expanded.

    The schema is only read. An unknown start name yields a failed result.
    """
    found = find_entity(schema, options.start_entity)
    if found is None:
        return TraversalResult.fail(
            f'Entity "{options.start_entity}" not found in schema '
            "(searched models, views, and enums)"
        )

    start, start_kind = found

    visited: set[tuple[EntityKind, str]] = {_entity_key(start_kind, start.name)}
    queue: deque[tuple[Entity, EntityKind, int]] = deque([(start, start_kind, 0)])
    result: list[TraversedEntity] = []

    while queue:
        entity, kind, depth = queue.popleft()
        result.append(TraversedEntity(entity=entity, kind=kind, depth=depth))

        if depth >= options.max_depth:
            continue

        for neighbour, neighbour_kind in _neighbours(entity, kind, schema):
            key = _entity_key(neighbour_kind, neighbour.name)
            if key in visited:
                continue
            visited.add(key)
            queue.append((neighbour, neighbour_kind, depth + 1))

    return TraversalResult.ok(result)
