from __future__ import annotations

from typing import Optional, Sequence

from ..mermaid_fmt import (
    ERD_ENUM_USAGE,
    ERD_MANY_TO_MANY,
    ERD_ONE_TO_MANY,
    ERD_ONE_TO_ONE,
    mm_erd_attribute,
    mm_erd_entity_close,
    mm_erd_entity_open,
    mm_erd_name,
    mm_erd_relationship,
)
from ..schema_types import Cardinality, EnumDef, Model
from ..traversal import EntityKind, TraversedEntity

RELATION_ARROWS: dict[Cardinality, str] = {
    Cardinality.ONE_TO_ONE: ERD_ONE_TO_ONE,
    Cardinality.ONE_TO_MANY: ERD_ONE_TO_MANY,
    Cardinality.MANY_TO_MANY: ERD_MANY_TO_MANY,
}


def _display_name(name: str, kind: EntityKind) -> str:
    if kind is EntityKind.MODEL:
        return mm_erd_name(name)
    return mm_erd_name(name, prefix=kind.value)


def _render_model_or_view(entity: Model, display: str, lines: list[str]) -> None:
    lines.append(mm_erd_entity_open(display))
    for f in entity.fields:
        # Relation fields become relationship lines instead.
        if f.is_relation:
            continue
        keys: list[str] = []
        if f.is_primary_key:
            keys.append("PK")
        if f.is_foreign_key:
            keys.append("FK")
        if f.is_unique and not f.is_primary_key:
            keys.append("UK")
        lines.append(mm_erd_attribute(f.type, f.name, keys))
    lines.append(mm_erd_entity_close())


def _render_enum(enum_def: EnumDef, display: str, lines: list[str]) -> None:
    lines.append(mm_erd_entity_open(display))
    # erDiagram attributes are always "type name".
    for value in enum_def.values:
        lines.append(mm_erd_attribute(enum_def.name, value))
    lines.append(mm_erd_entity_close())


def render_mermaid_erd(entities: Sequence[TraversedEntity]) -> str:
    """Generate a Mermaid erDiagram for a traversal result.

    Entity blocks follow traversal order. Relationship lines are emitted only
    between entities present in `entities`: one line per unordered pair of
    models/views, and one line per enum-typed field. Relation targets resolve
    to a model before a view, and enum-typed fields to the enum of that name.
    """
    display: dict[tuple[EntityKind, str], str] = {}
    for item in entities:
        display.setdefault((item.kind, item.name), _display_name(item.name, item.kind))

    def relation_target(name: str) -> Optional[tuple[EntityKind, str]]:
        for kind in (EntityKind.MODEL, EntityKind.VIEW):
            if (kind, name) in display:
                return (kind, name)
        return None

    lines: list[str] = ["erDiagram"]

    for item in entities:
        if item.kind is EntityKind.ENUM:
            _render_enum(item.entity, display[(item.kind, item.name)], lines)
        else:
            _render_model_or_view(item.entity, display[(item.kind, item.name)], lines)

    rendered: set[tuple[str, ...]] = set()

    for item in entities:
        if item.kind is EntityKind.ENUM:
            continue
        entity = item.entity
        source = display[(item.kind, item.name)]

        for relation in entity.relations:
            target = relation_target(relation.related_entity_name)
            if target is None:
                continue
            pair = ("relation",) + tuple(sorted((entity.name, target[1])))
            if pair in rendered:
                continue
            rendered.add(pair)
            lines.append(
                mm_erd_relationship(
                    source,
                    RELATION_ARROWS[relation.cardinality],
                    display[target],
                    relation.field_name,
                )
            )

        for f in entity.fields:
            enum_key = (EntityKind.ENUM, f.type)
            if enum_key not in display:
                continue
            usage = ("enum", entity.name, f.type, f.name)
            if usage in rendered:
                continue
            rendered.add(usage)
            lines.append(mm_erd_relationship(source, ERD_ENUM_USAGE, display[enum_key], f.name))

    return "\n".join(lines)
