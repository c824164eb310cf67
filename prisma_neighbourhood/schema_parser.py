from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .constants import SCHEMA_FILE_SUFFIX
from .schema_types import Cardinality, EnumDef, Field, Model, ParsedSchema, Relation, View


class SchemaParseError(ValueError):
    """Raised when a Prisma schema cannot be read or understood."""


_BLOCK_HEADER_RE = re.compile(
    r"^(?P<keyword>model|view|enum|type|datasource|generator)\s+(?P<name>\w+)\s*\{$"
)
_FIELD_RE = re.compile(
    r'^(?P<name>\w+)\s+'
    r'(?P<type>Unsupported\("(?:[^"\\]|\\.)*"\)|\w+)'
    r"(?P<list>\[\])?(?P<optional>\?)?"
    r"(?P<attrs>(?:\s.*)?)$"
)
_ENUM_VALUE_RE = re.compile(r"^(?P<name>\w+)(?:\s.*)?$")
_ID_ATTR_RE = re.compile(r"(?<![\w@])@id\b")
_UNIQUE_ATTR_RE = re.compile(r"(?<![\w@])@unique\b")
_RELATION_ATTR_RE = re.compile(r"(?<![\w@])@relation\s*\(")
_BLOCK_ID_RE = re.compile(r"^@@id\s*\(\s*(?:fields\s*:\s*)?\[(?P<fields>[^\]]*)\]")
_RELATION_NAME_POSITIONAL_RE = re.compile(r'^\s*"(?P<name>[^"]*)"')
_RELATION_NAME_NAMED_RE = re.compile(r'\bname\s*:\s*"(?P<name>[^"]*)"')
_RELATION_FIELDS_RE = re.compile(r"\bfields\s*:\s*\[(?P<fields>[^\]]*)\]")

# Blocks that carry no diagram content.
_SKIPPED_KEYWORDS = frozenset({"type", "datasource", "generator"})


@dataclass
class _RawField:
    name: str
    type: str
    is_list: bool
    is_required: bool
    is_id: bool
    is_unique: bool
    relation_name: str = ""
    relation_fields: tuple[str, ...] = ()


@dataclass
class _RawBlock:
    keyword: str
    name: str
    location: str
    fields: list[_RawField] = field(default_factory=list)
    values: list[str] = field(default_factory=list)
    compound_id: tuple[str, ...] = ()


def _strip_comment(line: str) -> str:
    """Drop a `//` comment unless it sits inside a string literal."""
    in_string = False
    escaped = False
    for i, ch in enumerate(line):
        if escaped:
            escaped = False
            continue
        if in_string and ch == "\\":
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if not in_string and line.startswith("//", i):
            return line[:i]
    return line


def _split_names(raw: str) -> tuple[str, ...]:
    # `[a, b(sort: Desc)]` -> ("a", "b")
    names: list[str] = []
    for part in raw.split(","):
        m = re.match(r"\s*(\w+)", part)
        if m:
            names.append(m.group(1))
    return tuple(names)


def _call_args(text: str, open_paren: int) -> str:
    """Return the text between the parenthesis at `open_paren` and its match."""
    depth = 0
    in_string = False
    for i in range(open_paren, len(text)):
        ch = text[i]
        if ch == '"' and (i == 0 or text[i - 1] != "\\"):
            in_string = not in_string
        if in_string:
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[open_paren + 1 : i]
    raise ValueError("unbalanced parentheses")


def _parse_field(line: str, location: str) -> _RawField:
    match = _FIELD_RE.match(line)
    if not match:
        raise SchemaParseError(f"{location}: cannot parse field declaration {line!r}")

    type_name = match.group("type")
    if type_name.startswith("Unsupported("):
        type_name = "Unsupported"

    attrs = match.group("attrs") or ""
    relation_name = ""
    relation_fields: tuple[str, ...] = ()

    rel = _RELATION_ATTR_RE.search(attrs)
    if rel:
        try:
            args = _call_args(attrs, rel.end() - 1)
        except ValueError as e:
            raise SchemaParseError(f"{location}: malformed @relation: {e}") from e
        name_match = _RELATION_NAME_POSITIONAL_RE.match(args) or _RELATION_NAME_NAMED_RE.search(args)
        if name_match:
            relation_name = name_match.group("name")
        fields_match = _RELATION_FIELDS_RE.search(args)
        if fields_match:
            relation_fields = _split_names(fields_match.group("fields"))

    return _RawField(
        name=match.group("name"),
        type=type_name,
        is_list=bool(match.group("list")),
        is_required=not match.group("optional"),
        is_id=bool(_ID_ATTR_RE.search(attrs)),
        is_unique=bool(_UNIQUE_ATTR_RE.search(attrs)),
        relation_name=relation_name,
        relation_fields=relation_fields,
    )


def _scan_blocks(text: str, source: str) -> list[_RawBlock]:
    """Split schema text into raw model/view/enum blocks."""
    blocks: list[_RawBlock] = []
    current: Optional[_RawBlock] = None
    skipping = False

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = _strip_comment(raw_line).strip()
        if not line:
            continue
        location = f"{source}:{lineno}"

        header = _BLOCK_HEADER_RE.match(line)
        if current is None and not skipping:
            if not header:
                raise SchemaParseError(f"{location}: unexpected content outside of a block: {line!r}")
            keyword = header.group("keyword")
            if keyword in _SKIPPED_KEYWORDS:
                skipping = True
            else:
                current = _RawBlock(keyword=keyword, name=header.group("name"), location=location)
            continue

        if header:
            raise SchemaParseError(f"{location}: block opened before the previous block was closed")

        if line == "}":
            if current is not None:
                blocks.append(current)
            current = None
            skipping = False
            continue

        if skipping or current is None:
            continue

        if line.startswith("@@"):
            id_match = _BLOCK_ID_RE.match(line)
            if id_match:
                current.compound_id = _split_names(id_match.group("fields"))
            continue

        if current.keyword == "enum":
            value = _ENUM_VALUE_RE.match(line)
            if not value:
                raise SchemaParseError(f"{location}: cannot parse enum value {line!r}")
            current.values.append(value.group("name"))
        else:
            current.fields.append(_parse_field(line, location))

    if current is not None or skipping:
        raise SchemaParseError(f"{source}: unterminated block at end of file")

    return blocks


def _determine_cardinality(f: _RawField, back: Optional[_RawField]) -> Cardinality:
    if f.is_list:
        if back is not None and back.is_list:
            return Cardinality.MANY_TO_MANY
        return Cardinality.ONE_TO_MANY
    if back is not None and back.is_list:
        return Cardinality.ONE_TO_MANY
    return Cardinality.ONE_TO_ONE


def _find_back_relation(block: _RawBlock, f: _RawField, target: _RawBlock) -> Optional[_RawField]:
    for candidate in target.fields:
        if candidate.type != block.name or candidate.relation_name != f.relation_name:
            continue
        if target is block and candidate.name == f.name:
            continue
        return candidate
    return None


def _build_entity(block: _RawBlock, lookup: dict[str, _RawBlock]) -> tuple[tuple[Field, ...], tuple[Relation, ...]]:
    foreign_keys = {name for f in block.fields for name in f.relation_fields}

    fields: list[Field] = []
    relations: list[Relation] = []

    for f in block.fields:
        target = lookup.get(f.type)
        fields.append(
            Field(
                name=f.name,
                type=f.type,
                is_required=f.is_required,
                is_list=f.is_list,
                is_primary_key=f.is_id or f.name in block.compound_id,
                is_unique=f.is_unique,
                is_relation=target is not None,
                is_foreign_key=f.name in foreign_keys,
            )
        )

        if target is None:
            continue

        back = _find_back_relation(block, f, target)
        relations.append(
            Relation(
                related_entity_name=f.type,
                cardinality=_determine_cardinality(f, back),
                field_name=f.name,
                is_owner=bool(f.relation_fields),
            )
        )

    return tuple(fields), tuple(relations)


def _build_schema(blocks: list[_RawBlock]) -> ParsedSchema:
    seen: dict[tuple[str, str], str] = {}
    for block in blocks:
        key = (block.keyword, block.name)
        if key in seen:
            raise SchemaParseError(
                f"{block.location}: duplicate {block.keyword} {block.name!r} "
                f"(first declared at {seen[key]})"
            )
        seen[key] = block.location

    # Relation targets resolve against models before views.
    lookup: dict[str, _RawBlock] = {}
    for keyword in ("model", "view"):
        for block in blocks:
            if block.keyword == keyword:
                lookup.setdefault(block.name, block)

    schema = ParsedSchema()
    for block in blocks:
        if block.keyword == "enum":
            schema.enums[block.name] = EnumDef(name=block.name, values=tuple(block.values))
            continue

        fields, relations = _build_entity(block, lookup)
        if block.keyword == "view":
            schema.views[block.name] = View(name=block.name, fields=fields, relations=relations)
        else:
            schema.models[block.name] = Model(name=block.name, fields=fields, relations=relations)

    return schema


def parse_schema(text: str, *, source: str = "<schema>") -> ParsedSchema:
    """Parse Prisma schema text into a `ParsedSchema`."""
    return _build_schema(_scan_blocks(text, source))


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise SchemaParseError(f"Failed to read schema file: {path} ({e.strerror or e})") from e
    except UnicodeDecodeError as e:
        raise SchemaParseError(f"Failed to read schema file: {path} (not valid UTF-8: {e.reason})") from e


def load_schema(path: Path) -> ParsedSchema:
    """Load a schema file, or every `*.prisma` file below a directory.

    Directory contents are read in sorted path order so the resulting mapping
    order is deterministic.
    """
    if not path.exists():
        raise SchemaParseError(f"Failed to read schema file: {path} (no such file or directory)")

    if path.is_dir():
        files = sorted(p for p in path.rglob(f"*{SCHEMA_FILE_SUFFIX}") if p.is_file())
        if not files:
            raise SchemaParseError(f"No {SCHEMA_FILE_SUFFIX} files found under {path}")
        blocks: list[_RawBlock] = []
        for schema_file in files:
            blocks.extend(_scan_blocks(_read_text(schema_file), str(schema_file)))
        return _build_schema(blocks)

    return parse_schema(_read_text(path), source=str(path))
