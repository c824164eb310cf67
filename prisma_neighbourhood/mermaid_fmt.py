from __future__ import annotations

import html
import re

# Mermaid entity IDs must be alphanumeric/underscore and must not start
# with a digit.
MERMAID_ID_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Relationship notation per cardinality (see Mermaid erDiagram docs).
ERD_ONE_TO_ONE = "||--||"
ERD_ONE_TO_MANY = "||--o{"
ERD_MANY_TO_MANY = "}o--o{"
# Many fields may use one enum; each field uses exactly one enum value.
ERD_ENUM_USAGE = "}o--||"

ERD_ARROWS = {ERD_ONE_TO_ONE, ERD_ONE_TO_MANY, ERD_MANY_TO_MANY, ERD_ENUM_USAGE}

ATTRIBUTE_KEYS = ("PK", "FK", "UK")


def mermaid_block(code: str) -> str:
    """Wrap Mermaid source in a Markdown Mermaid code fence."""
    return "```mermaid\n" + code.rstrip() + "\n```\n"


def mm_text(text: str) -> str:
    """Escape text for Mermaid quoted labels."""
    normalized = re.sub(r"\s+", " ", html.unescape(str(text))).strip()
    return (
        normalized.replace("&", "#amp;")
        .replace("<", "#lt;")
        .replace(">", "#gt;")
        .replace('"', "#quot;")
    )


def mm_erd_name(name: str, prefix: str | None = None) -> str:
    """Entity reference as used in both entity blocks and relationship lines.

    Plain Mermaid-safe names are emitted bare; prefixed or unsafe names are
    quoted.
    """
    if prefix is None and MERMAID_ID_RE.match(name):
        return name
    label = f"[{prefix}] {name}" if prefix else name
    return f'"{mm_text(label)}"'


def mm_erd_entity_open(display_name: str) -> str:
    return f"  {display_name} {{"


def mm_erd_entity_close() -> str:
    return "  }"


def mm_erd_attribute(type_name: str, name: str, keys: list[str] | tuple[str, ...] = ()) -> str:
    for key in keys:
        if key not in ATTRIBUTE_KEYS:
            raise ValueError(f"unsupported attribute key: {key!r}")
    suffix = f" {','.join(keys)}" if keys else ""
    return f"    {type_name} {name}{suffix}"


def mm_erd_relationship(a: str, arrow: str, b: str, label: str) -> str:
    if arrow not in ERD_ARROWS:
        raise ValueError(f"unsupported erDiagram arrow: {arrow!r}")
    return f'  {a} {arrow} {b} : "{mm_text(label)}"'

