from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

from .mermaid_fmt import MERMAID_ID_RE
from .schema_types import ParsedSchema

Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class ValidationIssue:
    """Structured validation issue for callers that want more than strings."""

    severity: Severity
    code: str
    message: str
    path: str = ""
    hint: Optional[str] = None


@dataclass(frozen=True)
class ValidateConfig:
    """Validation configuration.

    `ignore` drops issues by code; `escalate` turns the listed warning codes
    into errors.
    """

    ignore: set[str] = field(default_factory=set)
    escalate: set[str] = field(default_factory=set)

    check_mermaid_safe_names: bool = True


def validate_schema_issues(
    schema: ParsedSchema, cfg: Optional[ValidateConfig] = None
) -> list[ValidationIssue]:
    """Return structured validation issues for a parsed schema.

    Entity lookup prefers models, then views, then enums; a name declared in
    more than one of those mappings would be silently shadowed, so it is
    reported here as an error instead.
    """

    cfg = cfg or ValidateConfig()
    issues: list[ValidationIssue] = []

    def emit(
        severity: Severity,
        code: str,
        message: str,
        path: str = "",
        hint: Optional[str] = None,
    ) -> None:
        if code in cfg.ignore:
            return
        final_severity: Severity = (
            "error" if (severity == "warning" and code in cfg.escalate) else severity
        )
        issues.append(
            ValidationIssue(
                severity=final_severity,
                code=code,
                message=message,
                path=path,
                hint=hint,
            )
        )

    sections = (
        ("models", schema.models),
        ("views", schema.views),
        ("enums", schema.enums),
    )

    declared_in: dict[str, list[str]] = {}
    for section, mapping in sections:
        for name in mapping:
            declared_in.setdefault(name, []).append(section)

    for name, where in declared_in.items():
        if len(where) > 1:
            emit(
                "error",
                "E_NAME_COLLISION",
                f"name {name!r} is declared in more than one of models/views/enums "
                f"({', '.join(where)}); lookups would resolve it as {where[0][:-1]}",
                path=f"/{where[1]}/{name}",
                hint="Rename one of the declarations",
            )

        if cfg.check_mermaid_safe_names and not MERMAID_ID_RE.match(name):
            emit(
                "warning",
                "W_NAME_NOT_MERMAID_SAFE",
                f"entity name {name!r} is not Mermaid-safe (use [A-Za-z0-9_] and "
                "cannot start with a digit)",
                path=f"/{where[0]}/{name}",
            )

    relation_targets = set(schema.models) | set(schema.views)
    for section, mapping in sections[:2]:
        for name, entity in mapping.items():
            if not entity.fields:
                emit(
                    "warning",
                    "W_ENTITY_NO_FIELDS",
                    f"{section[:-1]} {name!r} declares no fields",
                    path=f"/{section}/{name}",
                )

            for relation in entity.relations:
                if relation.related_entity_name not in relation_targets:
                    emit(
                        "warning",
                        "W_RELATION_TARGET_MISSING",
                        f"{section[:-1]} {name!r} field {relation.field_name!r} relates to "
                        f"unknown entity {relation.related_entity_name!r}",
                        path=f"/{section}/{name}/relations/{relation.field_name}",
                    )

    for name, enum_def in schema.enums.items():
        if not enum_def.values:
            emit(
                "warning",
                "W_ENUM_EMPTY",
                f"enum {name!r} declares no values",
                path=f"/enums/{name}",
            )

    return issues


def validate_schema(schema: ParsedSchema) -> Tuple[list[str], list[str]]:
    """Return `(errors, warnings)` as plain messages."""
    issues = validate_schema_issues(schema)
    errors = [iss.message for iss in issues if iss.severity == "error"]
    warnings = [iss.message for iss in issues if iss.severity == "warning"]
    return errors, warnings
