from pathlib import Path

from prisma_neighbourhood.schema_parser import load_schema
from prisma_neighbourhood.schema_types import (
    Cardinality,
    EnumDef,
    Field,
    Model,
    ParsedSchema,
    Relation,
    View,
)
from prisma_neighbourhood.validate import (
    ValidateConfig,
    validate_schema,
    validate_schema_issues,
)


FIXTURE_DIR = Path(__file__).resolve().parents[1] / "fixtures" / "schemas"


def codes(issues) -> list[str]:
    return [iss.code for iss in issues]


def test_fixtures_are_clean():
    for name in ("simple.prisma", "self_referential.prisma", "with_enums_views.prisma"):
        errors, warnings = validate_schema(load_schema(FIXTURE_DIR / name))
        assert errors == [], name
        assert warnings == [], name


def test_name_collision_across_kinds_is_an_error():
    schema = ParsedSchema(
        models={"Status": Model(name="Status", fields=(Field(name="id", type="Int"),))},
        enums={"Status": EnumDef(name="Status", values=("ON",))},
    )
    issues = validate_schema_issues(schema)
    assert codes(issues) == ["E_NAME_COLLISION"]
    assert issues[0].severity == "error"
    assert "models, enums" in issues[0].message


def test_dangling_relation_and_empty_entities_are_warnings():
    schema = ParsedSchema(
        models={
            "A": Model(
                name="A",
                fields=(Field(name="ghost", type="Ghost"),),
                relations=(Relation("Ghost", Cardinality.ONE_TO_ONE, "ghost"),),
            ),
        },
        views={"Empty": View(name="Empty")},
        enums={"Nothing": EnumDef(name="Nothing")},
    )
    errors, warnings = validate_schema(schema)
    assert errors == []
    assert len(warnings) == 3
    assert any("unknown entity 'Ghost'" in w for w in warnings)
    assert any("view 'Empty' declares no fields" in w for w in warnings)
    assert any("enum 'Nothing' declares no values" in w for w in warnings)


def test_ignore_and_escalate():
    schema = ParsedSchema(enums={"Nothing": EnumDef(name="Nothing")})

    ignored = validate_schema_issues(schema, ValidateConfig(ignore={"W_ENUM_EMPTY"}))
    assert ignored == []

    escalated = validate_schema_issues(schema, ValidateConfig(escalate={"W_ENUM_EMPTY"}))
    assert [iss.severity for iss in escalated] == ["error"]


def test_mermaid_unsafe_name_warning():
    schema = ParsedSchema(models={"1st": Model(name="1st", fields=(Field("id", "Int"),))})
    assert codes(validate_schema_issues(schema)) == ["W_NAME_NOT_MERMAID_SAFE"]
    assert validate_schema_issues(schema, ValidateConfig(check_mermaid_safe_names=False)) == []
