from pathlib import Path

import pytest

from prisma_neighbourhood.schema_parser import SchemaParseError, load_schema, parse_schema
from prisma_neighbourhood.schema_types import Cardinality, View


FIXTURE_DIR = Path(__file__).resolve().parents[1] / "fixtures" / "schemas"


def field_by_name(entity, name):
    return next(f for f in entity.fields if f.name == name)


def relation_by_field(entity, field_name):
    return next(r for r in entity.relations if r.field_name == field_name)


def test_simple_schema_models_in_declaration_order():
    schema = load_schema(FIXTURE_DIR / "simple.prisma")
    assert list(schema.models) == ["User", "Profile", "Post", "Tag"]
    assert schema.views == {}
    assert schema.enums == {}


def test_field_flags():
    schema = load_schema(FIXTURE_DIR / "simple.prisma")
    user = schema.models["User"]

    user_id = field_by_name(user, "id")
    assert user_id.type == "Int"
    assert user_id.is_primary_key and user_id.is_required and not user_id.is_unique

    email = field_by_name(user, "email")
    assert email.is_unique and not email.is_primary_key

    name = field_by_name(user, "name")
    assert not name.is_required

    posts = field_by_name(user, "posts")
    assert posts.type == "Post"
    assert posts.is_list and posts.is_relation

    profile = schema.models["Profile"]
    user_id_fk = field_by_name(profile, "userId")
    assert user_id_fk.is_foreign_key and user_id_fk.is_unique
    assert not field_by_name(profile, "bio").is_foreign_key


def test_string_containing_slashes_is_not_a_comment():
    schema = load_schema(FIXTURE_DIR / "simple.prisma")
    assert [f.name for f in schema.models["Post"].fields] == [
        "id",
        "title",
        "url",
        "author",
        "authorId",
        "tags",
    ]


def test_relations_recorded_on_both_sides_with_cardinality():
    schema = load_schema(FIXTURE_DIR / "simple.prisma")
    user = schema.models["User"]
    post = schema.models["Post"]
    profile = schema.models["Profile"]
    tag = schema.models["Tag"]

    assert [r.field_name for r in user.relations] == ["posts", "profile"]
    assert relation_by_field(user, "posts").cardinality is Cardinality.ONE_TO_MANY
    assert relation_by_field(user, "profile").cardinality is Cardinality.ONE_TO_ONE

    author = relation_by_field(post, "author")
    assert author.related_entity_name == "User"
    assert author.cardinality is Cardinality.ONE_TO_MANY
    assert author.is_owner
    assert not relation_by_field(user, "posts").is_owner

    assert relation_by_field(post, "tags").cardinality is Cardinality.MANY_TO_MANY
    assert relation_by_field(tag, "posts").cardinality is Cardinality.MANY_TO_MANY
    assert relation_by_field(profile, "user").cardinality is Cardinality.ONE_TO_ONE


def test_named_self_relations():
    schema = load_schema(FIXTURE_DIR / "self_referential.prisma")
    employee = schema.models["Employee"]

    assert relation_by_field(employee, "manager").cardinality is Cardinality.ONE_TO_MANY
    assert relation_by_field(employee, "reports").cardinality is Cardinality.ONE_TO_MANY
    assert relation_by_field(employee, "mentor").cardinality is Cardinality.ONE_TO_ONE
    assert relation_by_field(employee, "mentee").cardinality is Cardinality.ONE_TO_ONE
    assert relation_by_field(employee, "mentor").is_owner
    assert not relation_by_field(employee, "mentee").is_owner
    assert field_by_name(employee, "managerId").is_foreign_key


def test_enums_and_views():
    schema = load_schema(FIXTURE_DIR / "with_enums_views.prisma")

    assert list(schema.enums) == ["Role", "Status", "Unused"]
    assert schema.enums["Role"].values == ("USER", "ADMIN", "MODERATOR")
    assert schema.enums["Status"].values == ("ACTIVE", "INACTIVE")

    assert list(schema.views) == ["UserSummary", "AdminDashboard"]
    assert isinstance(schema.views["UserSummary"], View)
    assert "UserSummary" not in schema.models

    role = field_by_name(schema.models["User"], "role")
    assert role.type == "Role" and not role.is_relation

    dashboards = relation_by_field(schema.models["User"], "adminDashboards")
    assert dashboards.related_entity_name == "AdminDashboard"
    assert dashboards.cardinality is Cardinality.ONE_TO_MANY


def test_directory_of_schema_files_is_merged_in_sorted_order():
    schema = load_schema(FIXTURE_DIR / "multi_file")
    assert list(schema.models) == ["Author", "Book"]
    assert list(schema.enums) == ["Genre"]
    assert relation_by_field(schema.models["Author"], "books").cardinality is Cardinality.ONE_TO_MANY


def test_compound_id_marks_each_field_primary():
    schema = parse_schema(
        """
        model Membership {
          userId  Int
          groupId Int
          note    String?

          @@id([userId, groupId])
        }
        """
    )
    membership = schema.models["Membership"]
    assert field_by_name(membership, "userId").is_primary_key
    assert field_by_name(membership, "groupId").is_primary_key
    assert not field_by_name(membership, "note").is_primary_key


def test_unsupported_type_and_relation_to_unknown_type():
    schema = parse_schema(
        """
        model Place {
          id       Int                                   @id
          location Unsupported("geography(Point,4326)")?
          owner    Ghost
        }
        """
    )
    place = schema.models["Place"]
    assert field_by_name(place, "location").type == "Unsupported"
    owner = field_by_name(place, "owner")
    assert owner.type == "Ghost" and not owner.is_relation
    assert place.relations == ()


def test_missing_file_raises():
    with pytest.raises(SchemaParseError, match="Failed to read schema file"):
        load_schema(FIXTURE_DIR / "does_not_exist.prisma")


def test_empty_directory_raises(tmp_path):
    with pytest.raises(SchemaParseError, match="No .prisma files"):
        load_schema(tmp_path)


@pytest.mark.parametrize(
    "text,match",
    [
        ("model User {\n  id Int @id\n", "unterminated block"),
        ("model User {\n  id Int\nmodel Post {\n}\n", "block opened"),
        ("random text\n", "outside of a block"),
        ("model User {\n  ??? bad\n}\n", "cannot parse field"),
        ("model A {\n  id Int\n}\nmodel A {\n  id Int\n}\n", "duplicate model 'A'"),
    ],
)
def test_malformed_schema_raises(text, match):
    with pytest.raises(SchemaParseError, match=match):
        parse_schema(text)


def test_same_name_in_different_kinds_is_left_to_validation():
    schema = parse_schema("model Thing {\n  id Int @id\n}\nenum Thing {\n  A\n}\n")
    assert "Thing" in schema.models and "Thing" in schema.enums


def test_invalid_utf8_raises_parse_error(tmp_path):
    schema_file = tmp_path / "latin1.prisma"
    schema_file.write_bytes(b"model User {\n  id Int @id \xff\n}\n")
    with pytest.raises(SchemaParseError, match="not valid UTF-8"):
        load_schema(schema_file)


def test_byte_order_mark_is_ignored(tmp_path):
    schema_file = tmp_path / "bom.prisma"
    schema_file.write_bytes(b"\xef\xbb\xbfmodel User {\n  id Int @id\n}\n")
    schema = load_schema(schema_file)
    assert list(schema.models) == ["User"]
