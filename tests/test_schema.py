import pytest
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from strawberry.types.scalar import ScalarDefinition

from quickgql import GQLFactory, ResourceParams, build_resource
from quickgql.mixins.mutation import MutationFactory
from quickgql.mixins.query import QueryFactory
from quickgql.mixins.scalars import Json, scalar_map
from quickgql.mixins.utils import model_name, plural_name, type_name, with_count_name


def test_names(models):

    assert model_name(models["owner"]) == "owner"
    assert plural_name(models["owner"]) == "owners"
    assert plural_name(models["specie"]) == "species"
    assert type_name(models["certification"]) == "Certification"
    assert with_count_name(models["pet"]) == "PetWithCount"

    class OwnerCertification:
        pass

    assert model_name(OwnerCertification) == "ownerCertification"
    assert plural_name(OwnerCertification) == "ownerCertifications"


def test_query_schema_fragments(models):

    assert models["pet"].query.schema.splitlines() == [
        "pet(action: Action, where: Json, offset: Int, limit: Int, sort: String, id: String, options: Json): Pet",
        "pets(action: Action, where: Json, offset: Int, limit: Int, sort: String, options: Json): PetWithCount",
    ]

    # notes have integer ids
    assert "id: Int," in models["note"].query.schema


def test_mutation_schema_fragments(models):

    assert models["note"].mutation.schema.splitlines() == [
        "note(action: Action, values: Json, options: Json): Note",
        "notes(action: Action, values: Json, options: Json): NoteWithCount",
    ]


def test_root_schema_text(gql):

    query_schema = gql.query_schema
    assert query_schema.startswith("type Query {\n")
    assert query_schema.rstrip().endswith("}")
    for name in ["owner", "owners", "pet", "pets", "specie", "species", "note", "notes"]:
        assert f"\n  {name}(" in query_schema

    assert "  certifications(action: Action, values: Json, options: Json): CertificationWithCount\n" in gql.mutation_schema


def test_printed_schema(gql):

    sdl = gql.sdl

    assert "scalar Json" in sdl
    assert "enum Action {" in sdl
    for value in ["CREATE", "READ", "UPSERT", "UPDATE", "DELETE", "COUNT"]:
        assert value in sdl

    assert "type PetWithCount {" in sdl
    assert "type Query {" in sdl
    assert "type Mutation {" in sdl

    # serialized associations become fields, popped columns disappear
    assert "specie: Specie" in sdl
    assert "pets: [Pet!]!" in sdl
    assert "internalCode" not in sdl
    assert "vaccinationDate: Date" in sdl


def test_field_descriptions(gql):

    assert "Read owners, with a total when action is COUNT" in gql.sdl


class StandaloneBase(DeclarativeBase):
    pass


def test_uncountable_names_are_rejected():

    class Sheep(StandaloneBase, build_resource(id_type=str)):
        __tablename__ = "sheep"

        wool: Mapped[str] = mapped_column()

    # both fields would be called "sheep"
    with pytest.raises(ValueError, match="Sheep has no distinct plural"):
        QueryFactory(Sheep)

    with pytest.raises(ValueError, match="Sheep has no distinct plural"):
        MutationFactory(Sheep)


def test_unknown_serialize_names_are_rejected():

    class Crate(StandaloneBase, build_resource(id_type=str)):
        __tablename__ = "crates"

        size: Mapped[str] = mapped_column()

        class resource_cfg(ResourceParams):
            serialize = ["dogs"]

    with pytest.raises(ValueError, match="Cannot serialize \\['dogs'\\] on Crate"):
        GQLFactory([Crate])


def test_json_scalar_is_configured_on_the_schema(gql):

    assert isinstance(scalar_map[Json], ScalarDefinition)
    assert gql.schema.config.scalar_map[Json].name == "Json"
