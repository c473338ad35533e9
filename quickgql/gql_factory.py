import logging

import strawberry
from strawberry import Schema
from strawberry.fastapi import GraphQLRouter
from strawberry.schema.config import StrawberryConfig

from quickgql.mixins.base import env_settings
from quickgql.mixins.resource import Base
from quickgql.mixins.scalars import scalar_map
from quickgql.mixins.session import SessionExtension

logger = logging.getLogger(__name__)


class GQLFactory:
    """
    Combines the generated fields of every resource into one strawberry `Schema`,
    and serves it through a FastAPI `GraphQLRouter`.
    """

    def __init__(self, models: list[Base], path: str = None, graphiql: bool = None):

        if not models:
            raise ValueError("GQLFactory needs at least one resource")

        self.models = list(models)

        # every type must exist before relationship fields can reference it
        for m in self.models:
            m.build_gql_types()
        for m in self.models:
            m.link_gql_types()

        self.Query = self.build_root("Query", self.models)
        self.Mutation = self.build_root("Mutation", self.models)

        self.schema = Schema(
            query=self.Query,
            mutation=self.Mutation,
            extensions=[SessionExtension],
            config=StrawberryConfig(scalar_map=scalar_map),
        )

        graphiql = env_settings.QUICKGQL_GRAPHIQL if graphiql is None else graphiql
        self.router = GraphQLRouter(
            self.schema,
            path=path or env_settings.QUICKGQL_PATH,
            graphql_ide="graphiql" if graphiql else None,
        )

        logger.info(
            "built GraphQL schema for %s", ", ".join(m.__name__ for m in self.models)
        )

    def build_root(self, name: str, models: list[Base]) -> type:
        fields = {}
        for m in models:
            factory = m.query if name == "Query" else m.mutation
            for field_name, field in factory.fields.items():
                if field_name in fields:
                    raise ValueError(f"Duplicate {name} field '{field_name}' from {m.__name__}")
                fields[field_name] = field

        Root = type(name, (object,), fields)

        return strawberry.type(Root)

    @property
    def query_schema(self) -> str:
        return "type Query {\n%s}\n" % _indent(m.query.schema for m in self.models)

    @property
    def mutation_schema(self) -> str:
        return "type Mutation {\n%s}\n" % _indent(
            m.mutation.schema for m in self.models
        )

    @property
    def sdl(self) -> str:
        return self.schema.as_str()


def _indent(fragments) -> str:
    return "".join(
        f"  {line}\n" for fragment in fragments for line in fragment.splitlines()
    )
