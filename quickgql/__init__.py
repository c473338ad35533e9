from quickgql.gql_factory import GQLFactory
from quickgql.mixins.action import Action
from quickgql.mixins.arguments import FindOptions
from quickgql.mixins.errors import (
    ArgumentError,
    QuickGQLError,
    UnknownFieldError,
    default_error_handler,
)
from quickgql.mixins.mutation import MutationParams
from quickgql.mixins.query import QueryParams
from quickgql.mixins.resource import Base, Resource, ResourceParams, build_resource
from quickgql.mixins.scalars import Json
from quickgql.router_factory import RouterFactory

__all__ = [
    "Action",
    "ArgumentError",
    "Base",
    "FindOptions",
    "GQLFactory",
    "Json",
    "MutationParams",
    "QueryParams",
    "QuickGQLError",
    "Resource",
    "ResourceParams",
    "RouterFactory",
    "UnknownFieldError",
    "build_resource",
    "default_error_handler",
]
