import logging
from abc import ABC
from functools import wraps
from inspect import Parameter, signature
from typing import Callable, Optional
from uuid import UUID

from strawberry.types import Info

from quickgql.mixins.action import Action
from quickgql.mixins.arguments import FindOptions, build_options
from quickgql.mixins.base import BaseMixin, GQLFieldFactory
from quickgql.mixins.scalars import Json
from quickgql.mixins.session import session_from
from quickgql.mixins.utils import (
    classproperty,
    model_name,
    plural_name,
    type_name,
    with_count_name,
)

logger = logging.getLogger(__name__)


GQL_ID_TYPES = {int: "Int", str: "String", UUID: "UUID"}


class QueryParams(ABC):
    description: Optional[str] = None
    plural_description: Optional[str] = None


class QueryMixin(BaseMixin):
    """
    # Query

    The QueryMixin provides two fields on the GraphQL `Query` type for a resource,
    named after the camel-cased resource name and its plural:

        `pet(action, where, offset, limit, sort, id, options): Pet`

        `pets(action, where, offset, limit, sort, options): PetWithCount`

    The singular field reads a record by `id`, or else the first record matching `where` and `options`.
    The plural field reads every matching record, and also counts them when `action` is `COUNT`.

    `where` and `options` are JSON objects (or strings holding one), see `FindOptions`.
    Keys of `options` take precedence over the `offset`, `limit` and `sort` arguments.
    Every association of the resource is eager-loaded.

    ## QueryParams

    The QueryMixin Optionally accepts a `QueryParams` class to be defined on the resource class.
    This class should inherit from `QueryParams` and must be called `query_cfg`.

    ## Parameters

    `description` `(str)` - Description of the singular field. Optional, defaults to `None`.

    `plural_description` `(str)` - Description of the plural field. Optional, defaults to `None`.
    """

    _query_factory = None

    class query_cfg(QueryParams):
        pass

    @classproperty
    def query(cls):
        if cls.__dict__.get("_query_factory") is None:
            cls._query_factory = QueryFactory(cls)
        return cls._query_factory


class QueryFactory(GQLFieldFactory):

    ROOT = "Query"
    CFG_NAME = "query_cfg"

    def schema_fragment(self, model) -> str:
        id_type = GQL_ID_TYPES.get(model._id_type, "ID")

        return (
            f"{model_name(model)}(action: Action, where: Json, offset: Int, limit: Int, sort: String, id: {id_type}, options: Json): {type_name(model)}\n"
            f"{plural_name(model)}(action: Action, where: Json, offset: Int, limit: Int, sort: String, options: Json): {with_count_name(model)}\n"
        )

    def _parameters(self, model, plural: bool) -> list[Parameter]:

        parameters = [
            Parameter("info", Parameter.POSITIONAL_OR_KEYWORD, annotation=Info),
            Parameter(
                "action",
                Parameter.KEYWORD_ONLY,
                default=None,
                annotation=Optional[Action],
            ),
            Parameter(
                "where", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[Json]
            ),
            Parameter(
                "offset", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[int]
            ),
            Parameter(
                "limit", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[int]
            ),
            Parameter(
                "sort", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[str]
            ),
        ]
        if not plural:
            parameters.append(
                Parameter(
                    "id",
                    Parameter.KEYWORD_ONLY,
                    default=None,
                    annotation=Optional[model._id_type],
                )
            )
        parameters.append(
            Parameter(
                "options", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[Json]
            )
        )

        return parameters

    def resolver_factory(self, model, plural: bool = False) -> Callable:

        def find_options(kwargs) -> FindOptions:
            options = build_options(
                kwargs.get("options"),
                where=kwargs.get("where"),
                offset=kwargs.get("offset"),
                limit=kwargs.get("limit"),
                sort=kwargs.get("sort"),
            )
            options.include = model.associations()
            logger.debug("%s options: %s", model.__name__, options)
            return options

        async def read_one(*args, **kwargs):

            try:
                db = session_from(kwargs["info"], model)

                if kwargs.get("id") is not None:
                    record = model.find_by_id(
                        db, kwargs["id"], FindOptions(include=model.associations())
                    )
                else:
                    record = model.find_one(db, find_options(kwargs))

                logger.debug("%s: %s", model_name(model), record)
                return record
            except Exception as e:
                raise model._error_handler(e)

        async def read_many(*args, **kwargs):

            try:
                db = session_from(kwargs["info"], model)
                options = find_options(kwargs)

                count = None
                if kwargs.get("action") == Action.COUNT:
                    count, rows = model.find_and_count_all(db, options)
                else:
                    rows = model.find_all(db, options)

                logger.debug("%s: %d rows", plural_name(model), len(rows))
                return model.gql_with_count(
                    offset=kwargs.get("offset"),
                    limit=kwargs.get("limit"),
                    count=count,
                    rows=rows,
                )
            except Exception as e:
                raise model._error_handler(e)

        inner = read_many if plural else read_one

        @wraps(inner)
        async def f(*args, **kwargs):
            return await inner(*args, **kwargs)

        # Override signature
        sig = signature(inner)
        sig = sig.replace(
            parameters=self._parameters(model, plural),
            return_annotation=(
                Optional[model.gql_with_count] if plural else Optional[model.gql_type]
            ),
        )
        f.__signature__ = sig  # type: ignore

        return f
