import logging
from abc import ABC
from functools import wraps
from inspect import Parameter, signature
from typing import Callable, Optional

from strawberry.types import Info

from quickgql.mixins.action import Action
from quickgql.mixins.arguments import build_options, decode_values
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


class MutationParams(ABC):
    description: Optional[str] = None
    plural_description: Optional[str] = None


class MutationMixin(BaseMixin):
    """
    # Mutation

    The MutationMixin provides two fields on the GraphQL `Mutation` type for a resource:

        `pet(action, values, options): Pet`

        `pets(action, values, options): PetWithCount`

    `action` selects what happens to the record(s) matched by `options.where`:

    | action | singular | plural |
    |---|---|---|
    | `CREATE` (default) | create from `values` | create one record per item of the `values` array |
    | `READ` | find, or create from `where` + `options.defaults` | not supported, returns `null` |
    | `UPSERT` | update the record with the same id (or matching `where`), else create | not supported, returns `null` |
    | `UPDATE` | update the first match with `values` | update every match with `values` |
    | `DELETE` | delete every match, returning the first | delete every match |

    With `options.returning`, deleted records are returned, and records are re-read after a create or update
    that did not yield them.

    Mutations never raise: any error is logged, the session is rolled back, and the field resolves to `null`
    (singular) or to `{count: null, rows: null}` (plural).

    ## MutationParams

    The MutationMixin Optionally accepts a `MutationParams` class to be defined on the resource class.
    This class should inherit from `MutationParams` and must be called `mutation_cfg`.
    """

    _mutation_factory = None

    class mutation_cfg(MutationParams):
        pass

    @classproperty
    def mutation(cls):
        if cls.__dict__.get("_mutation_factory") is None:
            cls._mutation_factory = MutationFactory(cls)
        return cls._mutation_factory


class MutationFactory(GQLFieldFactory):

    ROOT = "Mutation"
    CFG_NAME = "mutation_cfg"

    def schema_fragment(self, model) -> str:
        return (
            f"{model_name(model)}(action: Action, values: Json, options: Json): {type_name(model)}\n"
            f"{plural_name(model)}(action: Action, values: Json, options: Json): {with_count_name(model)}\n"
        )

    def _parameters(self) -> list[Parameter]:
        return [
            Parameter("info", Parameter.POSITIONAL_OR_KEYWORD, annotation=Info),
            Parameter(
                "action",
                Parameter.KEYWORD_ONLY,
                default=None,
                annotation=Optional[Action],
            ),
            Parameter(
                "values", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[Json]
            ),
            Parameter(
                "options", Parameter.KEYWORD_ONLY, default=None, annotation=Optional[Json]
            ),
        ]

    def resolver_factory(self, model, plural: bool = False) -> Callable:

        async def mutate_one(*args, **kwargs):

            db = None
            record = None

            try:
                db = session_from(kwargs["info"], model)
                action = kwargs.get("action") or Action.CREATE

                options = build_options(kwargs.get("options"))
                options.include = model.associations()
                logger.debug("%s %s options: %s", model.__name__, action.value, options)

                if action == Action.READ:
                    record, _created = model.find_or_create(db, options)

                elif action == Action.UPSERT:
                    values = decode_values(kwargs.get("values"))
                    record, _created = model.upsert(db, values, options)

                    # the upserted row is returned as-is; re-reading by `where` may match another row
                    options.returning = False

                elif action == Action.UPDATE:
                    values = decode_values(kwargs.get("values"))
                    options.limit = 1
                    affected_count, affected_rows = model.update(db, values, options)

                    if affected_count and affected_rows:
                        record = affected_rows[0]

                elif action == Action.DELETE:
                    if options.returning:
                        record = model.find_one(db, options)

                    model.destroy(db, options)

                    # every match of `where` is gone, not just the returned one
                    options.returning = False

                else:
                    values = decode_values(kwargs.get("values"))
                    record = model.create(db, values, options)

                if record is None and options.returning:
                    record = model.find_one(db, options)

            except Exception:
                logger.warning(
                    "%s mutation on %s failed", model_name(model), model.__name__, exc_info=True
                )
                if db is not None:
                    db.rollback()
                record = None

            logger.debug("%s: %s", model_name(model), record)
            return record

        async def mutate_many(*args, **kwargs):

            db = None
            count = None
            rows = None

            try:
                db = session_from(kwargs["info"], model)
                action = kwargs.get("action")

                options = build_options(kwargs.get("options"))
                options.include = model.associations()
                logger.debug("%s %s options: %s", model.__name__, action, options)

                if action == Action.CREATE:
                    rows = model.bulk_create(
                        db, decode_values(kwargs.get("values"), many=True), options
                    )
                    count = len(rows)

                elif action == Action.UPDATE:
                    values = decode_values(kwargs.get("values"))
                    count, rows = model.update(db, values, options)

                elif action == Action.DELETE:
                    if options.returning:
                        rows = model.find_all(db, options)

                    count = model.destroy(db, options)

                    # the rows no longer exist
                    options.returning = False

                else:
                    # READ and UPSERT have no meaning on many records
                    return None

                if rows is None and options.returning:
                    rows = model.find_all(db, options)
                    count = len(rows)

            except Exception:
                logger.warning(
                    "%s mutation on %s failed", plural_name(model), model.__name__, exc_info=True
                )
                if db is not None:
                    db.rollback()
                count = None
                rows = None

            logger.debug("%s: %s rows", plural_name(model), count)
            return model.gql_with_count(count=count, rows=rows)

        inner = mutate_many if plural else mutate_one

        @wraps(inner)
        async def f(*args, **kwargs):
            return await inner(*args, **kwargs)

        # Override signature
        sig = signature(inner)
        sig = sig.replace(
            parameters=self._parameters(),
            return_annotation=(
                Optional[model.gql_with_count] if plural else Optional[model.gql_type]
            ),
        )
        f.__signature__ = sig  # type: ignore

        return f
