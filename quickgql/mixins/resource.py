from abc import ABC
from contextlib import contextmanager
from typing import Any, Callable, ClassVar, Generator, Optional, Type
from uuid import UUID, uuid4

import strawberry
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.types import Uuid

from quickgql.mixins.base import env_settings
from quickgql.mixins.errors import default_error_handler
from quickgql.mixins.mutation import MutationMixin
from quickgql.mixins.persistence import PersistenceMixin
from quickgql.mixins.query import QueryMixin
from quickgql.mixins.scalars import Json
from quickgql.mixins.utils import type_name, with_count_name


def nullraise(*args, **kwargs):
    raise ValueError("No sessionmaker declared - pass one to build_resource or set DB_PATH")


def default_sessionmaker():
    if env_settings.DB_PATH:
        engine = create_engine(env_settings.DB_PATH, echo=False)
        return sessionmaker(bind=engine)
    else:
        return nullraise


class ResourceParams(ABC):
    """
    The ResourceParams class is an abstract class that defines shared parameters for the GraphQL type of the resource.

    The `serialize` attribute is a list of associations (relationships) that should be exposed as fields on the resource's GraphQL type.
    Every association is always eager-loaded by the generated resolvers, but only serialized ones can be selected by a client.

    !!! warning
        Serialized related objects are also, in-turn, exposed with their own serialized associations,
        so a client can request deeply nested selections. If the number of related objects is unknown,
        the response size can grow outside of the expected bounds.

    `pop_params` can be used to exclude certain columns from the resource's GraphQL type.

    Attributes:
        serialize (list[str]): A list of associations to be included on the resource's GraphQL type.
        pop_params (list[str]): A list of columns that should be excluded from the GraphQL type.

    ## Example

    ```python
    from sqlalchemy.orm import Mapped, mapped_column, relationship

    from quickgql import Base, Resource, ResourceParams


    class Student(Base, Resource):
        __tablename__ = "students"

        first_name: Mapped[str] = mapped_column()
        dark_secret: Mapped[str] = mapped_column()
        courses: Mapped[list["Course"]] = relationship(secondary="enrolments")

        class resource_cfg(ResourceParams):
            serialize = ["courses"]
            pop_params = ["dark_secret"]
    ```
    """

    serialize: list[str] = []
    pop_params: list[str] = []


class Base(DeclarativeBase):
    pass


class ResourceBaseStr:
    id: Mapped[str] = mapped_column(primary_key=True)


class ResourceBaseUUID:
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )


class ResourceBaseInt:
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


def _resource_base(id_type: Optional[type]) -> Type[object]:
    if id_type is None or id_type is int:
        return ResourceBaseInt
    elif id_type is str:
        return ResourceBaseStr
    elif id_type is UUID:
        return ResourceBaseUUID
    raise ValueError(f"id_type must be str, uuid.UUID, or int, got {id_type}")


def _gql_python_type(column) -> Any:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return Json
    if python_type in (dict, list):
        return Json
    return python_type


class ResourceMixin:
    """
    The Resource class is a mixin that exposes a SQLAlchemy model through generated GraphQL queries and mutations.
    """

    _sessionmaker: ClassVar[Callable]
    _error_handler: ClassVar[Callable]
    _id_type: ClassVar[type]

    gql_type: ClassVar[type]
    gql_with_count: ClassVar[type]

    class resource_cfg(ResourceParams):
        pass

    @classmethod
    def associations(cls) -> list[str]:
        return [r.key for r in cls.__mapper__.relationships]

    @classmethod
    def build_gql_types(cls) -> None:
        """
        Create the (not yet decorated) GraphQL object types for the resource.
        Relationship fields are added by `link_gql_types`, once every resource's type exists.
        """

        # resolvers built for previous types are stale
        cls._query_factory = None
        cls._mutation_factory = None

        annotations: dict[str, Any] = {}
        for c in cls.__table__.columns:
            if c.name in cls.resource_cfg.pop_params:
                continue
            python_type = _gql_python_type(c)
            annotations[c.name] = Optional[python_type] if c.nullable else python_type

        cls.gql_type = type(
            type_name(cls),
            (object,),
            {"__annotations__": annotations, "__module__": cls.__module__},
        )

    @classmethod
    def link_gql_types(cls) -> None:

        annotations = cls.gql_type.__annotations__
        defaults: dict[str, Any] = {}

        for r in cls.__mapper__.relationships:
            if r.key in cls.resource_cfg.serialize:
                related = getattr(r.mapper.class_, "gql_type", None)
                if related is None:
                    raise ValueError(
                        f"{cls.__name__}.{r.key} relates to {r.mapper.class_.__name__}, which is not a mounted resource"
                    )
                if r.uselist:
                    annotations[r.key] = list[related]
                else:
                    annotations[r.key] = Optional[related]
                    defaults[r.key] = None

        unknown = set(cls.resource_cfg.serialize) - set(cls.associations())
        if unknown:
            raise ValueError(
                f"Cannot serialize {sorted(unknown)} on {cls.__name__} - only associations are supported"
            )

        for key, value in defaults.items():
            setattr(cls.gql_type, key, value)

        cls.gql_type = strawberry.type(cls.gql_type)

        cls.gql_with_count = strawberry.type(
            type(
                with_count_name(cls),
                (object,),
                {
                    "__annotations__": {
                        "offset": Optional[int],
                        "limit": Optional[int],
                        "count": Optional[int],
                        "rows": Optional[list[cls.gql_type]],
                    },
                    "__module__": cls.__module__,
                    "offset": None,
                    "limit": None,
                    "count": None,
                    "rows": None,
                },
            )
        )

    @classmethod
    def open_session(cls) -> Session:
        # loaded attributes must stay readable after commit, including on deleted rows
        return cls._sessionmaker(expire_on_commit=False)

    @classmethod
    @contextmanager
    def db_session(cls) -> Generator[Session, None, None]:
        db = None
        try:
            db = cls.open_session()
            yield db
        finally:
            if db is not None:
                db.close()


def build_resource(
    sessionmaker: Callable = nullraise,
    id_type: type = int,
    error_handler: Callable = default_error_handler,
) -> type:
    """
    Ths method builds a resource class with the given parameters.
    Accepts a user-defined `sessionmaker` that is used to open one database session per GraphQL operation.
    The sessionmaker must accept SQLAlchemy `Session` keyword arguments.

    ## Primary Key

    The id_type parameter can be `str`, `uuid.UUID`, or `int`, which will determine the type of the resource's ID.
    If str, resources will need to be provided with a unique string ID.
    If UUID or Int, resources will be automatically provided with a UUID or Int ID, respectively.

    ## Error Handling

    An `error_handler` can be provided to turn errors raised inside query resolvers into GraphQL errors.
    By default, the `default_error_handler` is used.
    Mutation resolvers never raise: failures are logged and collapse to a null result.

    Args:
        sessionmaker (Callable): A callable that returns a SQLAlchemy session.
        id_type (type): The type of the resource's ID. Must be str, uuid.UUID, or int.
        error_handler (Callable): A callable that maps an exception to a GraphQLError.

    Returns:
        type: A Resource class.

    """

    ResourceBase = _resource_base(id_type)

    class Resource(
        ResourceBase,  # type: ignore
        ResourceMixin,
        PersistenceMixin,
        QueryMixin,
        MutationMixin,
    ):

        _id_type = id_type
        _sessionmaker = sessionmaker
        _error_handler = error_handler

    return Resource


class Resource(
    _resource_base(env_settings.QUICKGQL_ID_TYPE),  # type: ignore
    ResourceMixin,
    PersistenceMixin,
    QueryMixin,
    MutationMixin,
):
    """
    A default Resource class that takes its ID type from `QUICKGQL_ID_TYPE` (int by default)
    and builds a default sessionmaker from environment variables.
    """

    _id_type = env_settings.QUICKGQL_ID_TYPE or int
    _sessionmaker = default_sessionmaker()
    _error_handler = default_error_handler
