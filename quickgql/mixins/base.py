from abc import ABC, abstractmethod
from typing import Callable, Optional
from uuid import UUID

import strawberry
from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings

from quickgql.mixins.utils import model_name, plural_name


class EnvSettings(BaseSettings):
    """
    Database and GraphQL settings to load automatically from environment variables.
    """

    POSTGRES_DB_SCHEME: Optional[str] = None
    POSTGRES_DB_USER: Optional[str] = None
    POSTGRES_DB_PASSWORD: Optional[str] = None
    POSTGRES_DB_HOST: Optional[str] = None
    POSTGRES_DB_PORT: Optional[int] = None
    POSTGRES_DB_NAME: Optional[str] = None

    SQLITE_DB_PATH: Optional[str] = None

    pg_dsn: Optional[PostgresDsn] = Field(default=None, validate_default=True)

    DB_PATH: Optional[str] = Field(default=None, validate_default=True)

    # default ID type
    QUICKGQL_ID_TYPE: Optional[type] = None

    # graphql endpoint
    QUICKGQL_PATH: str = "/graphql"
    QUICKGQL_GRAPHIQL: bool = True

    @field_validator("pg_dsn", mode="after")
    @classmethod
    def set_pg_dsn(cls, v, info):
        if v is None and info.data.get("POSTGRES_DB_HOST"):
            try:
                return PostgresDsn.build(
                    scheme=info.data["POSTGRES_DB_SCHEME"] or "postgresql",
                    username=info.data["POSTGRES_DB_USER"],
                    password=info.data["POSTGRES_DB_PASSWORD"],
                    host=info.data["POSTGRES_DB_HOST"],
                    port=info.data["POSTGRES_DB_PORT"],
                    path=info.data["POSTGRES_DB_NAME"],
                )
            except ValueError:
                return None
        return v

    @field_validator("DB_PATH", mode="after")
    @classmethod
    def set_db_path(cls, v, info):
        if not v:
            if info.data.get("pg_dsn"):
                return str(info.data["pg_dsn"])
            elif info.data.get("SQLITE_DB_PATH"):
                return "sqlite:///" + info.data["SQLITE_DB_PATH"]
            else:
                return None
        return v

    @field_validator("QUICKGQL_ID_TYPE", mode="before")
    @classmethod
    def set_id_type(cls, v):
        if v:
            if isinstance(v, str):
                if v.lower() == "str":
                    return str
                elif v.lower() == "int":
                    return int
                elif v.lower() == "uuid":
                    return UUID
                else:
                    raise ValueError(
                        "ENV(QUICKGQL_ID_TYPE) must be one of 'str', 'int', or 'uuid'"
                    )
            elif v in (str, int, UUID):
                return v
            else:
                raise ValueError("ENV(QUICKGQL_ID_TYPE) must be a string")
        return v


class BaseMixin:
    pass


class GQLFieldFactory(ABC):
    """
    Builds the singular and plural GraphQL fields of one root type (Query or Mutation) for a model.
    """

    ROOT: str
    CFG_NAME: str
    resolvers: dict[str, Callable]
    descriptions: dict[str, Optional[str]]

    def __init__(self, model):

        singular, plural = model_name(model), plural_name(model)
        if singular == plural:
            raise ValueError(
                f"{model.__name__} has no distinct plural, both {self.ROOT} fields would be named '{singular}'"
            )

        cfg = getattr(model, self.CFG_NAME)
        self.resolvers = {
            singular: self.resolver_factory(model),
            plural: self.resolver_factory(model, plural=True),
        }
        self.descriptions = {
            singular: cfg.description,
            plural: cfg.plural_description,
        }
        self.schema = self.schema_fragment(model)

    @abstractmethod
    def resolver_factory(self, model, plural: bool = False) -> Callable: ...  # noqa: E704

    @abstractmethod
    def schema_fragment(self, model) -> str: ...  # noqa: E704

    @property
    def fields(self) -> dict:
        return {
            name: strawberry.field(
                resolver=resolver, name=name, description=self.descriptions.get(name)
            )
            for name, resolver in self.resolvers.items()
        }


env_settings = EnvSettings()
