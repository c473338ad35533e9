import logging
from operator import eq, ge, gt, le, lt, ne
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, create_model
from sqlalchemy import func
from sqlalchemy.orm import Query, Session, selectinload

from quickgql.mixins.arguments import FindOptions
from quickgql.mixins.base import BaseMixin
from quickgql.mixins.errors import ArgumentError, UnknownFieldError

logger = logging.getLogger(__name__)


OPERATORS = {
    "eq": eq,
    "ne": ne,
    "gt": gt,
    "gte": ge,
    "lt": lt,
    "lte": le,
    "in": lambda col, val: col.in_(val),
    "like": lambda col, val: col.like(val),
    "contains": lambda col, val: col.contains(val),
}


class PersistenceMixin(BaseMixin):
    """
    # Persistence

    The PersistenceMixin is the object the generated resolvers delegate to.
    Every method is a classmethod taking the operation's SQLAlchemy `Session` first,
    so any of them can be overridden on a resource to change how an action is carried out:

    ```python
    class Specie(Base, Resource):
        __tablename__ = "species"

        common_name: Mapped[str] = mapped_column()

        @classmethod
        def find_all(cls, db, options):
            if not options.order:
                options.order = ["common_name"]
            return super().find_all(db, options)
    ```

    ## Where

    `where` maps column names to a literal (equality), `null` (`IS NULL`), a list (`IN`),
    or an object of operators: `eq`, `ne`, `gt`, `gte`, `lt`, `lte`, `in`, `like`, `contains`.
    Literals are coerced to the column's python type.
    """

    _values_model: ClassVar[Optional[type[BaseModel]]] = None

    @classmethod
    def _column(cls, name: str):
        if name not in cls.__table__.columns:
            raise UnknownFieldError(f"{cls.__name__} has no column '{name}'")
        return getattr(cls, name)

    @classmethod
    def _coerce(cls, name: str, value: Any) -> Any:
        try:
            python_type = cls.__table__.columns[name].type.python_type
        except NotImplementedError:
            return value
        try:
            return TypeAdapter(Optional[python_type]).validate_python(value)
        except ValidationError as e:
            raise ArgumentError(f"Invalid value for '{name}': {value!r}") from e

    @classmethod
    def _generate_values_model(cls) -> type[BaseModel]:
        fields: Any = {}
        for c in cls.__table__.columns:
            try:
                fields[c.name] = (Optional[c.type.python_type], None)
            except NotImplementedError:
                fields[c.name] = (Optional[Any], None)

        return create_model(
            "Values" + cls.__name__,
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )

    @classmethod
    def validate_values(cls, values: dict[str, Any]) -> dict[str, Any]:
        if cls.__dict__.get("_values_model") is None:
            cls._values_model = cls._generate_values_model()
        try:
            return cls._values_model.model_validate(values).model_dump(
                exclude_unset=True
            )
        except ValidationError as e:
            raise ArgumentError(f"Invalid values for {cls.__name__}: {e}") from e

    @classmethod
    def _filter(cls, Q: Query, where: dict[str, Any]) -> Query:
        for name, val in where.items():
            col = cls._column(name)

            if isinstance(val, dict):
                for op_name, op_val in val.items():
                    if op_name not in OPERATORS:
                        raise ArgumentError(
                            f"Unknown operator '{op_name}' on '{name}', expected one of {sorted(OPERATORS)}"
                        )
                    if isinstance(op_val, list):
                        op_val = [cls._coerce(name, v) for v in op_val]
                    elif op_name not in ("like", "contains"):
                        op_val = cls._coerce(name, op_val)
                    Q = Q.filter(OPERATORS[op_name](col, op_val))
            elif isinstance(val, list):
                Q = Q.filter(col.in_([cls._coerce(name, v) for v in val]))
            elif val is None:
                Q = Q.filter(col.is_(None))
            else:
                Q = Q.filter(col == cls._coerce(name, val))

        return Q

    @classmethod
    def _include(cls, Q: Query, include: list[str]) -> Query:
        relationships = cls.__mapper__.relationships
        for name in include:
            if name not in relationships:
                raise UnknownFieldError(f"{cls.__name__} has no association '{name}'")
            Q = Q.options(selectinload(getattr(cls, name)))
        return Q

    @classmethod
    def _order(cls, Q: Query, order: list[str]) -> Query:
        for key in order:
            if key.startswith("-"):
                Q = Q.order_by(cls._column(key[1:]).desc())
            else:
                Q = Q.order_by(cls._column(key).asc())
        return Q

    @classmethod
    def _query(cls, db: Session, options: FindOptions, include: bool = True) -> Query:
        Q = db.query(cls)
        if include:
            Q = cls._include(Q, options.include)
        Q = cls._filter(Q, options.where)
        Q = cls._order(Q, options.order)
        return Q

    @classmethod
    def find_by_id(cls, db: Session, id: Any, options: Optional[FindOptions] = None):
        Q = db.query(cls)
        if options is not None:
            Q = cls._include(Q, options.include)
        return Q.filter(cls._column("id") == cls._coerce("id", id)).first()

    @classmethod
    def find_one(cls, db: Session, options: FindOptions):
        Q = cls._query(db, options)
        if options.offset:
            Q = Q.offset(options.offset)
        return Q.first()

    @classmethod
    def find_all(cls, db: Session, options: FindOptions) -> list:
        Q = cls._query(db, options)
        if options.offset:
            Q = Q.offset(options.offset)
        if options.limit is not None:
            Q = Q.limit(options.limit)
        return Q.all()

    @classmethod
    def find_and_count_all(cls, db: Session, options: FindOptions) -> tuple[int, list]:
        # Count total results (without fetching)
        Q = cls._query(db, options, include=False)
        count = db.query(func.count()).select_from(Q.subquery()).scalar()

        return count, cls.find_all(db, options)

    @classmethod
    def create(cls, db: Session, values: dict[str, Any], options: Optional[FindOptions] = None):
        obj = cls(**cls.validate_values(values))

        db.add(obj)
        db.commit()
        db.refresh(obj)

        return obj

    @classmethod
    def bulk_create(
        cls,
        db: Session,
        values: list[dict[str, Any]],
        options: Optional[FindOptions] = None,
    ) -> list:
        objs = [cls(**cls.validate_values(v)) for v in values]

        db.add_all(objs)
        db.commit()
        for obj in objs:
            db.refresh(obj)

        return objs

    @classmethod
    def find_or_create(cls, db: Session, options: FindOptions) -> tuple[Any, bool]:
        obj = cls.find_one(db, options)
        if obj is not None:
            return obj, False

        # only plain equality conditions can seed the new row
        seed = {
            k: v
            for k, v in options.where.items()
            if not isinstance(v, (dict, list))
        }
        return cls.create(db, {**seed, **options.defaults}, options), True

    @classmethod
    def upsert(cls, db: Session, values: dict[str, Any], options: FindOptions) -> tuple[Any, bool]:
        data = cls.validate_values(values)

        obj = None
        if data.get("id") is not None:
            obj = cls.find_by_id(db, data["id"])
        elif options.where:
            obj = cls._query(db, options, include=False).first()

        if obj is None:
            return cls.create(db, data, options), True

        for k, v in data.items():
            setattr(obj, k, v)
        db.commit()
        db.refresh(obj)

        return obj, False

    @classmethod
    def update(cls, db: Session, values: dict[str, Any], options: FindOptions) -> tuple[int, list]:
        data = cls.validate_values(values)

        Q = cls._query(db, options, include=False)
        if options.limit is not None:
            Q = Q.limit(options.limit)
        objs = Q.all()

        for obj in objs:
            for k, v in data.items():
                setattr(obj, k, v)
        db.commit()
        for obj in objs:
            db.refresh(obj)

        return len(objs), objs

    @classmethod
    def destroy(cls, db: Session, options: FindOptions) -> int:
        Q = cls._query(db, options, include=False)
        if options.limit is not None:
            Q = Q.limit(options.limit)
        objs = Q.all()

        for obj in objs:
            db.delete(obj)
        db.commit()

        logger.debug("deleted %d %s rows", len(objs), cls.__name__)
        return len(objs)
