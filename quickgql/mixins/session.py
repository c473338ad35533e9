from typing import Any

from sqlalchemy.orm import Session
from strawberry.extensions import SchemaExtension
from strawberry.types import Info

from quickgql.mixins.errors import MissingSessionError


class SessionExtension(SchemaExtension):
    """
    Scopes SQLAlchemy sessions to one GraphQL operation.

    Sessions are opened lazily by `session_from`, one per distinct resource sessionmaker,
    kept in `context["db_sessions"]` and closed when the operation ends.
    A session the caller put in `context["db"]` is used for every resource and left to its owner.
    """

    def on_operation(self):
        context = self.execution_context.context
        if context is None:
            context = self.execution_context.context = {}

        if not isinstance(context, dict) or "db_sessions" in context:
            yield
            return

        sessions: dict[Any, Session] = {}
        context["db_sessions"] = sessions
        try:
            yield
        finally:
            for db in sessions.values():
                db.close()
            del context["db_sessions"]


def session_from(info: Info, model) -> Session:
    context: Any = info.context
    if isinstance(context, dict):
        db = context.get("db")
        sessions = context.get("db_sessions")
    else:
        db = getattr(context, "db", None)
        sessions = getattr(context, "db_sessions", None)

    if db is not None:
        return db
    if sessions is None:
        raise MissingSessionError("No database session in the GraphQL context")

    # resources sharing a sessionmaker share the session
    key = model._sessionmaker
    if key not in sessions:
        sessions[key] = model.open_session()
    return sessions[key]
