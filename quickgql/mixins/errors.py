import logging

from graphql import GraphQLError
from pydantic import ValidationError
from sqlalchemy.orm.exc import NoResultFound

logger = logging.getLogger(__name__)


class QuickGQLError(Exception):
    pass


class ArgumentError(QuickGQLError, ValueError):
    """A `where`, `options` or `values` argument could not be decoded or validated."""


class UnknownFieldError(QuickGQLError, ValueError):
    """A column or association name that the model does not declare."""


class MissingSessionError(QuickGQLError):
    pass


def default_error_handler(e: Exception) -> GraphQLError:
    if isinstance(e, GraphQLError):
        return e
    if isinstance(e, (QuickGQLError, ValidationError)):
        return GraphQLError(str(e), original_error=e)
    if isinstance(e, NoResultFound):
        return GraphQLError("Resource not found", original_error=e)
    logger.error("Unhandled error in query resolver", exc_info=e)
    return GraphQLError("Internal server error", original_error=e)
