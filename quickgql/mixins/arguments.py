import json
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from quickgql.mixins.errors import ArgumentError


class FindOptions(BaseModel):
    """
    Options accepted by the persistence methods.

    `order` (alias `sort`) is a comma separated string or a list of column names,
    each optionally prefixed with `-` for descending order.
    `defaults` are the extra values used by `find_or_create` when no row matches `where`.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    where: dict[str, Any] = Field(default_factory=dict)
    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)
    order: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("order", "sort")
    )
    include: list[str] = Field(default_factory=list)
    returning: bool = False
    defaults: dict[str, Any] = Field(default_factory=dict)

    @field_validator("order", mode="before")
    @classmethod
    def split_order(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v


def decode_json(value: Any, name: str) -> Any:
    """
    Decode a loosely typed JSON argument.

    Strings are parsed as JSON, anything else is assumed to be decoded already.
    A missing or blank argument decodes to an empty object.
    """

    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        if not value.strip():
            return {}
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ArgumentError(f"Argument '{name}' is not valid JSON: {e.msg}") from e
    return value


def decode_object(value: Any, name: str) -> dict[str, Any]:
    decoded = decode_json(value, name)
    if not isinstance(decoded, dict):
        raise ArgumentError(f"Argument '{name}' must be a JSON object")
    return decoded


def decode_values(value: Any, many: bool = False) -> Union[dict, list[dict]]:
    decoded = decode_json(value, "values")
    if many:
        if not isinstance(decoded, list) or not all(
            isinstance(v, dict) for v in decoded
        ):
            raise ArgumentError("Argument 'values' must be a JSON array of objects")
        return decoded
    if not isinstance(decoded, dict):
        raise ArgumentError("Argument 'values' must be a JSON object")
    return decoded


def build_options(options: Any = None, where: Any = None, **arguments) -> FindOptions:
    """
    Merge top-level resolver arguments, the decoded `where` and the decoded `options`.
    Keys in `options` win over the top-level arguments.
    """

    merged: dict[str, Any] = {k: v for k, v in arguments.items() if v is not None}
    if where is not None:
        merged["where"] = decode_object(where, "where")
    merged.update(decode_object(options, "options"))

    try:
        return FindOptions.model_validate(merged)
    except ValidationError as e:
        raise ArgumentError(f"Argument 'options' is invalid: {e}") from e
