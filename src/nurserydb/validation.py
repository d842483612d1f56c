"""Request schemas checked before anything reaches the builder (pydantic)."""

from __future__ import annotations

from typing import Annotated, Any, Literal, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from nurserydb.errors import ValidationError
from nurserydb.roles import Role, normalize_role
from nurserydb.sql.builder import Statement, build_delete, build_insert, build_update
from nurserydb.sql.dialects import ACCESS, Dialect

M = TypeVar("M", bound=BaseModel)

TableName = Annotated[str, Field(min_length=1, max_length=64)]

_CANONICAL_ROLES = {r.value for r in Role}


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class InsertRequest(_Request):
    op: Literal["insert"] = "insert"
    table: TableName
    data: dict[str, Any] = Field(min_length=1)

    def statement(self, dialect: Dialect = ACCESS) -> Statement:
        return build_insert(self.table, self.data, dialect=dialect)


class UpdateRequest(_Request):
    op: Literal["update"] = "update"
    table: TableName
    data: dict[str, Any] = Field(min_length=1)
    where: dict[str, Any] = Field(default_factory=dict)
    all: bool = False

    def statement(self, dialect: Dialect = ACCESS) -> Statement:
        return build_update(self.table, self.data, self.where, allow_all=self.all, dialect=dialect)


class DeleteRequest(_Request):
    op: Literal["delete"] = "delete"
    table: TableName
    where: dict[str, Any] = Field(default_factory=dict)
    all: bool = False

    def statement(self, dialect: Dialect = ACCESS) -> Statement:
        return build_delete(self.table, self.where, allow_all=self.all, dialect=dialect)


WriteRequest = Annotated[
    InsertRequest | UpdateRequest | DeleteRequest, Field(discriminator="op")
]


class BatchRequest(_Request):
    operations: list[WriteRequest] = Field(min_length=1)


class TokenRequest(_Request):
    subject: str = Field(min_length=1)
    email: str | None = Field(default=None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    roles: list[str] = Field(min_length=1)

    @field_validator("roles")
    @classmethod
    def _known_roles(cls, roles: list[str]) -> list[str]:
        normalized = [normalize_role(r) for r in roles]
        unknown = [r for r, n in zip(roles, normalized, strict=True) if n not in _CANONICAL_ROLES]
        if unknown:
            raise ValueError(f"unknown role(s): {', '.join(unknown)}")
        return normalized


def _field(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def validate_payload(model: type[M], payload: object) -> M:
    """Validate ``payload`` against ``model``.

    pydantic errors become a ValidationError whose details list every
    failing field.
    """
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        details = [{"field": _field(err["loc"]), "message": err["msg"]} for err in e.errors()]
        first = details[0] if details else {"field": "", "message": "invalid input"}
        message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        raise ValidationError(message, details) from e
