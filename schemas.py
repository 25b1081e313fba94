"""
Request schemas

One pydantic model per endpoint body or query string. Bodies reject unknown
fields; query strings ignore them.
"""
from datetime import date as DateType
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from errors import RequestValidationError
from models import ROLE_USER


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Optional[str] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return value.lower()

    @field_validator("role")
    @classmethod
    def only_default_role(cls, value):
        # Privileged roles are granted out of band, never at signup
        if value not in (None, ROLE_USER):
            raise ValueError(f"role must be '{ROLE_USER}'")
        return value


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class ExpenseCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, populate_by_name=True)

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=255)
    payment_method: str = Field(..., alias="paymentMethod", min_length=1, max_length=50)
    date: DateType

    def to_fields(self):
        return self.model_dump()


class ExpenseUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, populate_by_name=True)

    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1, max_length=255)
    payment_method: Optional[str] = Field(None, alias="paymentMethod", min_length=1, max_length=50)
    date: Optional[DateType] = None

    @field_validator("*", mode="before")
    @classmethod
    def no_nulls(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value

    def to_fields(self):
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)


class DeleteExpensesRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ids: List[Any]

    @field_validator("ids", mode="before")
    @classmethod
    def single_id_as_list(cls, value):
        if value is None:
            return []
        if not isinstance(value, list):
            return [value]
        return value


class ExpenseFilter(BaseModel):
    """Filter part of the query descriptor, shared by listing, stats and export."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, populate_by_name=True)

    category: Optional[str] = None
    payment_method: Optional[str] = Field(None, alias="paymentMethod")
    date_from: Optional[DateType] = Field(None, alias="dateFrom")
    date_to: Optional[DateType] = Field(None, alias="dateTo")


class ExpenseQuery(ExpenseFilter):
    sort: str = "-date"
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)


def _describe(error):
    location = ".".join(str(part) for part in error["loc"]) or "body"
    return {"field": location, "message": error["msg"]}


def parse_model(model_cls, data, message="Invalid request data."):
    """Validate ``data`` against ``model_cls`` or raise a 400 with per-field details."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RequestValidationError("Request body must be a JSON object.")
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(message, details=[_describe(e) for e in exc.errors()]) from exc


def parse_query(model_cls, args):
    """Validate a query string; empty parameters count as absent."""
    data = {key: value for key, value in args.items() if value.strip()}
    return parse_model(model_cls, data, message="Invalid query parameters.")
