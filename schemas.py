"""Pydantic schemas for request bodies."""

from typing import Annotated, Literal, Optional

import pydantic
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from errors import ValidationError
from models import MAX_QUANTITY


NeedType = Literal["food", "shelter", "medical", "water", "other"]
Urgency = Literal["high", "medium", "low"]
Role = Literal["individual", "worker", "admin"]


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


def _normalize_email(value):
    value = value.strip().lower()
    if "@" not in value or value.startswith("@") or value.endswith("@"):
        raise ValueError("must be a valid email address")
    return value


Email = Annotated[str, AfterValidator(_normalize_email)]
RecordId = Annotated[int, Field(le=MAX_QUANTITY)]


# ---------- Auth & users ----------
class SignupIn(RequestModel):
    email: Email
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=200)
    role: Literal["individual", "worker"] = "individual"


class LoginIn(RequestModel):
    email: Email
    password: str


class AdminUserCreateIn(RequestModel):
    email: Email
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=200)
    role: Role


class UserUpdates(RequestModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[Email] = None
    role: Optional[Role] = None
    organization_id: Optional[RecordId] = Field(default=None, alias="organizationId")


class AdminUserUpdateIn(RequestModel):
    user_id: RecordId = Field(alias="userId")
    updates: UserUpdates


class UserIdIn(RequestModel):
    user_id: RecordId = Field(alias="userId")


class RoleChangeIn(RequestModel):
    role: Role


# ---------- Needs & dispatches ----------
class LocationIn(RequestModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class NeedCreateIn(RequestModel):
    type: NeedType
    description: str = Field(min_length=10, max_length=500)
    urgency: Urgency = "medium"
    location: LocationIn
    required_quantity: Optional[int] = Field(default=None, ge=1, le=MAX_QUANTITY, alias="requiredQuantity")


class FulfillIn(RequestModel):
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class DispatchCreateIn(RequestModel):
    eta: int = Field(ge=1, le=MAX_QUANTITY)
    resource_amount: int = Field(ge=1, le=MAX_QUANTITY, alias="resourceAmount")


class MarkReachedIn(RequestModel):
    dispatch_id: RecordId = Field(alias="dispatchId")


class DispatchStatusIn(RequestModel):
    status: Literal["reached", "cancelled"]


# ---------- Stock ----------
class StockAddIn(RequestModel):
    type: NeedType
    quantity: int = Field(ge=1, le=MAX_QUANTITY)


class StockSetIn(RequestModel):
    type: NeedType
    quantity: int = Field(ge=0, le=MAX_QUANTITY)


# ---------- Organizations ----------
class OrganizationIn(RequestModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    contact_email: Email = Field(alias="contactEmail")
    contact_phone: Optional[str] = Field(default=None, alias="contactPhone")
    address: Optional[str] = None
    website: Optional[str] = None


class OrganizationUpdateIn(RequestModel):
    organization_id: RecordId = Field(alias="organizationId")
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, min_length=1)
    contact_email: Optional[Email] = Field(default=None, alias="contactEmail")
    contact_phone: Optional[str] = Field(default=None, alias="contactPhone")
    address: Optional[str] = None
    website: Optional[str] = None


class OrganizationIdIn(RequestModel):
    organization_id: RecordId = Field(alias="organizationId")


class MemberIn(RequestModel):
    member_id: RecordId = Field(alias="memberId")


# ---------- Resources ----------
class ResourceIn(RequestModel):
    type: NeedType
    quantity: int = Field(ge=0, le=MAX_QUANTITY)
    location: LocationIn
    status: Literal["available", "in-transit", "depleted"] = "available"
    organization_id: Optional[RecordId] = Field(default=None, alias="organizationId")


class ResourceStatusIn(RequestModel):
    resource_id: RecordId = Field(alias="resourceId")
    status: Literal["available", "in-transit", "depleted"]


class AssignIn(RequestModel):
    need_id: RecordId = Field(alias="needId")
    eta: int = Field(ge=1, le=MAX_QUANTITY)


def format_errors(exc):
    """Flatten a pydantic ValidationError into one readable message"""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "is invalid")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


def load(schema, payload):
    """
    Validate a decoded JSON body against a schema

    Raises:
        ValidationError: when the body is missing or does not satisfy the schema
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(format_errors(exc)) from None
