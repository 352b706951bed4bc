from __future__ import annotations

from typing import Annotated, Any, Dict, List, Optional, Type, TypeVar

from fastapi import Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from ship_and_weigh.core.errors import ValidationError
from ship_and_weigh.services.recipients import MAX_ADDRESS_LEN, MAX_ADDRESSES

ModelT = TypeVar("ModelT", bound=BaseModel)


async def read_json_object(req: Request) -> Dict[str, Any]:
    """Read the request body as a JSON object.

    Handlers call this themselves so the route's auth dependencies run first.
    """
    try:
        body = await req.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def parse_body(model: Type[ModelT], body: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False), body=body) from exc


class RecipientAddReq(BaseModel):
    model_config = ConfigDict(extra="ignore")
    # Length limits apply to the raw input, before attribute escaping.
    to_address: List[Annotated[str, Field(max_length=MAX_ADDRESS_LEN)]] = Field(min_length=1, max_length=MAX_ADDRESSES)


class RecipientOut(BaseModel):
    id: str
    addresses: List[str]


class RecipientRemoveResp(BaseModel):
    uuid: str
    removed: bool


class RecipientRemoveParams:
    def __init__(self, uuid: str = Query(..., min_length=1, max_length=64)) -> None:
        self.uuid = uuid


class Address(BaseModel):
    street1: Optional[str] = None
    street2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    name: Optional[str] = None
    company: Optional[str] = None


class AddressParams:
    """Query parameters for address verification; each one optional."""

    def __init__(
        self,
        street1: Optional[str] = Query(default=None, max_length=256),
        street2: Optional[str] = Query(default=None, max_length=256),
        city: Optional[str] = Query(default=None, max_length=128),
        state: Optional[str] = Query(default=None, max_length=128),
        zip: Optional[str] = Query(default=None, max_length=32),
        country: Optional[str] = Query(default=None, max_length=64),
        name: Optional[str] = Query(default=None, max_length=256),
        company: Optional[str] = Query(default=None, max_length=256),
    ) -> None:
        self.street1 = street1
        self.street2 = street2
        self.city = city
        self.state = state
        self.zip = zip
        self.country = country
        self.name = name
        self.company = company

    def as_dict(self) -> Dict[str, Optional[str]]:
        return dict(vars(self))


class FieldError(BaseModel):
    field: str
    message: str
    code: Optional[str] = None
    suggestion: Optional[str] = None


class VerificationResult(BaseModel):
    verified: bool
    normalized_address: Optional[Address] = None
    errors: List[FieldError] = Field(default_factory=list)
    provider_id: Optional[str] = None


class NonceResp(BaseModel):
    nonce: str
    expires_in: int


class HealthResp(BaseModel):
    ok: bool
    details: Dict[str, Any] = Field(default_factory=dict)
