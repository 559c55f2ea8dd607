"""
Data models for the Betfair session client using Pydantic.

The account descriptor is immutable once built.  Identity-service
responses are validated here so that a body with the wrong shape is
reported as a decode failure rather than surfacing as a ``KeyError``
deep inside the session.  Market filters serialise to the camelCase
keys expected by the betting API.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import DecodeError


SUCCESS = "SUCCESS"

ModelT = TypeVar("ModelT", bound=BaseModel)


class LoginMethod(str, Enum):
    """Credential presentation strategy used at login."""

    INTERACTIVE = "interactive"
    CERTIFICATE = "certificate"


class Account(BaseModel):
    """Credentials and login preferences for one Betfair identity."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(default="", repr=False)
    application_key: str = Field(..., description="Value sent in the X-Application header")
    cert_file: Optional[str] = Field(default=None, description="PEM client certificate for certificate login")
    key_file: Optional[str] = Field(default=None, description="PEM private key matching ``cert_file``")
    keep_alive: bool = False
    login_method: LoginMethod = LoginMethod.INTERACTIVE

    @property
    def uses_certificate(self) -> bool:
        return self.login_method is LoginMethod.CERTIFICATE


class InteractiveLoginResponse(BaseModel):
    """Body returned by the interactive login endpoint."""

    status: str
    token: str = ""
    product: Optional[str] = None
    error: Optional[str] = None


class CertificateLoginResponse(BaseModel):
    """Body returned by the certificate login endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    login_status: str = Field(..., alias="loginStatus")
    session_token: str = Field(default="", alias="sessionToken")


class KeepAliveResponse(BaseModel):
    """Body returned by the keep-alive endpoint."""

    status: str
    token: str = ""
    product: Optional[str] = None
    error: Optional[str] = None


class RpcRequest(BaseModel):
    """JSON-RPC 2.0 envelope for betting API calls."""

    jsonrpc: str = "2.0"
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)
    id: int = 1


class RpcError(BaseModel):
    code: int = 0
    message: str = ""


class RpcResponse(BaseModel):
    jsonrpc: Optional[str] = None
    result: Any = None
    error: Optional[RpcError] = None
    id: Optional[int] = None


class TimeRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: Optional[datetime] = Field(default=None, alias="from")
    to: Optional[datetime] = None


class MarketFilter(BaseModel):
    """Selection criteria shared by the listing operations."""

    model_config = ConfigDict(populate_by_name=True)

    text_query: Optional[str] = Field(default=None, alias="textQuery")
    exchange_ids: Optional[List[str]] = Field(default=None, alias="exchangeIds")
    event_type_ids: Optional[List[str]] = Field(default=None, alias="eventTypeIds")
    event_ids: Optional[List[str]] = Field(default=None, alias="eventIds")
    competition_ids: Optional[List[str]] = Field(default=None, alias="competitionIds")
    market_ids: Optional[List[str]] = Field(default=None, alias="marketIds")
    venues: Optional[List[str]] = None
    bsp_only: Optional[bool] = Field(default=None, alias="bspOnly")
    turn_in_play_enabled: Optional[bool] = Field(default=None, alias="turnInPlayEnabled")
    in_play_only: Optional[bool] = Field(default=None, alias="inPlayOnly")
    market_betting_types: Optional[List[str]] = Field(default=None, alias="marketBettingTypes")
    market_countries: Optional[List[str]] = Field(default=None, alias="marketCountries")
    market_type_codes: Optional[List[str]] = Field(default=None, alias="marketTypeCodes")
    market_start_time: Optional[TimeRange] = Field(default=None, alias="marketStartTime")
    with_orders: Optional[List[str]] = Field(default=None, alias="withOrders")


class EventType(BaseModel):
    id: str
    name: str = ""


class EventTypeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    market_count: int = Field(default=0, alias="marketCount")
    event_type: EventType = Field(..., alias="eventType")


class Competition(BaseModel):
    id: str
    name: str = ""


class CompetitionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    market_count: int = Field(default=0, alias="marketCount")
    competition: Competition
    competition_region: Optional[str] = Field(default=None, alias="competitionRegion")


class Event(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    timezone: Optional[str] = None
    venue: Optional[str] = None
    open_date: Optional[datetime] = Field(default=None, alias="openDate")


class EventResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    market_count: int = Field(default=0, alias="marketCount")
    event: Event


class CountryResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    market_count: int = Field(default=0, alias="marketCount")
    country_code: str = Field(..., alias="countryCode")


class VenueResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    market_count: int = Field(default=0, alias="marketCount")
    venue: str


class NavigationNode(BaseModel):
    """One node of the navigation menu; markets are leaves."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    name: str = ""
    id: Union[str, int] = ""
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    exchange_id: Optional[str] = Field(default=None, alias="exchangeId")
    market_type: Optional[str] = Field(default=None, alias="marketType")
    market_start_time: Optional[datetime] = Field(default=None, alias="marketStartTime")
    number_of_winners: Any = Field(default=None, alias="numberOfWinners")
    children: List["NavigationNode"] = Field(default_factory=list)


NavigationNode.model_rebuild()


class Navigation(BaseModel):
    children: List[NavigationNode] = Field(default_factory=list)

    def walk(self) -> Iterator[NavigationNode]:
        """Yield every node depth-first."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def parse_model(body: bytes, model: Type[ModelT]) -> ModelT:
    """Decode a JSON response body into ``model``.

    Raises ``DecodeError`` if the body is not JSON or does not fit the model.
    """
    try:
        data = json.loads(body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"Response is not valid JSON: {exc}", body=body) from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected {model.__name__} shape: {exc}", body=body) from exc


def validate_result(data: Any, type_: Any) -> Any:
    """Validate an already-decoded JSON-RPC ``result`` against ``type_``."""
    try:
        return TypeAdapter(type_).validate_python(data)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected result shape: {exc}") from exc


__all__ = [
    "SUCCESS",
    "parse_model",
    "validate_result",
    "LoginMethod",
    "Account",
    "InteractiveLoginResponse",
    "CertificateLoginResponse",
    "KeepAliveResponse",
    "RpcRequest",
    "RpcError",
    "RpcResponse",
    "TimeRange",
    "MarketFilter",
    "EventType",
    "EventTypeResult",
    "Competition",
    "CompetitionResult",
    "Event",
    "EventResult",
    "CountryResult",
    "VenueResult",
    "NavigationNode",
    "Navigation",
]
