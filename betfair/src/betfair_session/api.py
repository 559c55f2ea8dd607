"""
JSON-RPC betting API built on an authenticated session.

Each listing operation merges the caller's options over per-operation
defaults and the global defaults (``locale="en"``, ``exchange="uk"``),
picks the exchange endpoint, wraps the remaining options in a JSON-RPC
2.0 envelope and returns the ``result`` member of the response.
The event-type, competition, event, country and venue listings and the
navigation menu are validated into Pydantic records; the market and
order calls return decoded JSON.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from .errors import APIError
from .models import (
    CompetitionResult,
    CountryResult,
    EventResult,
    EventTypeResult,
    MarketFilter,
    Navigation,
    RpcRequest,
    RpcResponse,
    VenueResult,
    validate_result,
)
from .session import BetfairSession


logger = logging.getLogger(__name__)

Options = Dict[str, Any]

DEFAULT_OPTIONS: Options = {"locale": "en", "exchange": "uk"}
METHOD_PREFIX = "SportsAPING/v1.0/"


def extend_options(*layers: Optional[Options]) -> Options:
    """Merge option dictionaries left to right over ``DEFAULT_OPTIONS``."""
    merged: Options = dict(DEFAULT_OPTIONS)
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class BettingAPI:
    """Asynchronous client for the Betfair betting API (SportsAPING)."""

    def __init__(self, session: BetfairSession) -> None:
        self.session = session

    def build_request_body(self, method: str, params: Options) -> str:
        request = RpcRequest(method=f"{METHOD_PREFIX}{method}", params=_jsonable(params))
        return request.model_dump_json()

    async def call(self, method: str, options: Options) -> Any:
        """Invoke ``method`` with fully merged ``options`` and return its result.

        The ``exchange`` option selects the endpoint and is not sent as a
        parameter.  Unknown exchanges raise ``ConfigurationError`` before
        any request is made.
        """
        params = dict(options)
        endpoint = self.session.config.betting_endpoint(params.pop("exchange", DEFAULT_OPTIONS["exchange"]))
        body = self.build_request_body(method, params)
        response = await self.session.request_json("POST", endpoint, RpcResponse, body=body)
        if response.error is not None and response.error.code != 0:
            logger.warning("Betfair %s returned error %s", method, response.error.code)
            raise APIError(response.error.code, response.error.message)
        return response.result

    async def list_event_types(self, options: Optional[Options] = None) -> List[EventTypeResult]:
        result = await self.call("listEventTypes", extend_options({"filter": MarketFilter()}, options))
        return validate_result(result, List[EventTypeResult])

    async def list_competitions(self, options: Optional[Options] = None) -> List[CompetitionResult]:
        result = await self.call("listCompetitions", extend_options({"filter": MarketFilter()}, options))
        return validate_result(result, List[CompetitionResult])

    async def list_events(self, options: Optional[Options] = None) -> List[EventResult]:
        result = await self.call("listEvents", extend_options({"filter": MarketFilter()}, options))
        return validate_result(result, List[EventResult])

    async def list_countries(self, options: Optional[Options] = None) -> List[CountryResult]:
        result = await self.call("listCountries", extend_options({"filter": MarketFilter()}, options))
        return validate_result(result, List[CountryResult])

    async def list_venues(self, options: Optional[Options] = None) -> List[VenueResult]:
        result = await self.call("listVenues", extend_options({"filter": MarketFilter()}, options))
        return validate_result(result, List[VenueResult])

    async def list_market_catalogue(self, options: Optional[Options] = None) -> List[Dict[str, Any]]:
        defaults = {
            "filter": MarketFilter(),
            "marketProjection": ["EVENT", "EVENT_TYPE", "COMPETITION"],
            "maxResults": 1000,
        }
        return await self.call("listMarketCatalogue", extend_options(defaults, options))

    async def list_market_book(
        self, market_ids: Sequence[str], options: Optional[Options] = None
    ) -> List[Dict[str, Any]]:
        return await self.call("listMarketBook", extend_options({"marketIds": list(market_ids)}, options))

    async def list_current_orders(self, options: Optional[Options] = None) -> Dict[str, Any]:
        return await self.call("listCurrentOrders", extend_options(options))

    async def list_cleared_orders(self, bet_status: str, options: Optional[Options] = None) -> Dict[str, Any]:
        return await self.call("listClearedOrders", extend_options({"betStatus": bet_status}, options))

    async def fetch_navigation(self, options: Optional[Options] = None) -> Navigation:
        """Download the navigation menu tree for the configured locale."""
        locale = extend_options(options)["locale"]
        endpoint = self.session.config.navigation_endpoint_format.format(locale=locale)
        return await self.session.request_json("GET", endpoint, Navigation)
