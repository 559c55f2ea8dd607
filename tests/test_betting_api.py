"""Tests for the JSON-RPC betting API layered on the session."""

import json
from datetime import datetime, timezone

import pytest

from betfair_session.api import BettingAPI, extend_options
from betfair_session.config import SessionConfig
from betfair_session.errors import APIError, ConfigurationError, DecodeError
from betfair_session.models import EventResult, MarketFilter, Navigation, TimeRange
from tests.helpers.fake_transport import FakeAuthenticator, make_session


CONFIG = SessionConfig()
UK = CONFIG.betting_endpoints["uk"]
AU = CONFIG.betting_endpoints["au"]


@pytest.fixture
def api(account, transport):
    return BettingAPI(make_session(account, transport, authenticator=FakeAuthenticator("tok")))


def sent_body(transport, index=0):
    return json.loads(transport.requests[index].data)


def test_extend_options_layers_defaults():
    merged = extend_options({"maxResults": 10, "locale": "fr"}, {"maxResults": 5}, None)
    assert merged == {"locale": "fr", "exchange": "uk", "maxResults": 5}


@pytest.mark.asyncio
async def test_list_event_types_envelope(api, transport):
    transport.add(UK, {"jsonrpc": "2.0", "result": [{"eventType": {"id": "1", "name": "Soccer"}, "marketCount": 3}]})
    result = await api.list_event_types({"filter": MarketFilter(event_type_ids=["1"])})
    assert result[0].event_type.name == "Soccer"
    assert result[0].market_count == 3
    body = sent_body(transport)
    assert body["jsonrpc"] == "2.0"
    assert body["method"] == "SportsAPING/v1.0/listEventTypes"
    assert body["params"] == {"filter": {"eventTypeIds": ["1"]}, "locale": "en"}


@pytest.mark.asyncio
async def test_exchange_option_selects_endpoint(api, transport):
    transport.add(AU, {"result": []})
    start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    time_range = TimeRange(**{"from": start})
    await api.list_events({"exchange": "AU", "filter": MarketFilter(market_start_time=time_range)})
    (req,) = transport.requests
    assert req.url == AU
    params = sent_body(transport)["params"]
    assert "exchange" not in params
    assert params["filter"]["marketStartTime"]["from"].startswith("2024-05-01T12:00:00")


@pytest.mark.asyncio
async def test_unknown_exchange_fails_before_request(api, transport):
    with pytest.raises(ConfigurationError) as excinfo:
        await api.list_countries({"exchange": "mars"})
    assert "mars" in str(excinfo.value)
    assert transport.requests == []


@pytest.mark.asyncio
async def test_rpc_error_raises_api_error(api, transport):
    transport.add(UK, {"jsonrpc": "2.0", "error": {"code": -32602, "message": "DSC-0018"}})
    with pytest.raises(APIError) as excinfo:
        await api.list_venues()
    assert excinfo.value.code == -32602


@pytest.mark.asyncio
async def test_market_catalogue_defaults(api, transport):
    transport.add(UK, {"result": []})
    await api.list_market_catalogue({"maxResults": 50})
    params = sent_body(transport)["params"]
    assert params["marketProjection"] == ["EVENT", "EVENT_TYPE", "COMPETITION"]
    assert params["maxResults"] == 50
    assert params["filter"] == {}


@pytest.mark.asyncio
async def test_market_book_and_cleared_orders_params(api, transport):
    transport.add(UK, {"result": []})
    await api.list_market_book(["1.234", "1.235"])
    await api.list_cleared_orders("SETTLED")
    assert sent_body(transport, 0)["params"]["marketIds"] == ["1.234", "1.235"]
    assert sent_body(transport, 1)["params"]["betStatus"] == "SETTLED"
    assert sent_body(transport, 1)["method"] == "SportsAPING/v1.0/listClearedOrders"


@pytest.mark.asyncio
async def test_fetch_navigation_uses_locale(api, transport):
    url = CONFIG.navigation_endpoint_format.format(locale="es")
    transport.add(url, {"children": []})
    menu = await api.fetch_navigation({"locale": "es"})
    assert isinstance(menu, Navigation)
    assert menu.children == []
    (req,) = transport.requests
    assert req.method == "GET"
    assert req.url == url


@pytest.mark.asyncio
async def test_listing_results_are_typed(api, transport):
    transport.add(
        UK,
        {"result": [{"competition": {"id": "10932509", "name": "English Premier League"}, "marketCount": 412, "competitionRegion": "GBR"}]},
        {"result": [{"event": {"id": "33012345", "name": "Arsenal v Chelsea", "countryCode": "GB", "openDate": "2024-05-04T16:30:00.000Z"}, "marketCount": 95}]},
        {"result": [{"countryCode": "GB", "marketCount": 1203}]},
        {"result": [{"venue": "Ascot", "marketCount": 14}]},
    )
    (competition,) = await api.list_competitions()
    (event,) = await api.list_events()
    (country,) = await api.list_countries()
    (venue,) = await api.list_venues()
    assert competition.competition.name == "English Premier League"
    assert competition.competition_region == "GBR"
    assert isinstance(event, EventResult)
    assert event.event.country_code == "GB"
    assert event.event.open_date == datetime(2024, 5, 4, 16, 30, tzinfo=timezone.utc)
    assert country.country_code == "GB"
    assert country.market_count == 1203
    assert venue.venue == "Ascot"


@pytest.mark.asyncio
async def test_unexpected_result_shape_is_decode_error(api, transport):
    transport.add(UK, {"result": [{"marketCount": 3}]})
    with pytest.raises(DecodeError):
        await api.list_event_types()


@pytest.mark.asyncio
async def test_navigation_tree_is_parsed(api, transport):
    url = CONFIG.navigation_endpoint_format.format(locale="en")
    transport.add(
        url,
        {
            "type": "GROUP",
            "name": "ROOT",
            "id": 0,
            "children": [
                {
                    "type": "EVENT_TYPE",
                    "name": "Horse Racing",
                    "id": "7",
                    "children": [
                        {
                            "type": "RACE",
                            "name": "Ascot 14:30",
                            "id": "1.2345",
                            "venue": "Ascot",
                            "countryCode": "GB",
                            "children": [
                                {
                                    "type": "MARKET",
                                    "name": "Win",
                                    "id": "1.229871234",
                                    "exchangeId": "1",
                                    "marketType": "WIN",
                                    "marketStartTime": "2024-06-18T13:30:00.000Z",
                                    "numberOfWinners": 1,
                                }
                            ],
                        }
                    ],
                },
                {"type": "GROUP", "name": "Specials", "id": 42},
            ],
        },
    )
    menu = await api.fetch_navigation()
    names = [node.name for node in menu.walk()]
    assert names == ["Horse Racing", "Ascot 14:30", "Win", "Specials"]
    market = menu.children[0].children[0].children[0]
    assert market.market_type == "WIN"
    assert market.exchange_id == "1"
    assert market.number_of_winners == 1
    assert market.market_start_time.year == 2024
    assert menu.children[1].id == 42
