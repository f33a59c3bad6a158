"""Google Directions / Distance Matrix adapter with a fake HTTP session."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from routewise.modules.tool_usage.directions_tool import (
    DirectionsTool,
    LiveRoute,
    NoDataAvailable,
    RouteProviderChain,
    RouteProviderConfig,
    Unavailable,
)
from routewise.schemas.itinerary import GeoPoint

ORIGIN = GeoPoint(28.6139, 77.2090)
DEST = GeoPoint(28.6562, 77.2410)

DIRECTIONS_OK = {
    "status": "OK",
    "routes": [{
        "overview_polyline": {"points": "a~l~Fjk~uOwHJy@P"},
        "legs": [{
            "distance": {"value": 12500},
            "duration": {"value": 1800},
            "steps": [{
                "html_instructions": "Head <b>north</b> on <b>Janpath</b>",
                "distance": {"value": 500},
                "duration": {"value": 60},
            }],
        }],
    }],
}


def _session(payload=None, get_error=None, http_error=None) -> MagicMock:
    session = MagicMock()
    if get_error is not None:
        session.get.side_effect = get_error
        return session
    response = MagicMock()
    response.json.return_value = payload
    if http_error is not None:
        response.raise_for_status.side_effect = http_error
    session.get.return_value = response
    return session


def _tool(session) -> DirectionsTool:
    return DirectionsTool(RouteProviderConfig(api_key="test-key"), session=session)


# ── Configuration ─────────────────────────────────────────────────────────────

def test_missing_key_means_unavailable():
    session = _session(DIRECTIONS_OK)
    tool = DirectionsTool(RouteProviderConfig(api_key=""), session=session)
    assert not tool.available
    result = tool.lookup(ORIGIN, DEST)
    assert isinstance(result, Unavailable)
    assert result.reason == "missing credentials"
    assert tool.fetch_live_route(ORIGIN, DEST) is None
    session.get.assert_not_called()


def test_config_from_env_defaults():
    cfg = RouteProviderConfig.from_env()
    assert cfg.api_key == ""
    assert cfg.directions_timeout_s == 15.0
    assert cfg.matrix_timeout_s == 10.0


# ── Directions ────────────────────────────────────────────────────────────────

def test_successful_lookup():
    session = _session(DIRECTIONS_OK)
    route = _tool(session).fetch_live_route(ORIGIN, DEST)

    assert isinstance(route, LiveRoute)
    assert route.distance_km == pytest.approx(12.5)
    assert route.duration_minutes == pytest.approx(30.0)
    assert route.polyline == "a~l~Fjk~uOwHJy@P"
    assert route.instructions[0]["instruction"] == "Head north on Janpath"

    _, kwargs = session.get.call_args
    assert kwargs["timeout"] == 15.0
    assert kwargs["params"]["origin"] == "28.6139,77.209"
    assert kwargs["params"]["key"] == "test-key"


def test_timeout():
    result = _tool(_session(get_error=requests.Timeout())).lookup(ORIGIN, DEST)
    assert isinstance(result, Unavailable)
    assert result.reason == "timeout"


def test_connection_error():
    result = _tool(_session(get_error=requests.ConnectionError("refused"))).lookup(ORIGIN, DEST)
    assert isinstance(result, Unavailable)
    assert result.reason.startswith("request failed")


def test_http_error_status():
    tool = _tool(_session({}, http_error=requests.HTTPError("503 Server Error")))
    assert tool.fetch_live_route(ORIGIN, DEST) is None


def test_non_json_body():
    session = _session()
    session.get.return_value.json.side_effect = ValueError("no json")
    result = _tool(session).lookup(ORIGIN, DEST)
    assert result.reason == "response is not JSON"


@pytest.mark.parametrize("payload", [
    {"status": "ZERO_RESULTS", "routes": []},
    {"status": "REQUEST_DENIED"},
    ["not", "a", "dict"],
])
def test_non_ok_status(payload):
    result = _tool(_session(payload)).lookup(ORIGIN, DEST)
    assert isinstance(result, Unavailable)
    assert result.reason.startswith("status=")


@pytest.mark.parametrize("payload", [
    {"status": "OK", "routes": []},
    {"status": "OK", "routes": [{"legs": [{"distance": {}}]}]},
    {"status": "OK", "routes": [{"legs": [{"distance": {"value": "far"}, "duration": {"value": 1}}]}]},
])
def test_malformed_payload(payload):
    result = _tool(_session(payload)).lookup(ORIGIN, DEST)
    assert isinstance(result, Unavailable)
    assert result.reason == "malformed payload"


# ── Distance matrix ───────────────────────────────────────────────────────────

def test_distance_matrix_cells():
    payload = {
        "status": "OK",
        "rows": [{"elements": [
            {"status": "OK", "distance": {"value": 3000}, "duration": {"value": 600},
             "duration_in_traffic": {"value": 900}},
            {"status": "NOT_FOUND"},
        ]}],
    }
    session = _session(payload)
    matrix = _tool(session).fetch_distance_matrix([ORIGIN], [DEST, ORIGIN])

    assert matrix[0][0].distance_km == pytest.approx(3.0)
    assert matrix[0][0].duration_minutes == pytest.approx(10.0)
    assert matrix[0][0].duration_in_traffic_minutes == pytest.approx(15.0)
    assert matrix[0][1] is None
    _, kwargs = session.get.call_args
    assert kwargs["timeout"] == 10.0
    assert kwargs["params"]["destinations"] == "28.6562,77.241|28.6139,77.209"


def test_distance_matrix_failure_is_none():
    assert _tool(_session(get_error=requests.Timeout())).fetch_distance_matrix([ORIGIN], [DEST]) is None
    assert _tool(_session({"status": "OVER_QUERY_LIMIT"})).fetch_distance_matrix([ORIGIN], [DEST]) is None


def test_distance_matrix_short_rows_pad_with_none():
    matrix = _tool(_session({"status": "OK", "rows": []})).fetch_distance_matrix([ORIGIN, DEST], [DEST])
    assert matrix == [[None], [None]]


# ── Provider chain ────────────────────────────────────────────────────────────

def _provider(name, answer):
    p = MagicMock()
    p.name = name
    p.available = True
    p.lookup.return_value = answer
    return p


def test_chain_first_live_answer_wins():
    live = LiveRoute(4.0, 9.0, provider="second")
    first = _provider("first", Unavailable("first", "timeout"))
    second = _provider("second", live)
    third = _provider("third", LiveRoute(1.0, 1.0))

    assert RouteProviderChain([first, second, third]).resolve(ORIGIN, DEST) is live
    third.lookup.assert_not_called()


def test_chain_exhausted():
    chain = RouteProviderChain([
        _provider("a", Unavailable("a", "timeout")),
        _provider("b", Unavailable("b", "missing credentials")),
    ])
    result = chain.resolve(ORIGIN, DEST)
    assert isinstance(result, NoDataAvailable)
    assert len(result.attempts) == 2
    assert "a: timeout" in result.reason
    assert "b: missing credentials" in result.reason


def test_empty_chain():
    result = RouteProviderChain([]).resolve(ORIGIN, DEST)
    assert isinstance(result, NoDataAvailable)
    assert result.reason == "no route providers configured"


def test_chain_cache_hit_skips_providers():
    cached = LiveRoute(2.0, 3.0, provider="cache")
    cache = MagicMock()
    cache.lookup.return_value = cached
    provider = _provider("live", LiveRoute(9.0, 9.0))

    assert RouteProviderChain([provider], cache=cache).resolve(ORIGIN, DEST) is cached
    provider.lookup.assert_not_called()


def test_chain_cache_miss_writes_back():
    live = LiveRoute(2.0, 3.0)
    cache = MagicMock()
    cache.lookup.return_value = Unavailable("redis_cache", "cache miss")
    chain = RouteProviderChain([_provider("live", live)], cache=cache)

    assert chain.resolve(ORIGIN, DEST) is live
    cache.store.assert_called_once_with(ORIGIN, DEST, live)
