import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from errors import UpstreamFailure
from models import AreaLocation, PointLocation
from services.overpass import OverpassClient, build_query, normalize

OVERPASS_URL = "https://overpass.test/api/interpreter"

SAMPLE_RESPONSE = {
    "version": 0.6,
    "elements": [
        {
            "type": "node",
            "id": 101,
            "lat": 47.1287,
            "lon": 10.2684,
            "tags": {"amenity": "bar", "name": "MooserWirt", "website": "https://mooserwirt.at"},
        },
        {
            "type": "way",
            "id": 202,
            "center": {"lat": 47.1290, "lon": 10.2650},
            "tags": {"amenity": "pub", "name": "Krazy Kanguruh", "contact:website": "https://krazykanguruh.at"},
        },
        {"type": "node", "id": 303},
    ],
}


def make_client(handler) -> OverpassClient:
    return OverpassClient(
        url=OVERPASS_URL,
        user_agent="apres-ski-finder/test",
        retry_delay=0,
        transport=httpx.MockTransport(handler),
    )


def test_build_query_for_area():
    query = build_query(AreaLocation(name="Sankt Anton am Arlberg"))

    assert query.startswith("[out:json][timeout:25];\n")
    assert 'area["name"="Sankt Anton am Arlberg"]["boundary"="administrative"]->.a;' in query
    for element_type in ("node", "way", "relation"):
        for category in ("bar", "pub", "nightclub"):
            assert f'{element_type}["amenity"="{category}"](area.a);' in query
    assert query.rstrip().endswith("out center tags;")


def test_build_query_for_point():
    query = build_query(PointLocation(latitude=50.1163, longitude=-122.9574, radius_m=2000))

    assert "area[" not in query
    assert 'node["amenity"="pub"](around:2000,50.1163,-122.9574);' in query
    assert query == build_query(PointLocation(latitude=50.1163, longitude=-122.9574, radius_m=2000))


def test_build_query_escapes_quotes():
    query = build_query(AreaLocation(name='Say "Cheers"'))
    assert 'area["name"="Say \\"Cheers\\""]' in query


def test_normalize_maps_fields():
    result = normalize(SAMPLE_RESPONSE)

    assert result.count == 3
    bar, pub, bare = result.places
    assert (bar.id, bar.category, bar.name) == (101, "bar", "MooserWirt")
    assert (bar.latitude, bar.longitude) == (47.1287, 10.2684)
    assert bar.website == "https://mooserwirt.at"

    # ways only carry a center
    assert (pub.latitude, pub.longitude) == (47.1290, 10.2650)
    assert pub.website == "https://krazykanguruh.at"

    assert bare.category == "unknown"
    assert bare.name == "(no name)"
    assert bare.latitude is None and bare.longitude is None
    assert bare.website is None


def test_normalize_without_elements():
    assert normalize({}).count == 0
    assert normalize({"elements": None}).places == ()


def test_normalize_keeps_zero_coordinates():
    place = normalize({"elements": [{"id": 1, "lat": 0.0, "lon": 0.0, "center": {"lat": 5, "lon": 5}}]}).places[0]
    assert (place.latitude, place.longitude) == (0.0, 0.0)


def test_normalize_is_deterministic():
    first = normalize(SAMPLE_RESPONSE)
    second = normalize(SAMPLE_RESPONSE)
    assert first == second
    assert first.model_dump_json(by_alias=True) == second.model_dump_json(by_alias=True)


def test_fetch_posts_form_encoded_query():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    location = AreaLocation(name="Ischgl")
    result = asyncio.run(make_client(handler).fetch(location))

    assert result.count == 3
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == OVERPASS_URL
    assert request.headers["User-Agent"] == "apres-ski-finder/test"
    assert parse_qs(request.content.decode())["data"][0] == build_query(location)


def test_fetch_retries_once_after_http_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(504, text="Gateway Timeout")
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    result = asyncio.run(make_client(handler).fetch(AreaLocation(name="Ischgl")))

    assert len(calls) == 2
    assert result == normalize(SAMPLE_RESPONSE)


def test_fetch_retries_once_after_transport_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"elements": []})

    result = asyncio.run(make_client(handler).fetch(AreaLocation(name="Ischgl")))

    assert len(calls) == 2
    assert result.count == 0


def test_fetch_gives_up_after_second_http_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, text="rate_limited: too many requests")

    with pytest.raises(UpstreamFailure) as exc_info:
        asyncio.run(make_client(handler).fetch(AreaLocation(name="Ischgl")))

    assert len(calls) == 2
    assert exc_info.value.details == "rate_limited: too many requests"
    assert exc_info.value.status_code == 500


def test_fetch_gives_up_after_second_transport_error():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(UpstreamFailure, match="read timed out"):
        asyncio.run(make_client(handler).fetch(PointLocation(latitude=46.0964, longitude=7.2286)))

    assert len(calls) == 2


def test_fetch_treats_invalid_json_as_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>busy</html>")

    with pytest.raises(UpstreamFailure, match="Invalid JSON"):
        asyncio.run(make_client(handler).fetch(AreaLocation(name="Ischgl")))


def test_normalize_tolerates_missing_id():
    place = normalize({"elements": [{"tags": {"amenity": "bar"}}]}).places[0]
    assert place.id is None
    assert place.category == "bar"


@pytest.mark.parametrize(
    "body",
    [
        {"elements": [{"id": 1, "tags": {"name": 5}}]},
        {"elements": [{"id": 1, "tags": "bar"}]},
        {"elements": "nothing here"},
        [],
    ],
)
def test_fetch_reports_malformed_payload_as_upstream_failure(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(UpstreamFailure, match="Malformed Overpass response"):
        asyncio.run(make_client(handler).fetch(AreaLocation(name="Ischgl")))


def record_sleeps(monkeypatch) -> list:
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr("services.overpass.asyncio.sleep", fake_sleep)
    return delays


def default_delay_client(handler) -> OverpassClient:
    return OverpassClient(
        url=OVERPASS_URL,
        user_agent="apres-ski-finder/test",
        transport=httpx.MockTransport(handler),
    )


def test_retry_waits_800ms_before_second_attempt(monkeypatch):
    delays = record_sleeps(monkeypatch)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(502, text="Bad Gateway")
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    result = asyncio.run(default_delay_client(handler).fetch(AreaLocation(name="Ischgl")))

    assert result.count == 3
    assert delays == [0.8]


def test_no_wait_when_first_attempt_succeeds(monkeypatch):
    delays = record_sleeps(monkeypatch)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=SAMPLE_RESPONSE)

    asyncio.run(default_delay_client(handler).fetch(AreaLocation(name="Ischgl")))

    assert delays == []


def test_no_wait_after_final_attempt(monkeypatch):
    delays = record_sleeps(monkeypatch)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="Service Unavailable")

    with pytest.raises(UpstreamFailure):
        asyncio.run(default_delay_client(handler).fetch(AreaLocation(name="Ischgl")))

    assert delays == [0.8]
