from __future__ import annotations

import asyncio
import http.client
import json

import pytest

from api import HubApi, HttpResponse, HubConfig, RequestError, RestClient, UrllibTransport, load_hub_config
from domain import DecodeError
from views.gallery import GalleryView


class _FakeTransport:
    def __init__(self, responses: dict[tuple[str, str], HttpResponse]) -> None:
        self.responses = responses
        self.calls: list[dict] = []

    async def send(self, method, url, *, headers, data):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers),
                "body": json.loads(data) if data else None,
            }
        )
        path = url.replace("http://hub.test", "", 1)
        return self.responses.get((method, path), HttpResponse(status=404, body="not found"))


class _NetworkDownTransport:
    async def send(self, method, url, *, headers, data):
        raise RequestError(message="Network error: refused", status=None, method=method, url=url)


def _client(responses: dict[tuple[str, str], HttpResponse]) -> tuple[RestClient, _FakeTransport]:
    transport = _FakeTransport(responses)
    return RestClient(HubConfig(api_base="http://hub.test"), transport), transport


def test_load_hub_config_strips_trailing_slash(monkeypatch) -> None:
    monkeypatch.setenv("HUB_API_BASE", "https://api.example.test/ ")
    assert load_hub_config().api_base == "https://api.example.test"


def test_absolute_urls_bypass_api_base() -> None:
    client, _ = _client({})
    assert client.to_url("/works") == "http://hub.test/works"
    assert client.to_url("https://cdn.example.test/a.png") == "https://cdn.example.test/a.png"


def test_get_returns_decoded_json() -> None:
    client, transport = _client({("GET", "/works"): HttpResponse(status=200, body='[{"workId": "a"}]')})

    payload = asyncio.run(client.get("/works"))

    assert payload == [{"workId": "a"}]
    assert transport.calls[0]["body"] is None
    assert "Content-Type" not in transport.calls[0]["headers"]


def test_post_encodes_json_body() -> None:
    client, transport = _client({("POST", "/auth/login/email"): HttpResponse(status=200, body='{"ok": true}')})

    payload = asyncio.run(client.post("/auth/login/email", {"email": "a@b.test", "password": "pw"}))

    assert payload == {"ok": True}
    call = transport.calls[0]
    assert call["headers"]["Content-Type"] == "application/json"
    assert call["body"] == {"email": "a@b.test", "password": "pw"}


def test_non_success_raises_request_error_with_body_text() -> None:
    client, _ = _client({("GET", "/works/x"): HttpResponse(status=500, body="database unavailable")})

    with pytest.raises(RequestError) as exc_info:
        asyncio.run(client.get("/works/x"))

    assert exc_info.value.status == 500
    assert str(exc_info.value) == "database unavailable"
    assert not exc_info.value.is_unauthorized


def test_unauthorized_is_flagged() -> None:
    client, _ = _client({("GET", "/auth/me"): HttpResponse(status=401, body="{}")})

    with pytest.raises(RequestError) as exc_info:
        asyncio.run(client.get("/auth/me"))

    assert exc_info.value.is_unauthorized


def test_no_content_returns_none() -> None:
    client, _ = _client({("DELETE", "/works/a"): HttpResponse(status=204, body="")})
    assert asyncio.run(client.delete("/works/a")) is None


def test_network_failure_surfaces_as_request_error() -> None:
    client = RestClient(HubConfig(api_base="http://hub.test"), _NetworkDownTransport())

    with pytest.raises(RequestError) as exc_info:
        asyncio.run(client.get("/works"))

    assert exc_info.value.is_network


def test_hub_api_decodes_work_list() -> None:
    body = json.dumps(
        [
            {
                "workId": "abc123",
                "title": "Student Works Online Gallery",
                "status": "published",
                "tags": [{"tagId": "t1", "name": "React"}, {"tagId": "t2", "name": "Web"}],
                "thumbnail": None,
            }
        ]
    )
    client, _ = _client({("GET", "/works"): HttpResponse(status=200, body=body)})

    works = asyncio.run(HubApi(client).list_works())

    assert [work.work_id for work in works] == ["abc123"]
    assert works[0].tag_names == ["React", "Web"]


def test_hub_api_rejects_shape_mismatch() -> None:
    client, _ = _client({("GET", "/works/abc"): HttpResponse(status=200, body='{"title": "No id"}')})

    with pytest.raises(DecodeError):
        asyncio.run(HubApi(client).get_work("abc"))


def test_hub_api_quotes_path_segments() -> None:
    client, transport = _client(
        {("GET", "/works/a%2Fb/save"): HttpResponse(status=200, body='{"saved": true, "saveCount": 3}')}
    )

    summary = asyncio.run(HubApi(client).save_summary("a/b"))

    assert summary.saved is True
    assert summary.save_count == 3
    assert transport.calls[0]["url"].endswith("/works/a%2Fb/save")


class _FakeResponse:
    def __init__(self, status: int, payload: bytes) -> None:
        self.status = status
        self._payload = payload

    def read(self) -> bytes:
        return self._payload

    def __enter__(self):
        return self

    def __exit__(self, *_exc) -> None:
        return None


def _urllib_client(monkeypatch, opener) -> RestClient:
    transport = UrllibTransport()
    monkeypatch.setattr(transport._opener, "open", opener)
    return RestClient(HubConfig(api_base="http://hub.test"), transport)


def test_dropped_connection_becomes_network_error(monkeypatch) -> None:
    def _drop(_req):
        raise http.client.RemoteDisconnected("Remote end closed connection without response")

    client = _urllib_client(monkeypatch, _drop)

    with pytest.raises(RequestError) as exc_info:
        asyncio.run(client.get("/works"))

    assert exc_info.value.is_network
    assert "RemoteDisconnected" in str(exc_info.value)


def test_connection_reset_sets_gallery_error(monkeypatch) -> None:
    def _reset(_req):
        raise ConnectionResetError(104, "Connection reset by peer")

    gallery = GalleryView(HubApi(_urllib_client(monkeypatch, _reset)))
    asyncio.run(gallery.load())

    assert gallery.error is not None and "Connection reset by peer" in gallery.error
    assert gallery.loading is False


def test_non_utf8_body_is_a_request_error(monkeypatch) -> None:
    client = _urllib_client(monkeypatch, lambda _req: _FakeResponse(200, b"\xff\xfe[]"))

    with pytest.raises(RequestError) as exc_info:
        asyncio.run(client.get("/works"))

    assert exc_info.value.status == 200
    assert str(exc_info.value).startswith("Invalid JSON response")
