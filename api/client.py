from __future__ import annotations

import asyncio
import http.client
from dataclasses import dataclass
from http.cookiejar import CookieJar
import json
import logging
import os
import re
from typing import Any, Mapping, Protocol
from urllib import request as urlrequest
from urllib.error import HTTPError, URLError

logger = logging.getLogger(__name__)

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class HubConfig:
    api_base: str


def load_hub_config() -> HubConfig:
    api_base = os.getenv("HUB_API_BASE", "http://localhost:3000").strip()
    return HubConfig(api_base=api_base.rstrip("/"))


@dataclass(frozen=True)
class RequestError(Exception):
    message: str
    status: int | None = None
    method: str = "GET"
    url: str = ""

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_network(self) -> bool:
        return self.status is None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        data: bytes | None,
    ) -> HttpResponse:
        ...


class UrllibTransport:
    """Blocking urllib calls pushed off the event loop.

    Cookies set by the server are kept in one jar, so every request carries the
    session credentials. No timeout is applied.
    """

    def __init__(self, cookie_jar: CookieJar | None = None) -> None:
        self.cookie_jar = cookie_jar if cookie_jar is not None else CookieJar()
        self._opener = urlrequest.build_opener(urlrequest.HTTPCookieProcessor(self.cookie_jar))

    async def send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        data: bytes | None,
    ) -> HttpResponse:
        return await asyncio.to_thread(self._send_blocking, method, url, dict(headers), data)

    def _send_blocking(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        data: bytes | None,
    ) -> HttpResponse:
        req = urlrequest.Request(url=url, data=data, method=method, headers=headers)
        try:
            with self._opener.open(req) as resp:
                return HttpResponse(status=resp.status, body=resp.read().decode("utf-8", errors="replace"))
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            return HttpResponse(status=exc.code, body=detail)
        except URLError as exc:
            raise RequestError(
                message=f"Network error: {exc.reason}",
                status=None,
                method=method,
                url=url,
            ) from exc
        # Dropped connections and short reads surface from getresponse()/read(), outside URLError.
        except (http.client.HTTPException, OSError) as exc:
            raise RequestError(
                message=f"Network error: {exc.__class__.__name__}: {exc}",
                status=None,
                method=method,
                url=url,
            ) from exc


def parse_json_body(response: HttpResponse) -> Any:
    if response.status == 204 or not response.body.strip():
        return None
    return json.loads(response.body)


class RestClient:
    def __init__(
        self,
        config: HubConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.config = config or load_hub_config()
        self.transport = transport or UrllibTransport()

    def to_url(self, path: str) -> str:
        if not path or _ABSOLUTE_URL.match(path):
            return path
        return f"{self.config.api_base}{path}"

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request("PUT", path, body)

    async def patch(self, path: str, body: Any = None) -> Any:
        return await self.request("PATCH", path, body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        url = self.to_url(path)
        headers: dict[str, str] = {"Accept": "application/json"}
        data: bytes | None = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(body).encode("utf-8")

        try:
            response = await self.transport.send(method, url, headers=headers, data=data)
        except RequestError:
            logger.warning("rest.request.network method=%s url=%s", method, url)
            raise

        if not response.ok:
            logger.warning("rest.request.failed method=%s url=%s status=%s", method, url, response.status)
            raise RequestError(
                message=response.body or f"Request failed with status {response.status}",
                status=response.status,
                method=method,
                url=url,
            )
        try:
            return parse_json_body(response)
        except json.JSONDecodeError as exc:
            raise RequestError(
                message=f"Invalid JSON response: {exc}",
                status=response.status,
                method=method,
                url=url,
            ) from exc
