"""
ResponseNormalizer - Turns raw HTTP responses into uniform JSON results.

Non-2xx statuses raise ResponseError with the parsed body attached, and
malformed JSON raises JSONParseError rather than passing through silently.
"""

import json
from dataclasses import dataclass
from typing import Any

from refresh_fetch.errors import JSONParseError, ResponseError
from refresh_fetch.settings import global_settings
from refresh_fetch.types import RequestFn

# Options keys that carry a request body
BODY_KEYS = ("content", "json")


@dataclass
class JSONResponse:
    """Normalized result of a successful request."""

    status: int
    body: Any  # parsed JSON, raw text, or None for an empty JSON body
    ok: bool = True
    response: Any = None


def is_json_content_type(value: str | None) -> bool:
    """Check whether a Content-Type header value denotes JSON."""
    if not value:
        return False
    value = value.lower()
    media_type = value.split(";", 1)[0].strip()
    return "application/json" in value or media_type.endswith("+json")


class ResponseNormalizer:
    """
    Wraps a request function to produce JSONResponse results.

    Usage:
        fetch_json = ResponseNormalizer(transport.request)

        result = await fetch_json(
            "https://api.example.com/items",
            {"method": "POST", "content": b'{"name": "x"}'},
        )
        print(result.status, result.body)
    """

    def __init__(
        self,
        request_fn: RequestFn,
        default_content_type: str | None = None,
    ):
        self._request_fn = request_fn
        self._default_content_type = (
            default_content_type or global_settings.default_content_type
        )

    async def request(
        self, target: str, options: dict[str, Any] | None = None
    ) -> JSONResponse:
        """
        Make a request and normalize its response.

        Raises:
            JSONParseError: If a JSON response body is malformed
            ResponseError: If the status is outside the 2xx range
        """
        response = await self._request_fn(target, self._with_content_type(options))
        status = response.status_code
        body = await self._read_body(response)

        if not 200 <= status < 300:
            raise ResponseError(status, response, body)

        return JSONResponse(status=status, body=body, ok=True, response=response)

    async def __call__(
        self, target: str, options: dict[str, Any] | None = None
    ) -> JSONResponse:
        return await self.request(target, options)

    def _with_content_type(
        self, options: dict[str, Any] | None
    ) -> dict[str, Any] | None:
        """Add the default Content-Type when a body is sent without one."""
        if not options or all(options.get(key) is None for key in BODY_KEYS):
            return options

        headers = dict(options.get("headers") or {})
        if any(name.lower() == "content-type" for name in headers):
            return options

        merged = dict(options)
        merged["headers"] = {"Content-Type": self._default_content_type, **headers}
        return merged

    @staticmethod
    async def _read_body(response: Any) -> Any:
        # aread() caches the content on the response, so it stays readable
        aread = getattr(response, "aread", None)
        if aread is not None:
            await aread()
        text = response.text

        if not is_json_content_type(response.headers.get("content-type")):
            return text

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise JSONParseError(response.status_code, response, text, str(e)) from e
