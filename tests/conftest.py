import httpx
import pytest


@pytest.fixture
def request_options():
    return {"method": "POST", "headers": {"X-Trace": "abc"}}


@pytest.fixture
def make_response():
    """Build a fully read httpx.Response bound to a request."""

    def _make(status_code: int = 200, content: bytes | str = b"", content_type=None, url="https://api.test/items"):
        headers = {"content-type": content_type} if content_type else {}
        return httpx.Response(
            status_code,
            headers=headers,
            content=content,
            request=httpx.Request("GET", url),
        )

    return _make
