"""Tests for ResponseNormalizer - content-type defaults, JSON parsing, status errors."""

from unittest.mock import AsyncMock

import pytest

from refresh_fetch.errors import JSONParseError, ResponseError
from refresh_fetch.gate import RefreshGate, refresh_on_status
from refresh_fetch.normalizer import JSONResponse, ResponseNormalizer, is_json_content_type


@pytest.mark.asyncio
async def test_options_without_body_pass_through(make_response):
    request_fn = AsyncMock(return_value=make_response(200))
    options = {"method": "GET"}

    await ResponseNormalizer(request_fn)("/1", options)

    assert request_fn.await_args.args == ("/1", options)
    assert request_fn.await_args.args[1] is options


@pytest.mark.asyncio
async def test_body_gets_default_content_type(make_response):
    request_fn = AsyncMock(return_value=make_response(200))
    options = {"method": "POST", "content": "{}"}

    await ResponseNormalizer(request_fn)("/2", options)

    request_fn.assert_awaited_once_with(
        "/2",
        {
            "method": "POST",
            "content": "{}",
            "headers": {"Content-Type": "application/json"},
        },
    )
    assert "headers" not in options


@pytest.mark.asyncio
async def test_caller_headers_are_merged_and_win(make_response):
    request_fn = AsyncMock(return_value=make_response(200))
    normalizer = ResponseNormalizer(request_fn)

    await normalizer("/3", {"json": {"a": 1}, "headers": {"Authorization": "Bearer t"}})
    assert request_fn.await_args.args[1]["headers"] == {
        "Content-Type": "application/json",
        "Authorization": "Bearer t",
    }

    explicit = {"content": "a=1", "headers": {"content-type": "text/plain"}}
    await normalizer("/4", explicit)
    assert request_fn.await_args.args[1] is explicit


@pytest.mark.asyncio
async def test_custom_default_content_type(make_response):
    request_fn = AsyncMock(return_value=make_response(200))
    normalizer = ResponseNormalizer(request_fn, default_content_type="application/vnd.api+json")

    await normalizer("/5", {"content": "{}"})
    assert request_fn.await_args.args[1]["headers"] == {
        "Content-Type": "application/vnd.api+json"
    }


@pytest.mark.asyncio
async def test_parses_json_body(make_response):
    response = make_response(201, b'{"id": 7}', "application/json; charset=utf-8")
    result = await ResponseNormalizer(AsyncMock(return_value=response))("/items")

    assert result == JSONResponse(status=201, body={"id": 7}, ok=True, response=response)


@pytest.mark.asyncio
async def test_empty_json_body_is_none(make_response):
    response = make_response(200, b"", "application/json")
    result = await ResponseNormalizer(AsyncMock(return_value=response))("/empty")

    assert result.status == 200
    assert result.body is None


@pytest.mark.asyncio
async def test_non_json_body_is_raw_text(make_response):
    response = make_response(200, "hello", "text/plain")
    result = await ResponseNormalizer(AsyncMock(return_value=response))("/text")

    assert result.body == "hello"


@pytest.mark.asyncio
async def test_malformed_json_raises_parse_error(make_response):
    response = make_response(200, b"{oops", "application/json")

    with pytest.raises(JSONParseError) as exc_info:
        await ResponseNormalizer(AsyncMock(return_value=response))("/broken")

    assert exc_info.value.status == 200
    assert exc_info.value.text == "{oops"
    assert exc_info.value.response is response
    assert not isinstance(exc_info.value, ResponseError)


@pytest.mark.asyncio
async def test_error_status_raises_with_parsed_body(make_response):
    response = make_response(404, b'{"msg":"no"}', "application/json")

    with pytest.raises(ResponseError) as exc_info:
        await ResponseNormalizer(AsyncMock(return_value=response))("/missing")

    error = exc_info.value
    assert error.status == 404
    assert error.body == {"msg": "no"}
    assert error.response is response
    assert str(error) == "Not Found"
    assert error.target == "https://api.test/items"


@pytest.mark.asyncio
async def test_error_status_with_text_body(make_response):
    response = make_response(500, "upstream exploded", "text/plain")

    with pytest.raises(ResponseError) as exc_info:
        await ResponseNormalizer(AsyncMock(return_value=response))("/boom")

    assert exc_info.value.body == "upstream exploded"


@pytest.mark.asyncio
async def test_transport_errors_are_not_wrapped():
    failure = ConnectionError("refused")
    normalizer = ResponseNormalizer(AsyncMock(side_effect=failure))

    with pytest.raises(ConnectionError) as exc_info:
        await normalizer("/down")
    assert exc_info.value is failure


@pytest.mark.asyncio
async def test_refresh_gate_over_normalizer(make_response):
    request_fn = AsyncMock(
        side_effect=[
            make_response(401, b'{"error":"expired"}', "application/json"),
            make_response(200, b'{"name":"me"}', "application/json"),
        ]
    )
    refresh_fn = AsyncMock()
    gate = RefreshGate(ResponseNormalizer(request_fn), refresh_fn, refresh_on_status(401))

    result = await gate("/me", {"method": "GET"})

    assert result.body == {"name": "me"}
    refresh_fn.assert_awaited_once()
    assert request_fn.await_count == 2


def test_is_json_content_type():
    assert is_json_content_type("application/json")
    assert is_json_content_type("Application/JSON; charset=utf-8")
    assert is_json_content_type("application/problem+json")
    assert not is_json_content_type("text/html")
    assert not is_json_content_type("")
    assert not is_json_content_type(None)


def test_normalizer_module_does_not_use_gate():
    import refresh_fetch.normalizer as normalizer_module
    from refresh_fetch import types

    assert normalizer_module.RequestFn is types.RequestFn
    owners = {getattr(value, "__module__", None) for value in vars(normalizer_module).values()}
    assert "refresh_fetch.gate" not in owners
