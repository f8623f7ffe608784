import pytest
import httpx

from ghparts.infrastructure.error_handler import (
    DownloadError,
    FilesystemError,
    MalformedResponseError,
    NotFoundError,
    PartialFailureError,
    RateLimitError,
    UnsafePathError,
    UpstreamError,
    handle_api_error,
    parse_json,
    raise_for_status,
)


# ---- Helpers ---------------------------------------------------------------

def make_response(status: int, headers=None, content: bytes = b"{}") -> httpx.Response:
    return httpx.Response(
        status,
        headers=headers or {},
        content=content,
        request=httpx.Request("GET", "https://api.github.com/repos/acme/sample/contents/"),
    )


# ---- Exception classes -----------------------------------------------------

def test_download_error_message_and_original():
    original = ValueError("boom")
    err = DownloadError("failed", original)
    assert err.message == "failed"
    assert err.original_error is original
    assert "failed" in str(err)
    assert "Original: boom" in str(err)


@pytest.mark.parametrize(
    "exc_cls",
    [NotFoundError, UpstreamError, RateLimitError, MalformedResponseError, FilesystemError, UnsafePathError],
)
def test_specific_errors_store_message(exc_cls):
    err = exc_cls("msg")
    assert err.message == "msg"
    assert str(err) == "msg"
    assert isinstance(err, DownloadError)


def test_rate_limit_error_is_upstream_error():
    err = RateLimitError("slow down", status_code=429)
    assert isinstance(err, UpstreamError)
    assert err.status_code == 429


def test_partial_failure_lists_every_failure_sorted():
    err = PartialFailureError("2 files failed", {"b.txt": "HTTP 500", "a.txt": "not found"})
    assert err.failures == {"b.txt": "HTTP 500", "a.txt": "not found"}
    assert str(err) == "2 files failed: a.txt: not found; b.txt: HTTP 500"


# ---- raise_for_status ------------------------------------------------------

@pytest.mark.parametrize("status", [200, 201, 204])
def test_raise_for_status_accepts_success(status):
    raise_for_status(make_response(status), "thing")


def test_raise_for_status_404_is_not_found():
    with pytest.raises(NotFoundError) as exc:
        raise_for_status(make_response(404), "contents of 'docs'")
    assert "contents of 'docs'" in str(exc.value)


def test_raise_for_status_429_is_rate_limit():
    with pytest.raises(RateLimitError) as exc:
        raise_for_status(make_response(429), "thing")
    assert exc.value.status_code == 429


def test_raise_for_status_403_with_exhausted_quota_is_rate_limit():
    response = make_response(403, headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": "1700000000"})
    with pytest.raises(RateLimitError) as exc:
        raise_for_status(response, "thing")
    assert "1700000000" in str(exc.value)


def test_raise_for_status_plain_403_is_upstream_error():
    with pytest.raises(UpstreamError) as exc:
        raise_for_status(make_response(403, headers={"x-ratelimit-remaining": "12"}), "thing")
    assert not isinstance(exc.value, RateLimitError)
    assert exc.value.status_code == 403


@pytest.mark.parametrize("status", [500, 502, 503])
def test_raise_for_status_server_errors(status):
    with pytest.raises(UpstreamError) as exc:
        raise_for_status(make_response(status), "thing")
    assert exc.value.status_code == status


# ---- parse_json ------------------------------------------------------------

def test_parse_json_returns_payload():
    assert parse_json(make_response(200, content=b'[{"path": "a"}]'), "thing") == [{"path": "a"}]


def test_parse_json_garbage_is_malformed():
    with pytest.raises(MalformedResponseError):
        parse_json(make_response(200, content=b"<html>nope</html>"), "thing")


# ---- handle_api_error decorator -------------------------------------------

@pytest.mark.asyncio
async def test_handle_api_error_passes_through_result():
    @handle_api_error
    async def fn(x):
        return x * 2

    assert await fn(21) == 42


@pytest.mark.asyncio
async def test_handle_api_error_reraises_domain_errors():
    @handle_api_error
    async def fn():
        raise NotFoundError("missing")

    with pytest.raises(NotFoundError):
        await fn()


@pytest.mark.asyncio
async def test_handle_api_error_timeout():
    @handle_api_error
    async def fn():
        raise httpx.ReadTimeout("too slow")

    with pytest.raises(UpstreamError) as exc:
        await fn()
    assert "timed out" in str(exc.value)
    assert isinstance(exc.value.original_error, httpx.ReadTimeout)


@pytest.mark.asyncio
async def test_handle_api_error_transport_error():
    @handle_api_error
    async def fn():
        raise httpx.ConnectError("refused")

    with pytest.raises(UpstreamError) as exc:
        await fn()
    assert "Network error" in str(exc.value)


@pytest.mark.asyncio
async def test_handle_api_error_leaves_other_exceptions_alone():
    @handle_api_error
    async def fn():
        raise KeyError("unrelated")

    with pytest.raises(KeyError):
        await fn()
