# API client unit tests
import base64
import pytest
import httpx
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

from stock_sync.core.config import StockApiConfig
from stock_sync.core.exceptions import ConfigurationError, RemoteFetchError, ValidationError
from stock_sync.services.stock_api.client import (
    MAX_OFFSET,
    MOMENT_FORMAT,
    PAGE_SIZE,
    StockApiClient,
    normalize_moment,
)
from stock_sync.services.stock_api.responses import PageShape, decode_page
from tests.fixtures.stock_rows import make_row

"""
1. Authentication
"""

def test_bearer_token_auth(api_config):
    client = StockApiClient(api_config)
    assert client.get_auth_header() == "Bearer test-token"


def test_basic_auth_from_login_and_password():
    config = StockApiConfig(url="https://api.example.test/stock", entity_base_url="https://api.example.test",
                            login="admin@shop", password="pa:ss")
    expected = base64.b64encode(b"admin@shop:pa:ss").decode("ascii")

    assert StockApiClient(config).get_auth_header() == f"Basic {expected}"


def test_token_wins_over_login():
    config = StockApiConfig(url="u", entity_base_url="e", token="tkn", login="l", password="p")
    assert StockApiClient(config).get_auth_header() == "Bearer tkn"


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_network(mocker):
    mock_client = mocker.patch("httpx.AsyncClient")
    config = StockApiConfig(url="https://api.example.test/stock", entity_base_url="https://api.example.test")
    client = StockApiClient(config)

    with pytest.raises(ConfigurationError):
        await client.fetch_snapshot("wh-1")

    mock_client.assert_not_called()


"""
2. Filter construction
"""

def test_build_filter_with_explicit_moment(api_config):
    client = StockApiClient(api_config)

    stock_filter = client.build_filter("wh-1", "2025-10-01 07:00:00")

    assert stock_filter == (
        "moment=2025-10-01 07:00:00;archived=false;archived=true;"
        "store=https://api.example.test/entity/store/wh-1"
    )


def test_build_filter_uses_configured_default_moment():
    config = StockApiConfig(url="u", entity_base_url="https://api.example.test", token="t",
                            default_moment="2024-01-01 00:00:00")
    assert StockApiClient(config).build_filter("wh-1").startswith("moment=2024-01-01 00:00:00;")


def test_build_filter_defaults_to_utc_now(api_config):
    stock_filter = StockApiClient(api_config).build_filter("wh-1")
    moment = stock_filter.split(";")[0].split("=", 1)[1]

    pinned = datetime.strptime(moment, MOMENT_FORMAT).replace(tzinfo=timezone.utc)
    assert abs(datetime.now(timezone.utc) - pinned) < timedelta(minutes=1)


"""
3. Page decoding
"""

def test_decode_rows_envelope():
    page = decode_page({"meta": {}, "rows": [{"a": 1}]})
    assert page.shape is PageShape.ROWS_ENVELOPE
    assert page.rows == [{"a": 1}]


def test_decode_bare_array():
    page = decode_page([{"a": 1}, {"a": 2}])
    assert page.shape is PageShape.BARE_ARRAY
    assert len(page.rows) == 2


def test_decode_unrecognized_shapes():
    assert not decode_page({"errors": [{"error": "bad"}]}).recognized
    assert not decode_page({"rows": "nope"}).recognized
    assert not decode_page(None).recognized


"""
4. Pagination
"""

@pytest.mark.asyncio
async def test_pagination_concatenates_pages(mocker, api_config):
    row = make_row(stock=1)
    mock_make_request = mocker.patch.object(
        StockApiClient, "_make_request",
        side_effect=[
            {"rows": [row] * PAGE_SIZE},
            {"rows": [row] * PAGE_SIZE},
            {"rows": [row] * 400},
        ]
    )

    rows = await StockApiClient(api_config).fetch_snapshot("wh-1", "2025-10-01 07:00:00")

    assert len(rows) == 2400
    assert mock_make_request.call_count == 3
    offsets = [call.args[0]["offset"] for call in mock_make_request.call_args_list]
    assert offsets == [0, 1000, 2000]
    for call in mock_make_request.call_args_list:
        assert call.args[0]["limit"] == PAGE_SIZE
        assert "store=https://api.example.test/entity/store/wh-1" in call.args[0]["filter"]


@pytest.mark.asyncio
async def test_pagination_accepts_bare_arrays(mocker, api_config):
    mocker.patch.object(StockApiClient, "_make_request", side_effect=[[make_row()] * 3])

    rows = await StockApiClient(api_config).fetch_snapshot("wh-1")

    assert len(rows) == 3


@pytest.mark.asyncio
async def test_unrecognized_page_keeps_accumulated_rows(mocker, api_config):
    mock_make_request = mocker.patch.object(
        StockApiClient, "_make_request",
        side_effect=[{"rows": [make_row()] * PAGE_SIZE}, {"unexpected": True}]
    )

    rows = await StockApiClient(api_config).fetch_snapshot("wh-1")

    assert len(rows) == PAGE_SIZE
    assert mock_make_request.call_count == 2


@pytest.mark.asyncio
async def test_pagination_stops_at_offset_limit(mocker, api_config):
    full_page = {"rows": [make_row()] * PAGE_SIZE}
    mock_make_request = mocker.patch.object(StockApiClient, "_make_request", return_value=full_page)

    rows = await StockApiClient(api_config).fetch_snapshot("wh-1")

    expected_pages = MAX_OFFSET // PAGE_SIZE + 1
    assert mock_make_request.call_count == expected_pages
    assert len(rows) == expected_pages * PAGE_SIZE


@pytest.mark.asyncio
async def test_fetch_snapshot_at_appends_default_time(mocker, api_config):
    mock_make_request = mocker.patch.object(StockApiClient, "_make_request", return_value={"rows": []})

    await StockApiClient(api_config).fetch_snapshot_at("wh-1", "2025-10-01")

    params = mock_make_request.call_args.args[0]
    assert params["filter"].startswith("moment=2025-10-01 07:00:00;")


def test_normalize_moment():
    assert normalize_moment("2025-10-01") == "2025-10-01 07:00:00"
    assert normalize_moment("2025-10-01 09:30") == "2025-10-01 09:30:00"
    assert normalize_moment(" 2025-10-01 09:30:15 ") == "2025-10-01 09:30:15"
    with pytest.raises(ValidationError):
        normalize_moment("01.10.2025")


"""
5. HTTP errors
"""

def _mock_http(mocker, **get_kwargs):
    mock_client = mocker.patch("httpx.AsyncClient")
    http = mock_client.return_value.__aenter__.return_value
    http.get = AsyncMock(**get_kwargs)
    return mock_client, http


@pytest.mark.asyncio
async def test_request_sends_auth_and_query(mocker, api_config):
    mock_response = mocker.MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = {"rows": []}
    _, http = _mock_http(mocker, return_value=mock_response)

    await StockApiClient(api_config).fetch_snapshot("wh-1", "2025-10-01 07:00:00")

    args, kwargs = http.get.call_args
    assert args[0] == api_config.url
    assert kwargs["headers"]["Authorization"] == "Bearer test-token"
    assert kwargs["headers"]["Accept-Encoding"] == "gzip"
    assert kwargs["params"]["offset"] == 0
    assert kwargs["params"]["limit"] == PAGE_SIZE


@pytest.mark.asyncio
async def test_non_2xx_raises_remote_fetch_error(mocker, api_config):
    mock_response = mocker.MagicMock()
    mock_response.status_code = 401
    mock_response.text = '{"errors":[{"error":"Authentication failed"}]}'
    _mock_http(mocker, return_value=mock_response)

    with pytest.raises(RemoteFetchError) as exc_info:
        await StockApiClient(api_config).fetch_snapshot("wh-1")

    assert exc_info.value.status_code == 401
    assert "Authentication failed" in exc_info.value.body
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_timeout_is_retryable_remote_fetch_error(mocker, api_config):
    _mock_http(mocker, side_effect=httpx.ReadTimeout("Request timed out"))

    with pytest.raises(RemoteFetchError) as exc_info:
        await StockApiClient(api_config).fetch_snapshot("wh-1")

    assert exc_info.value.retryable is True
    assert "timed out" in str(exc_info.value)


@pytest.mark.asyncio
async def test_network_error(mocker, api_config):
    _mock_http(mocker, side_effect=httpx.ConnectError("Connection failed"))

    with pytest.raises(RemoteFetchError) as exc_info:
        await StockApiClient(api_config).fetch_snapshot("wh-1")

    assert "Network error" in str(exc_info.value)
    assert exc_info.value.status_code is None


"""
6. Health check
"""

@pytest.mark.asyncio
async def test_health_check_ok(mocker, api_config):
    mock_response = mocker.MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = {"rows": []}
    mock_client, http = _mock_http(mocker, return_value=mock_response)

    assert await StockApiClient(api_config).health_check() is True
    assert mock_client.call_args.kwargs["timeout"] == 10.0
    assert http.get.call_args.kwargs["params"] == {"limit": 1}


@pytest.mark.asyncio
async def test_health_check_false_on_error(mocker, api_config):
    _mock_http(mocker, side_effect=httpx.ConnectError("down"))
    assert await StockApiClient(api_config).health_check() is False


@pytest.mark.asyncio
async def test_health_check_false_without_credentials():
    config = StockApiConfig(url="https://api.example.test/stock", entity_base_url="https://api.example.test")
    assert await StockApiClient(config).health_check() is False
