"""Tests for the backend REST client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from ledgerly.tools.backend import (
    AuthenticationError,
    BackendAPIError,
    BackendClient,
    RateLimitError,
)


@pytest.fixture
def client():
    """Create a BackendClient instance."""
    return BackendClient(
        base_url="http://localhost:54321/",
        api_key="anon-key",
        access_token="token-abc",
        user_id="user-42",
        max_retries=2,
    )


def _response(status_code=200, json_data=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.content = b"content" if json_data is not None else b""
    response.text = "content" if json_data is not None else ""
    response.headers = headers or {}
    return response


def _mock_http(client, *responses):
    mock_http = AsyncMock()
    mock_http.request = AsyncMock(side_effect=list(responses))
    return patch.object(client, "_get_client", AsyncMock(return_value=mock_http)), mock_http


class TestBackendClientInit:
    """Tests for BackendClient initialization."""

    def test_init_strips_trailing_slash(self, client):
        assert client.base_url == "http://localhost:54321"
        assert client.user_id == "user-42"

    def test_init_from_settings(self):
        """Test values fall back to settings."""
        client = BackendClient()

        assert client.user_id == "user-1"
        assert client._access_token == "access-token-123"

    def test_headers(self, client):
        headers = client._get_headers(prefer="return=representation")

        assert headers["apikey"] == "anon-key"
        assert headers["Authorization"] == "Bearer token-abc"
        assert headers["Prefer"] == "return=representation"


class TestUserScoping:
    """Tests for per-account scoping of table requests."""

    @pytest.mark.asyncio
    async def test_select_adds_user_filter(self, client):
        patcher, mock_http = _mock_http(client, _response(json_data=[{"id": "v1"}]))
        with patcher:
            rows = await client.list_vendors()

        assert rows == [{"id": "v1"}]
        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "/rest/v1/vendors"
        assert ("user_id", "eq.user-42") in kwargs["params"]
        assert ("order", "name.asc") in kwargs["params"]

    @pytest.mark.asyncio
    async def test_insert_sets_user_id(self, client):
        created = {"id": "c1", "name": "Travel", "type": "expense"}
        patcher, mock_http = _mock_http(client, _response(201, [created]))
        with patcher:
            row = await client.create_category({"name": "Travel", "type": "expense"})

        assert row == created
        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["json"]["user_id"] == "user-42"
        assert kwargs["headers"]["Prefer"] == "return=representation"

    @pytest.mark.asyncio
    async def test_update_and_delete_are_scoped(self, client):
        patcher, mock_http = _mock_http(
            client, _response(json_data=[{"id": "b1", "amount": 500}]), _response(204)
        )
        with patcher:
            await client.update_budget("b1", {"amount": 500})
            await client.delete_budget("b1")

        update_call, delete_call = mock_http.request.call_args_list
        assert update_call.kwargs["method"] == "PATCH"
        assert ("id", "eq.b1") in update_call.kwargs["params"]
        assert ("user_id", "eq.user-42") in update_call.kwargs["params"]
        assert delete_call.kwargs["method"] == "DELETE"
        assert ("user_id", "eq.user-42") in delete_call.kwargs["params"]

    @pytest.mark.asyncio
    async def test_expense_date_range(self, client):
        patcher, mock_http = _mock_http(client, _response(json_data=[]))
        with patcher:
            await client.list_expenses("2024-06-01", "2024-06-30")

        params = mock_http.request.call_args.kwargs["params"]
        assert ("date", "gte.2024-06-01") in params
        assert ("date", "lte.2024-06-30") in params
        assert ("select", "*,category:categories(*),vendor_detail:vendors(*)") in params

    @pytest.mark.asyncio
    async def test_pending_action_row(self, client):
        patcher, mock_http = _mock_http(client, _response(201, [{"id": "p1"}]))
        with patcher:
            row = await client.create_pending_action("conv-1", "expense", {"amount": 10})

        assert row == {"id": "p1"}
        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["url"] == "/rest/v1/chat_pending_actions"
        assert kwargs["json"] == {
            "user_id": "user-42",
            "conversation_id": "conv-1",
            "action_type": "expense",
            "action_data": {"amount": 10},
            "user_confirmed": False,
        }

    @pytest.mark.asyncio
    async def test_settings_default_to_empty(self, client):
        patcher, _ = _mock_http(client, _response(json_data=[]))
        with patcher:
            assert await client.get_user_settings() == {}


class TestErrors:
    """Tests for HTTP error mapping and retries."""

    @pytest.mark.asyncio
    async def test_unauthorized(self, client):
        patcher, _ = _mock_http(client, _response(401, {"message": "JWT expired"}))
        with patcher, pytest.raises(AuthenticationError) as exc_info:
            await client.list_vendors()

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_rate_limited(self, client):
        patcher, _ = _mock_http(client, _response(429, {}, headers={"Retry-After": "12"}))
        with patcher, pytest.raises(RateLimitError) as exc_info:
            await client.list_vendors()

        assert exc_info.value.retry_after == 12

    @pytest.mark.asyncio
    async def test_api_error_carries_details(self, client):
        patcher, _ = _mock_http(client, _response(400, {"code": "23505"}))
        with patcher, pytest.raises(BackendAPIError) as exc_info:
            await client.create_vendor({"name": "Acme"})

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == {"code": "23505"}

    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self, client):
        patcher, mock_http = _mock_http(
            client,
            httpx.ConnectError("refused"),
            _response(json_data=[{"id": "v1"}]),
        )
        with patcher, patch("ledgerly.tools.backend.asyncio.sleep", AsyncMock()) as sleep:
            rows = await client.list_vendors()

        assert rows == [{"id": "v1"}]
        assert mock_http.request.call_count == 2
        sleep.assert_awaited_once_with(1)

    @pytest.mark.asyncio
    async def test_transport_errors_give_up(self, client):
        patcher, mock_http = _mock_http(
            client, *[httpx.ConnectError("refused") for _ in range(3)]
        )
        with patcher, patch("ledgerly.tools.backend.asyncio.sleep", AsyncMock()):
            with pytest.raises(BackendAPIError, match="Request failed"):
                await client.list_vendors()

        assert mock_http.request.call_count == 3


class TestFunctions:
    """Tests for serverless function calls."""

    @pytest.mark.asyncio
    async def test_exchange_rates(self, client):
        patcher, mock_http = _mock_http(
            client, _response(json_data={"base": "USD", "rates": {"EUR": "0.9", "GBP": 0.8}})
        )
        with patcher:
            rates = await client.get_exchange_rates("USD")

        assert rates == {"EUR": 0.9, "GBP": 0.8}
        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "/functions/v1/get-exchange-rates"

    @pytest.mark.asyncio
    async def test_exchange_rates_missing(self, client):
        patcher, _ = _mock_http(client, _response(json_data={"error": "unavailable"}))
        with patcher:
            assert await client.get_exchange_rates("USD") == {}


class TestLifecycle:
    """Tests for client lifecycle."""

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, client):
        mock_http = AsyncMock()
        client._client = mock_http

        async with client:
            pass

        mock_http.aclose.assert_awaited_once()
        assert client._client is None
