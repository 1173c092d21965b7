"""Unit tests for client.py - LiteLLM proxy transport."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from client import APIResponse, LiteLLMClient, decode_response
from config import ClientConfig
from errors import APIError, NotFoundError, TransportError

PATTERNS = ("not found", "Model id =", "model_not_found")


def _mock_session(status=200, text='{"ok": true}'):
    """Build a mock aiohttp.ClientSession context manager."""
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)

    request_cm = MagicMock()
    request_cm.__aenter__ = AsyncMock(return_value=response)
    request_cm.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.request = MagicMock(return_value=request_cm)

    session_cm = MagicMock()
    session_cm.__aenter__ = AsyncMock(return_value=session)
    session_cm.__aexit__ = AsyncMock(return_value=False)
    return session_cm, session


class TestDecodeResponse:
    """Tests for decode_response()."""

    def test_success_returns_body(self):
        assert decode_response(APIResponse(200, {"a": 1}), "model_not_found") == {"a": 1}
        assert decode_response(APIResponse(204, None), "model_not_found") is None

    def test_404_is_not_found(self):
        with pytest.raises(NotFoundError, match="credential_not_found"):
            decode_response(APIResponse(404, "nope"), "credential_not_found")

    def test_400_matching_pattern_is_not_found(self):
        body = {"error": {"message": "Model id = abc-123 not found on litellm proxy"}}
        with pytest.raises(NotFoundError, match="model_not_found"):
            decode_response(APIResponse(400, body), "model_not_found", PATTERNS)

    def test_400_without_pattern_is_api_error(self):
        with pytest.raises(APIError) as exc_info:
            decode_response(APIResponse(400, {"error": "bad tpm"}), "model_not_found", PATTERNS)
        assert exc_info.value.status == 400

    def test_500_never_not_found(self):
        with pytest.raises(APIError):
            decode_response(APIResponse(500, "model not found"), "model_not_found", PATTERNS)

    def test_401_is_api_error(self):
        with pytest.raises(APIError) as exc_info:
            decode_response(APIResponse(401, "unauthorized"), "model_not_found", PATTERNS)
        assert exc_info.value.status == 401

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_failure_matching_pattern_is_api_error(self, status):
        body = {"error": "API key not found"}
        with pytest.raises(APIError) as exc_info:
            decode_response(APIResponse(status, body), "model_not_found", PATTERNS)
        assert exc_info.value.status == status

    def test_422_matching_pattern_is_not_found(self):
        with pytest.raises(NotFoundError):
            decode_response(
                APIResponse(422, {"detail": "model_not_found"}), "model_not_found", PATTERNS
            )

    def test_sentinel_alone_marks_not_found(self):
        body = {"error": {"message": "model_not_found"}}
        with pytest.raises(NotFoundError):
            decode_response(APIResponse(400, body), "model_not_found")

    def test_without_patterns_generic_not_found_is_api_error(self):
        body = {"error": {"message": "team_id team-x not found"}}
        with pytest.raises(APIError) as exc_info:
            decode_response(APIResponse(400, body), "model_not_found")
        assert exc_info.value.status == 400


@pytest.mark.asyncio
class TestLiteLLMClient:
    """Tests for LiteLLMClient.request()."""

    @pytest.fixture
    def client(self):
        return LiteLLMClient(
            ClientConfig(api_base="http://proxy:4000", api_key="sk-1", timeout=5)
        )

    async def test_request_decodes_json(self, client):
        session_cm, session = _mock_session(200, '{"data": []}')

        with patch("client.aiohttp.ClientSession", return_value=session_cm):
            response = await client.request(
                "GET", "/model/info", params={"litellm_model_id": "abc"}
            )

        assert response == APIResponse(status=200, body={"data": []})
        args, kwargs = session.request.call_args
        assert args == ("GET", "http://proxy:4000/model/info")
        assert kwargs["params"] == {"litellm_model_id": "abc"}
        assert kwargs["headers"]["Authorization"] == "Bearer sk-1"
        assert kwargs["headers"]["x-api-key"] == "sk-1"

    async def test_request_sends_json_body(self, client):
        session_cm, session = _mock_session(200, "")

        with patch("client.aiohttp.ClientSession", return_value=session_cm):
            response = await client.request("POST", "/model/new", body={"a": 1})

        assert response.body is None
        assert session.request.call_args.kwargs["json"] == {"a": 1}

    async def test_non_json_body_kept_as_text(self, client):
        session_cm, _ = _mock_session(502, "Bad Gateway")

        with patch("client.aiohttp.ClientSession", return_value=session_cm):
            response = await client.request("GET", "/model/info")

        assert response == APIResponse(status=502, body="Bad Gateway")

    async def test_no_auth_headers_without_key(self):
        client = LiteLLMClient(ClientConfig(api_key=""))
        headers = client._get_headers()
        assert "Authorization" not in headers
        assert "x-api-key" not in headers

    async def test_connection_error_is_transport_error(self, client):
        session_cm, session = _mock_session()
        session.request.side_effect = aiohttp.ClientConnectionError("refused")

        with patch("client.aiohttp.ClientSession", return_value=session_cm):
            with pytest.raises(TransportError, match="POST /model/new failed"):
                await client.request("POST", "/model/new", body={})

    async def test_timeout_is_transport_error(self, client):
        session_cm, session = _mock_session()
        session.request.side_effect = asyncio.TimeoutError()

        with patch("client.aiohttp.ClientSession", return_value=session_cm):
            with pytest.raises(TransportError, match="timed out"):
                await client.request("GET", "/model/info")
