"""
LiteLLM Client - HTTP transport for the LiteLLM proxy management API.

Sends JSON requests and turns responses into decoded bodies or tagged
errors. Not-found conditions are recognised here, where the response is
seen, so callers never have to inspect error messages.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

import aiohttp

from config import ClientConfig
from errors import APIError, NotFoundError, TransportError

logger = logging.getLogger(__name__)

# Client errors the proxy also uses to report a missing resource.
# Authorization failures (401, 403) are never treated as absence.
NOT_FOUND_STATUSES = (400, 404, 422)


@dataclass
class APIResponse:
    """Status code and decoded body of a proxy response."""

    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def decode_response(
    response: APIResponse,
    not_found_sentinel: str,
    patterns: Iterable[str] = (),
) -> Any:
    """
    Decode a response or raise the matching tagged error.

    Args:
        response: The response to decode.
        not_found_sentinel: Message for the NotFoundError raised on absence.
            A body containing it marks the answer as not-found.
        patterns: Further substrings that mark the body as a not-found
            answer. Only reads pass these; writes and deletes rely on
            the sentinel alone.

    Returns:
        The decoded response body.

    Raises:
        NotFoundError: The resource does not exist.
        APIError: Any other non-2xx response.
    """
    if response.ok:
        return response.body

    if response.status == 404:
        raise NotFoundError(not_found_sentinel)

    if response.status in NOT_FOUND_STATUSES:
        text = (
            response.body
            if isinstance(response.body, str)
            else json.dumps(response.body, default=str)
        )
        markers = (not_found_sentinel, *patterns)
        if any(marker in text for marker in markers):
            raise NotFoundError(not_found_sentinel)

    raise APIError(response.status, response.body)


class LiteLLMClient:
    """
    Async client for the LiteLLM proxy.

    A session is opened per request, so a client instance holds no
    connections between calls.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
            headers["x-api-key"] = self.config.api_key
        return headers

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> APIResponse:
        """
        Send a request to the proxy.

        Args:
            method: HTTP method.
            path: Path below the API base, e.g. '/model/new'.
            body: JSON-serialisable request body.
            params: Query string parameters.

        Returns:
            APIResponse with the status and the JSON (or text) body.

        Raises:
            TransportError: The request could not be completed.
        """
        url = f"{self.config.api_base}{path}"
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)

        logger.debug(f"{method} {url}")
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    json=body,
                    params=params,
                ) as response:
                    text = await response.text()
                    return APIResponse(
                        status=response.status, body=self._decode_body(text)
                    )
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(
                f"{method} {path} timed out after {self.config.timeout}s"
            ) from e

    @staticmethod
    def _decode_body(text: str) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
