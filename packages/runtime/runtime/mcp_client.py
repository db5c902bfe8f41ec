"""HTTP client for the JSON tool endpoint.

Every call is ``POST {base_url}`` with ``{"method", "params", "id"}``; the
server answers ``{"result": ...}`` or ``{"error": {"code", "message", "data"}}``.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

TRANSPORT_ERROR = -32000
PARSE_ERROR = -32700
INTERNAL_ERROR = -32603


class McpError(Exception):
    """Tool call failed; ``code`` is the HTTP status or the server's error code."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"MCP error {code}: {message}")


class McpToolClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout_seconds
        self._transport = transport

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Invoke one tool and return its ``result``.

        Raises:
            McpError: HTTP error status, error payload, missing result or
                transport failure
        """
        payload = {"method": method, "params": params or {}, "id": int(time.time() * 1000)}
        try:
            async with self._client() as client:
                response = await client.post(self._base_url, json=payload)
        except httpx.TimeoutException as exc:
            logger.warning("tool call %s timed out", method)
            raise McpError(TRANSPORT_ERROR, f"Request timed out: {method}") from exc
        except httpx.RequestError as exc:
            logger.warning("tool call %s failed: %s", method, exc)
            raise McpError(TRANSPORT_ERROR, str(exc)[:500]) from exc

        if response.status_code >= 400:
            raise McpError(response.status_code, f"HTTP {response.status_code}: {response.reason_phrase}")

        try:
            body = response.json()
        except ValueError as exc:
            raise McpError(PARSE_ERROR, "Response is not valid JSON") from exc
        if not isinstance(body, dict):
            raise McpError(PARSE_ERROR, f"Unexpected response type {type(body).__name__}")

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise McpError(
                    int(error.get("code", INTERNAL_ERROR)),
                    str(error.get("message", "Unknown error")),
                    error.get("data"),
                )
            raise McpError(INTERNAL_ERROR, str(error))

        if "result" not in body:
            raise McpError(INTERNAL_ERROR, f"Missing result for {method}")
        return body["result"]

    async def list_tools(self) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(self._base_url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise McpError(exc.response.status_code, f"HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise McpError(TRANSPORT_ERROR, str(exc)[:500]) from exc
        return response.json()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
