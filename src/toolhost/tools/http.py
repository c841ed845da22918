"""
HTTP tools for toolhost.

This module provides tools for exercising HTTP services:
- test_api_endpoint: Send one request and report the full response
- check_api_health: GET a health endpoint and report healthy/unhealthy

Both go through the shared http-client handle (one httpx.Client connection
pool per process). Every request carries the caller's timeout, given in
milliseconds; a request that exceeds it is reported as a timeout failure.
Non-2xx statuses are results, not errors.
"""

import time
from dataclasses import dataclass
from typing import Any

import httpx

from toolhost.handles import HTTP_CLIENT
from toolhost.schema import ToolResult
from toolhost.tools.base import Tool, ToolContext

HTTP_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


@dataclass(frozen=True)
class HttpProbe:
    """
    A completed request/response exchange.

    Attributes:
        status_code: Response status
        reason: Response reason phrase
        headers: Response headers
        data: Parsed JSON body, or the text body when it is not JSON
        duration_ms: Round-trip time in milliseconds
    """

    status_code: int
    reason: str
    headers: dict[str, str]
    data: Any
    duration_ms: int

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300


def _response_data(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def send_request(
    client: httpx.Client,
    method: str,
    url: str,
    *,
    timeout_ms: float,
    headers: dict[str, str] | None = None,
    body: Any = None,
) -> HttpProbe:
    """
    Send one request and collect the response.

    A string body is sent as-is; any other body is sent as JSON.

    Raises:
        httpx.TimeoutException: If the request exceeds timeout_ms
        httpx.RequestError: For connection-level failures
    """
    kwargs: dict[str, Any] = {"headers": headers, "timeout": timeout_ms / 1000}
    if isinstance(body, (str, bytes)):
        kwargs["content"] = body
    elif body is not None:
        kwargs["json"] = body

    started = time.monotonic()
    response = client.request(method, url, **kwargs)
    duration_ms = int((time.monotonic() - started) * 1000)

    return HttpProbe(
        status_code=response.status_code,
        reason=response.reason_phrase,
        headers=dict(response.headers),
        data=_response_data(response),
        duration_ms=duration_ms,
    )


def request_failure(e: httpx.HTTPError, timeout_ms: float, prefix: str) -> ToolResult:
    """Turn an httpx failure into an isError envelope."""
    if isinstance(e, httpx.TimeoutException):
        return ToolResult.fail(f"{prefix}: timed out after {timeout_ms:g}ms")
    return ToolResult.fail(f"{prefix}: {e}")


class TestApiEndpointTool(Tool):
    """
    Send an HTTP request to an API endpoint and analyze the response.

    Arguments:
        method (str): One of GET, POST, PUT, DELETE, PATCH (required)
        url (str): Endpoint URL (required)
        headers (dict): Request headers
        body (any): Request body; non-string bodies are sent as JSON
        timeout (number): Timeout in milliseconds (default 10000)

    Example:
        args = {"method": "GET", "url": "http://localhost:3000/api/users"}
        result = tool.execute(args, context)
        # result.summary == "GET http://localhost:3000/api/users -> 200 OK in 12ms"
    """

    # Keep pytest from collecting this class
    __test__ = False

    @property
    def name(self) -> str:
        return "test_api_endpoint"

    @property
    def description(self) -> str:
        return "Send HTTP request to API endpoint and analyze response"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "method": {"type": "string", "enum": HTTP_METHODS, "description": "HTTP method"},
                "url": {"type": "string", "description": "API endpoint URL"},
                "headers": {"type": "object", "description": "HTTP headers"},
                "body": {"description": "Request body"},
                "timeout": {"type": "number", "description": "Request timeout in ms", "default": 10000},
            },
            "required": ["method", "url"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        client: httpx.Client = context.handles.acquire(HTTP_CLIENT)
        method, url, timeout_ms = args["method"], args["url"], args["timeout"]

        try:
            probe = send_request(
                client,
                method,
                url,
                timeout_ms=timeout_ms,
                headers=args.get("headers"),
                body=args.get("body"),
            )
        except httpx.HTTPError as e:
            return request_failure(e, timeout_ms, "Request failed")

        verdict = "ok" if probe.success else "not ok"
        return ToolResult.ok(
            f"{method} {url} -> {probe.status_code} {probe.reason} in {probe.duration_ms}ms ({verdict})",
            {
                "status": probe.status_code,
                "statusText": probe.reason,
                "headers": probe.headers,
                "data": probe.data,
                "responseTime": probe.duration_ms,
                "success": probe.success,
            },
            uri="result://api-test",
        )


class CheckApiHealthTool(Tool):
    """
    Check whether an API service is healthy.

    Healthy means the health endpoint answered 200 within the timeout.

    Arguments:
        url (str): Health check endpoint URL (required)
        timeout (number): Timeout in milliseconds (default 5000)
    """

    @property
    def name(self) -> str:
        return "check_api_health"

    @property
    def description(self) -> str:
        return "Check if API service is healthy and responding"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "Health check endpoint URL"},
                "timeout": {"type": "number", "description": "Timeout in ms", "default": 5000},
            },
            "required": ["url"],
        }

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        client: httpx.Client = context.handles.acquire(HTTP_CLIENT)
        url, timeout_ms = args["url"], args["timeout"]

        try:
            probe = send_request(client, "GET", url, timeout_ms=timeout_ms)
        except httpx.HTTPError as e:
            return request_failure(e, timeout_ms, "Health check failed")

        healthy = probe.status_code == 200
        return ToolResult.ok(
            f"API {'healthy' if healthy else 'unhealthy'} ({probe.status_code} in {probe.duration_ms}ms)",
            {
                "healthy": healthy,
                "status": probe.status_code,
                "responseTime": probe.duration_ms,
                "data": probe.data,
            },
            uri="result://health-check",
        )
