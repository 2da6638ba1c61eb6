"""Translate tool invocations into upstream calls and back.

The adapter never raises: missing arguments, build failures, transport
errors, non-200 statuses and unreadable bodies all come back as
``ToolResult(is_error=True, ...)`` with a readable diagnostic. A body that is
not JSON is not an error; it is returned verbatim.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from ..exceptions import CancellationError, RequestBuildError, UpstreamStatusError
from ..telemetry.ring_log import ErrorEntry, RingLog, snippet
from ..upstream import (
    DEFAULT_ACCEPT,
    CallContext,
    RetryingClient,
    TransientFailure,
    build_request,
)
from .definitions import BUILTIN_TOOLS, ToolDefinition
from .results import ToolResult, format_body

logger = logging.getLogger("zeke_bridge.tools")


def upstream_headers(api_key: str) -> dict[str, str]:
    """Headers sent with every upstream tool call."""
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": DEFAULT_ACCEPT,
    }


async def invoke_tool(
    tool: ToolDefinition,
    arguments: dict[str, Any],
    *,
    client: RetryingClient,
    api_key: str,
    endpoint: str,
    tool_name: str | None = None,
    ring_log: RingLog | None = None,
    ctx: CallContext | None = None,
) -> ToolResult:
    """Run one tool invocation against ``endpoint``.

    Args:
        tool: The tool being invoked.
        arguments: Caller arguments.
        client: Retrying client used for the upstream call.
        api_key: Bearer credential for the upstream.
        endpoint: Upstream URL for this tool.
        tool_name: Name reported in diagnostics (defaults to the tool suffix).
        ring_log: Where upstream failures are recorded, if anywhere.
        ctx: Cancellation/deadline signal for the upstream call.

    Returns:
        ToolResult; never raises.
    """
    name = tool_name or tool.suffix
    arguments = arguments or {}
    if not isinstance(arguments, dict):
        return ToolResult.error("arguments must be an object")

    missing = tool.missing_argument(arguments)
    if missing:
        return ToolResult.error(f"{missing} is required")

    try:
        payload = json.dumps(tool.build_body(arguments))
    except (TypeError, ValueError):
        return ToolResult.error("failed to marshal request")

    try:
        call = build_request("POST", endpoint, payload, headers=upstream_headers(api_key))
    except RequestBuildError as e:
        logger.error(f"{name}: failed to create request: {e}")
        return ToolResult.error("failed to create request")

    def record(status: int, error: str, body: str = "") -> None:
        if ring_log is not None:
            ring_log.record(
                ErrorEntry(tool=name, endpoint=endpoint, status=status, error=error, body=body)
            )

    try:
        outcome = await client.execute(call, ctx)
    except CancellationError as e:
        logger.error(f"{name} upstream failed: {e} (endpoint={endpoint})")
        record(0, str(e))
        return ToolResult.error(f"{tool.display_name} upstream failed: {e}")

    if isinstance(outcome, TransientFailure):
        logger.error(f"{name} upstream failed: {outcome.cause} (endpoint={endpoint})")
        record(0, str(outcome.cause))
        return ToolResult.error(f"{tool.display_name} upstream failed: {outcome.cause}")

    if outcome.status_code != 200:
        # The body is only used for the log snippet
        try:
            body = await outcome.read()
        except httpx.HTTPError:
            body = b""
        err = UpstreamStatusError(
            f"upstream returned status {outcome.status_code}",
            status_code=outcome.status_code,
            body=snippet(body.decode("utf-8", errors="replace")),
        )
        logger.error(
            f"{name} upstream error: status={err.status_code} endpoint={endpoint} body={err.body}"
        )
        record(err.status_code, err.message, err.body)
        return ToolResult.error(err.message)

    try:
        body = await outcome.read()
    except httpx.HTTPError as e:
        logger.error(f"{name}: failed to read response: {e} (endpoint={endpoint})")
        record(outcome.status_code, f"failed to read response: {e}")
        return ToolResult.error("failed to read response")

    text = format_body(body, tool.label)
    return ToolResult.ok(text, {tool.result_key: text})


class ToolAdapter:
    """Registry of the bridge's tools, bound to credentials and endpoints.

    Usage:
        adapter = ToolAdapter(
            client,
            api_key="...",
            endpoints={"search": search_url, "reader": reader_url},
        )
        result = await adapter.invoke("zeke_search", {"query": "python"})
    """

    def __init__(
        self,
        client: RetryingClient,
        api_key: str,
        endpoints: dict[str, str],
        prefix: str = "zeke",
        ring_log: RingLog | None = None,
        tools: tuple[ToolDefinition, ...] = BUILTIN_TOOLS,
    ):
        """Initialize the adapter.

        Args:
            client: Retrying client shared with the rest of the bridge.
            api_key: Upstream bearer credential.
            endpoints: Upstream URL per tool suffix. Tools without an
                endpoint are not exposed.
            prefix: Tool name prefix ("zeke" -> "zeke_search").
            ring_log: Optional recent-error log.
            tools: Tool definitions to expose.
        """
        self.client = client
        self.api_key = api_key
        self.ring_log = ring_log
        self.prefix = prefix
        self._tools: dict[str, tuple[ToolDefinition, str]] = {
            tool.name(prefix): (tool, endpoints[tool.suffix])
            for tool in tools
            if endpoints.get(tool.suffix)
        }

    @property
    def tools(self) -> list[tuple[str, ToolDefinition]]:
        return [(name, tool) for name, (tool, _) in self._tools.items()]

    def endpoint(self, tool_name: str) -> str | None:
        entry = self._tools.get(tool_name)
        return entry[1] if entry else None

    async def invoke(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None,
        ctx: CallContext | None = None,
    ) -> ToolResult:
        entry = self._tools.get(tool_name)
        if entry is None:
            return ToolResult.error(f"unknown tool: {tool_name}")
        tool, endpoint = entry
        return await invoke_tool(
            tool,
            arguments or {},
            client=self.client,
            api_key=self.api_key,
            endpoint=endpoint,
            tool_name=tool_name,
            ring_log=self.ring_log,
            ctx=ctx,
        )
