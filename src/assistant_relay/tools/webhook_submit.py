import json

import httpx
from loguru import logger

from assistant_relay.models import ToolCall
from assistant_relay.tool_handler import ToolCallContext


class WebhookToolHandler:
    """Forwards tool call arguments to the report submission endpoint.

    The endpoint is ``submission_url`` when configured, otherwise the
    tenant's own site joined with ``submission_path``.
    """

    def __init__(
        self,
        *,
        submission_url: str | None,
        submission_path: str,
        report_type: str,
        report_status: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._submission_url = submission_url
        self._submission_path = submission_path
        self._report_type = report_type
        self._report_status = report_status
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def endpoint_for(self, wordpress_url: str) -> str:
        if self._submission_url:
            return self._submission_url
        return wordpress_url.rstrip("/") + "/" + self._submission_path.lstrip("/")

    def build_payload(self, arguments: dict, context: ToolCallContext) -> dict:
        payload = dict(arguments)
        payload["webhook_url"] = context.webhook_url
        payload["report_type"] = self._report_type
        payload["status"] = self._report_status
        return payload

    async def handle(self, call: ToolCall, arguments: dict, context: ToolCallContext) -> str:
        url = self.endpoint_for(context.wordpress_url)
        payload = self.build_payload(arguments, context)
        logger.debug(f"Submitting tool call {call.id} ({call.name}) to {url}")

        async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
            response = await client.post(url, json=payload)
        response.raise_for_status()

        try:
            body = response.json()
        except ValueError:
            body = response.text
        logger.debug(f"Tool call {call.id} submitted: HTTP {response.status_code}")
        return json.dumps(body)
