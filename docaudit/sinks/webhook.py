"""Generic JSON webhook sink.

Posts the audit record's wire form as a JSON body to a configured HTTP
endpoint, so any collector can store it without docaudit-specific code.
"""

from __future__ import annotations

import json

import httpx
import structlog

from docaudit.models.audit import AuditRecord
from docaudit.sinks.manager import AuditSink

_log = structlog.get_logger(component="sinks.webhook")


class WebhookSink(AuditSink):
    """Delivers records by POSTing a JSON payload to a configurable URL.

    Args:
        url:       Full endpoint URL (must be HTTPS in production).
        headers:   Optional extra headers (e.g. Authorization).
        timeout:   HTTP request timeout in seconds. Defaults to 10.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._transport = transport

    @property
    def sink_name(self) -> str:
        return "webhook"

    @property
    def has_storage(self) -> bool:
        return True

    async def store(self, record: AuditRecord) -> bool:
        """POST *record* as JSON to the configured endpoint.

        Returns True on 2xx response, False otherwise.
        """
        request_headers = {
            "Content-Type": "application/json",
            **self._headers,
        }
        body = json.dumps(record.to_dict(), default=str)

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, content=body, headers=request_headers)
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_non_2xx_response",
                    status_code=response.status_code,
                    body=response.text[:200],
                    record_id=record.record_id,
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", record_id=record.record_id, url=self._url)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc), record_id=record.record_id)
            return False
