"""
Meta Graph API client for the Conversions API.

Sends a batch of server events to ``/{pixel_id}/events``. Any transport
failure or error response is raised as MetaGraphError so the dispatcher can
decide whether to retry.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any

import httpx

from src.components.capi.models import MetaGraphError

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.facebook.com"
GRAPH_VERSION = "v24.0"
DEFAULT_TIMEOUT_SECONDS = 10.0


class MetaGraphClient:
    def __init__(
        self,
        access_token: str,
        app_secret: str | None = None,
        base_url: str = GRAPH_BASE_URL,
        version: str = GRAPH_VERSION,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.access_token = access_token
        self.app_secret = app_secret
        self.base_url = base_url.rstrip("/")
        self.version = version
        self.timeout = timeout
        self._transport = transport

    def _auth_params(self) -> dict[str, str]:
        params = {"access_token": self.access_token}
        if self.app_secret:
            params["appsecret_proof"] = hmac.new(
                self.app_secret.encode(), self.access_token.encode(), hashlib.sha256
            ).hexdigest()
        return params

    def send_events(
        self,
        pixel_id: str,
        events: list[dict[str, Any]],
        test_event_code: str | None = None,
    ) -> dict[str, Any]:
        if not pixel_id:
            raise MetaGraphError("Meta pixel id is not configured")

        body: dict[str, Any] = {"data": events}
        if test_event_code:
            body["test_event_code"] = test_event_code

        url = f"{self.base_url}/{self.version}/{pixel_id}/events"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, params=self._auth_params(), json=body)
        except httpx.HTTPError as e:
            logger.warning(f"Meta Graph request failed: {e}")
            raise MetaGraphError(f"Meta Graph request failed: {e}") from e

        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            data = {}

        error = data.get("error") if isinstance(data, dict) else None
        if response.status_code >= 400 or error:
            details = error if isinstance(error, dict) else {}
            message = details.get("message") or f"Meta Graph error {response.status_code}"
            logger.warning(
                f"Meta Graph rejected events for pixel {pixel_id}: "
                f"{response.status_code} {message}"
            )
            raise MetaGraphError(
                message, status=response.status_code, trace_id=details.get("fbtrace_id")
            )

        logger.info(
            f"Meta Graph accepted {data.get('events_received', len(events))} events "
            f"for pixel {pixel_id}"
        )
        return data
