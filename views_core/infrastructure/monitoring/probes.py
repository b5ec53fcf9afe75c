#!/usr/bin/env python3
"""
Default Health Probes

The named probe set the debug agent runs in run_health_checks():

    google-ai      AI credential is configured
    local-storage  session store accepts a write
    network        TCP connect to a well-known host succeeds
    supabase       metadata control-plane answers (2xx or 401)
    mcp-service    storage control-plane /health answers 2xx

Every probe is an opaque ``async () -> bool``. Expected failures (missing
configuration, refused connections, HTTP errors) become False so the agent
reports ``degraded``; anything unexpected propagates and the agent reports
``down``.

Architectural Decision: httpx.AsyncClient per probe call
- Probes run rarely; no pooled client to manage or close
- An injectable transport lets tests answer without a network

Author: Senior Solution Architect
Date: 2025-12-13
"""

import asyncio
from typing import Awaitable, Callable, Union

import httpx

from views_core.core.config.constants import (
    GOOGLE_API_KEY_MIN_LENGTH,
    PROBE_GOOGLE_AI,
    PROBE_LOCAL_STORAGE,
    PROBE_MCP_SERVICE,
    PROBE_NETWORK,
    PROBE_REQUEST_TIMEOUT,
    PROBE_SUPABASE,
    SESSION_KEY_HEALTH_PROBE,
)
from views_core.core.config.settings import Settings, get_settings
from views_core.core.exceptions.diagnostics import SessionStoreError
from views_core.core.logging.logger import get_logger
from views_core.infrastructure.storage.session_store import SessionStore, build_session_store

logger = get_logger(__name__)

Probe = Callable[[], Union[Awaitable[bool], bool]]


class ServiceProbes:
    """
    Probe implementations bound to one settings snapshot.

    Usage:
        probes = ServiceProbes(get_settings(), session_store)
        agent = DebugAgent(probes=probes.as_dict())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_store: SessionStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        request_timeout: float = PROBE_REQUEST_TIMEOUT,
    ):
        self.settings = settings or get_settings()
        self._probe_settings = self.settings.probes
        self._session_store = session_store or build_session_store(
            self.settings.diagnostics.DEBUG_SESSION_DIR
        )
        self._transport = transport
        self._timeout = request_timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    async def google_ai(self) -> bool:
        """Credential present and plausibly long; no request is made."""
        key = self._probe_settings.GOOGLE_API_KEY
        return bool(key) and len(key) > GOOGLE_API_KEY_MIN_LENGTH

    async def local_storage(self) -> bool:
        try:
            self._session_store.set_item(SESSION_KEY_HEALTH_PROBE, "test")
            self._session_store.remove_item(SESSION_KEY_HEALTH_PROBE)
        except SessionStoreError as e:
            logger.debug("Session store probe failed", category="health", error=str(e))
            return False
        return True

    async def network(self) -> bool:
        host = self._probe_settings.NETWORK_PROBE_HOST
        port = self._probe_settings.NETWORK_PROBE_PORT

        try:
            _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), self._timeout)
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug("Network probe failed", category="health", host=host, port=port, error=str(e))
            return False

        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            # Peer reset during close; the connect already succeeded
            pass
        return True

    async def supabase(self) -> bool:
        url = self._probe_settings.SUPABASE_URL
        if not url:
            return False

        headers = {}
        if self._probe_settings.SUPABASE_ANON_KEY:
            headers["apikey"] = self._probe_settings.SUPABASE_ANON_KEY

        try:
            async with self._client() as client:
                response = await client.head(f"{url.rstrip('/')}/rest/v1/", headers=headers)
        except httpx.HTTPError as e:
            logger.debug("Supabase probe failed", category="health", error=str(e))
            return False

        # 401 still proves the control plane is up
        return response.is_success or response.status_code == 401

    async def mcp_service(self) -> bool:
        url = f"{self._probe_settings.MCP_URL.rstrip('/')}/health"

        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.debug("MCP probe failed", category="health", error=str(e))
            return False

        return response.is_success

    def as_dict(self) -> dict[str, Probe]:
        """Named probes in reporting order."""
        return {
            PROBE_GOOGLE_AI: self.google_ai,
            PROBE_LOCAL_STORAGE: self.local_storage,
            PROBE_NETWORK: self.network,
            PROBE_SUPABASE: self.supabase,
            PROBE_MCP_SERVICE: self.mcp_service,
        }


def build_default_probes(
    settings: Settings | None = None,
    session_store: SessionStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Probe]:
    """Default named probe set for the debug agent."""
    return ServiceProbes(settings, session_store, transport).as_dict()
