"""
HTTP transport for the Betfair session client.

Wraps a single ``aiohttp.ClientSession`` that is shared by every request
a session makes, so TCP/TLS connections are reused by aiohttp's
connector.  For certificate login the client certificate is loaded into
the SSL context once, when the transport is built, and presented on
every connection it opens.

The transport only moves bytes.  It does not know about tokens or JSON;
network and TLS failures are converted to ``TransportError`` here so
nothing above it has to import aiohttp.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from typing import Mapping, Optional, Union

import aiohttp

from ..config import SessionConfig
from ..errors import ConfigurationError, TransportError
from ..models import Account


logger = logging.getLogger(__name__)

Body = Union[str, bytes, None]


def build_ssl_context(account: Account) -> Optional[ssl.SSLContext]:
    """Return an SSL context carrying the account's client certificate.

    Interactive accounts use aiohttp's default verification context, so
    ``None`` is returned for them.
    """
    if not account.uses_certificate:
        return None
    if not account.cert_file:
        raise ConfigurationError("Certificate login requires a client certificate file")
    context = ssl.create_default_context()
    try:
        context.load_cert_chain(certfile=account.cert_file, keyfile=account.key_file)
    except (OSError, ssl.SSLError) as exc:
        raise ConfigurationError(f"Unable to load client certificate {account.cert_file}: {exc}") from exc
    return context


class HttpTransport:
    """Asynchronous request executor backed by aiohttp."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        ssl_context: Optional[ssl.SSLContext] = None,
        connection_limit: int = 100,
    ) -> None:
        """Construct the transport.

        Args:
            timeout: Seconds allowed for a whole exchange, connection included.
            ssl_context: Optional context presenting a client certificate.
            connection_limit: Upper bound on sockets held by the connector.
        """
        self.timeout = timeout
        self.ssl_context = ssl_context
        self.connection_limit = connection_limit
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def for_account(cls, account: Account, config: SessionConfig) -> "HttpTransport":
        return cls(
            timeout=config.client_timeout,
            ssl_context=build_ssl_context(account),
            connection_limit=config.pool_capacity,
        )

    def _client(self) -> aiohttp.ClientSession:
        # Created lazily because aiohttp binds the session to the running loop
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.connection_limit,
                ssl=self.ssl_context if self.ssl_context is not None else True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        data: Body = None,
    ) -> bytes:
        """Perform one exchange and return the raw response body."""
        try:
            async with self._client().request(method, url, headers=dict(headers), data=data) as resp:
                body = await resp.read()
        except asyncio.TimeoutError as exc:
            raise TransportError(f"{method} {url} timed out after {self.timeout}s") from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        # 4xx bodies carry JSON error payloads that callers decode themselves
        if resp.status >= 500:
            logger.error("Betfair %s %s returned %s: %s", method, url, resp.status, body[:200])
            raise TransportError(f"{method} {url} returned HTTP {resp.status}", status=resp.status)
        return body

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
