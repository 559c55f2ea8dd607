"""
Authenticated Betfair session.

A ``BetfairSession`` owns one session token, one HTTP transport and one
connection pool for a single account.  The token is fetched lazily on
first use: however many coroutines ask for it at once, only one login
request is sent and every caller receives its outcome.  A failed login
leaves the session without a token, so the next call tries again.  Once
set, the token never changes for the life of the session.

Every authenticated exchange holds a pool permit for the duration of the
network call, which bounds concurrency per session independently of the
token lock.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Type, Union

from .clients.auth_providers import Authenticator, create_authenticator
from .clients.connection_pool import ConnectionPool
from .clients.http_transport import Body, HttpTransport
from .clients.keep_alive import KeepAliveLoop
from .config import SessionConfig
from .errors import AuthenticationError, BetfairError, ConfigurationError, DecodeError
from .models import SUCCESS, Account, KeepAliveResponse, ModelT, parse_model


logger = logging.getLogger(__name__)

ALLOWED_METHODS = frozenset({"GET", "POST"})


class BetfairSession:
    """Token lifecycle and pooled request execution for one account."""

    def __init__(
        self,
        account: Account,
        config: Optional[SessionConfig] = None,
        *,
        transport: Optional[HttpTransport] = None,
        authenticator: Optional[Authenticator] = None,
        pool: Optional[ConnectionPool] = None,
    ) -> None:
        """Construct the session.  No network call is made until a token is needed.

        Args:
            account: Credentials and login preferences.
            config: Endpoints and limits; defaults to production Betfair values.
            transport: Request executor; built from ``account`` when omitted.
            authenticator: Login strategy; chosen from ``account.login_method``
                when omitted.
            pool: Admission gate; sized from ``config.pool_capacity`` when omitted.
        """
        self.account = account
        self.config = config or SessionConfig()
        self.transport = transport or HttpTransport.for_account(account, self.config)
        self.authenticator = authenticator or create_authenticator(account, self.transport, self.config)
        self.pool = pool or ConnectionPool(self.config.pool_capacity)
        self.keep_alive_loop = KeepAliveLoop(self.keep_alive, interval=self.config.keep_alive_interval)
        # Guards _token, _pending and the keep-alive start
        self._lock = asyncio.Lock()
        self._token: Optional[str] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def token(self) -> Optional[str]:
        """Current token, or ``None`` before the first successful login."""
        return self._token

    async def get_token(self) -> str:
        """Return the session token, logging in on first use.

        Concurrent callers share a single in-flight login.  If it fails,
        all of them receive the same exception and the session stays
        without a token.
        """
        token = self._token
        if token:
            return token
        async with self._lock:
            if self._token:
                return self._token
            if self._pending is None:
                self._pending = asyncio.create_task(self._login(), name="betfair-login")
                self._pending.add_done_callback(self._login_finished)
            pending = self._pending
        # Shielded so one caller's cancellation does not abort the login for the rest
        return await asyncio.shield(pending)

    async def _login(self) -> str:
        try:
            token = await self.authenticator.login(self.account)
            async with self._lock:
                self._token = token
                if self.account.keep_alive:
                    self.keep_alive_loop.start()
            return token
        finally:
            # Cleared before the task completes so a caller arriving after a
            # failure starts a fresh attempt instead of reusing this one
            self._pending = None

    def _login_finished(self, task: asyncio.Task) -> None:
        # Retrieves the exception so an unawaited failure is not reported as lost
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Login attempt failed; next call will retry: %s", task.exception())

    def build_headers(self, token: str) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "X-Application": self.account.application_key,
            "X-Authentication": token,
        }

    async def execute_authenticated(self, method: str, endpoint: str, body: Body = None) -> bytes:
        """Send an authenticated request and return the raw response body.

        Raises ``ConfigurationError`` before any network call if the method
        or endpoint is unusable.
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ConfigurationError(f"Unsupported HTTP method `{method}`")
        if not endpoint.startswith(("https://", "http://")):
            raise ConfigurationError(f"Invalid endpoint `{endpoint}`")
        token = await self.get_token()
        headers = self.build_headers(token)
        if body:
            headers["Content-Type"] = "application/json"
        async with self.pool.acquire():
            return await self.transport.request(method, endpoint, headers=headers, data=body)

    async def request_json(
        self,
        method: str,
        endpoint: str,
        model: Optional[Type[ModelT]] = None,
        body: Body = None,
    ) -> Union[ModelT, Any]:
        """Like :meth:`execute_authenticated` but decodes the JSON body.

        When ``model`` is given the body is validated into it; otherwise the
        plain decoded JSON is returned.  Decoding problems raise
        ``DecodeError``, never ``TransportError``.
        """
        raw = await self.execute_authenticated(method, endpoint, body)
        if model is not None:
            return parse_model(raw, model)
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeError(f"Response from {endpoint} is not valid JSON: {exc}", body=raw) from exc

    async def keep_alive(self) -> bool:
        """Extend the token's lifetime.  Returns True or raises ``AuthenticationError``."""
        response = await self.request_json("POST", self.config.keep_alive_endpoint, KeepAliveResponse, body="")
        if response.status == SUCCESS:
            return True
        raise AuthenticationError(response.error or response.status)

    async def close(self) -> None:
        """Stop the keep-alive loop, abandon any pending login and close the transport."""
        await self.keep_alive_loop.stop()
        pending = self._pending
        if pending is not None and not pending.done():
            pending.cancel()
            try:
                await pending
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise
            except BetfairError as exc:
                logger.debug("Pending login finished with %s during close", exc)
        await self.transport.close()

    async def __aenter__(self) -> "BetfairSession":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
