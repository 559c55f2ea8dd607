"""
Login handshakes for the Betfair identity service.

Each authenticator knows one credential-presentation strategy: which
endpoint to call, how to encode the request and how to read the token
out of the response.  Keeping these apart from the session means the
session only ever asks for "a token" and never branches on login mode.
Authenticators do not store the token; the session owns it.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import urlencode

from ..config import SessionConfig
from ..errors import AuthenticationError, DecodeError
from ..models import (
    SUCCESS,
    Account,
    CertificateLoginResponse,
    InteractiveLoginResponse,
    LoginMethod,
    parse_model,
)
from ..telemetry import LOGIN_TOTAL
from .http_transport import HttpTransport


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class Authenticator:
    """Abstract base class for login strategies."""

    login_method: LoginMethod

    def __init__(self, transport: HttpTransport, config: Optional[SessionConfig] = None) -> None:
        self.transport = transport
        self.config = config or SessionConfig()

    @property
    def endpoint(self) -> str:
        return self.config.login_endpoint(self.login_method)

    def build_headers(self, account: Account) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": FORM_CONTENT_TYPE,
            "X-Application": account.application_key,
        }

    async def login(self, account: Account) -> str:
        """Log ``account`` in and return its session token.

        Subclasses implement :meth:`_login`; this wrapper records the
        outcome.
        """
        try:
            token = await self._login(account)
        except AuthenticationError as exc:
            LOGIN_TOTAL.labels(method=self.login_method.value, result="rejected").inc()
            logger.warning("Betfair %s login rejected: %s", self.login_method.value, exc.reason)
            raise
        except Exception:
            LOGIN_TOTAL.labels(method=self.login_method.value, result="error").inc()
            raise
        LOGIN_TOTAL.labels(method=self.login_method.value, result="success").inc()
        logger.info("Betfair %s login succeeded for %s", self.login_method.value, account.username)
        return token

    async def _login(self, account: Account) -> str:
        raise NotImplementedError


class InteractiveAuthenticator(Authenticator):
    """Username/password login posted as a form."""

    login_method = LoginMethod.INTERACTIVE

    async def _login(self, account: Account) -> str:
        body = urlencode({"username": account.username, "password": account.password})
        raw = await self.transport.request("POST", self.endpoint, headers=self.build_headers(account), data=body)
        response = parse_model(raw, InteractiveLoginResponse)
        if response.status != SUCCESS:
            raise AuthenticationError(response.error or response.status)
        if not response.token:
            raise DecodeError("Login succeeded but no token was returned", body=raw)
        return response.token


class CertificateAuthenticator(Authenticator):
    """Non-interactive login; the client certificate on the transport identifies the caller."""

    login_method = LoginMethod.CERTIFICATE

    async def _login(self, account: Account) -> str:
        raw = await self.transport.request("POST", self.endpoint, headers=self.build_headers(account), data="")
        response = parse_model(raw, CertificateLoginResponse)
        if response.login_status != SUCCESS:
            raise AuthenticationError(response.login_status)
        if not response.session_token:
            raise DecodeError("Login succeeded but no session token was returned", body=raw)
        return response.session_token


def create_authenticator(
    account: Account, transport: HttpTransport, config: Optional[SessionConfig] = None
) -> Authenticator:
    """Return the authenticator matching ``account.login_method``."""
    if account.login_method is LoginMethod.CERTIFICATE:
        return CertificateAuthenticator(transport, config)
    return InteractiveAuthenticator(transport, config)


__all__ = [
    "Authenticator",
    "InteractiveAuthenticator",
    "CertificateAuthenticator",
    "create_authenticator",
]
