"""
Client utilities for talking to the Betfair identity and betting services.

This package provides the aiohttp transport, the login strategies for
each login method, the connection pool that caps concurrent exchanges
and the background keep-alive loop.
"""

from .auth_providers import (  # noqa: F401
    Authenticator,
    CertificateAuthenticator,
    InteractiveAuthenticator,
    create_authenticator,
)
from .connection_pool import ConnectionPool  # noqa: F401
from .http_transport import HttpTransport  # noqa: F401
from .keep_alive import KeepAliveLoop  # noqa: F401
