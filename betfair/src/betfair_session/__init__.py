"""
Betfair session client.

Authenticates against the Betfair identity service and performs
authenticated JSON-RPC/REST exchanges on behalf of a caller.  The
``BetfairSession`` handles lazy single-flight login, the optional
keep-alive loop and the per-session connection pool; ``BettingAPI``
layers the SportsAPING listing calls on top of it.
"""

from .api import BettingAPI  # noqa: F401
from .config import SessionConfig, load_account, load_config  # noqa: F401
from .errors import (  # noqa: F401
    APIError,
    AuthenticationError,
    BetfairError,
    ConfigurationError,
    DecodeError,
    TransportError,
)
from .models import Account, LoginMethod, MarketFilter, TimeRange  # noqa: F401
from .session import BetfairSession  # noqa: F401
