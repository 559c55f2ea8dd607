"""
Configuration for the Betfair session client.

Endpoint tables and timeouts live on an explicit ``SessionConfig`` that
is handed to each session at construction; nothing here is mutable
process state.  ``load_config`` and ``load_account`` build these
objects from ``BETFAIR_*`` environment variables through a
``CredentialSource``, for scripts and deployments that prefer not to
wire them up in code.

Recognised keys
---------------

``BETFAIR_USERNAME`` / ``BETFAIR_PASSWORD`` / ``BETFAIR_APP_KEY``
    Account credentials.  Each may instead be mounted as a file named by
    ``BETFAIR_USERNAME_FILE`` etc.; the file wins when both are set.
    Relative file paths resolve against ``BETFAIR_SECRETS_DIR``.

``BETFAIR_LOGIN_METHOD``
    ``interactive`` (default) or ``certificate``.

``BETFAIR_CERT_FILE`` / ``BETFAIR_KEY_FILE``
    PEM client certificate and key for certificate login.

``BETFAIR_KEEP_ALIVE``
    ``true``/``1``/``yes`` to start the keep-alive loop after login.

``BETFAIR_CLIENT_TIMEOUT`` / ``BETFAIR_POOL_CAPACITY`` / ``BETFAIR_KEEP_ALIVE_INTERVAL``
    Transport timeout in seconds (default 10), maximum concurrent
    exchanges per session (default 100) and seconds between keep-alive
    calls (default 600).

Interactive login needs a username, password and application key;
certificate login needs an application key and a certificate file.
Missing keys are reported together in one ``ConfigurationError``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .models import Account, LoginMethod


ENV_PREFIX = "BETFAIR_"

# Keys that may be supplied as a mounted file via ``BETFAIR_<KEY>_FILE``
FILE_BACKED_KEYS = frozenset({"USERNAME", "PASSWORD", "APP_KEY"})

REQUIRED_KEYS: Dict[LoginMethod, Tuple[str, ...]] = {
    LoginMethod.INTERACTIVE: ("USERNAME", "PASSWORD", "APP_KEY"),
    LoginMethod.CERTIFICATE: ("APP_KEY", "CERT_FILE"),
}


DEFAULT_BETTING_ENDPOINTS: Dict[str, str] = {
    "uk": "https://api.betfair.com/exchange/betting/json-rpc/v1",
    "au": "https://api-au.betfair.com/exchange/betting/json-rpc/v1",
}


class SessionConfig(BaseModel):
    """Endpoints, timeouts and limits consumed by a session."""

    model_config = ConfigDict(frozen=True)

    interactive_login_endpoint: str = "https://identitysso-api.betfair.com/api/login"
    certificate_login_endpoint: str = "https://identitysso-api.betfair.com/api/certlogin"
    keep_alive_endpoint: str = "https://identitysso.betfair.com/api/keepAlive"
    betting_endpoints: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_BETTING_ENDPOINTS))
    navigation_endpoint_format: str = (
        "https://api.betfair.com/exchange/betting/rest/v1/{locale}/navigation/menu.json"
    )
    client_timeout: float = Field(default=10.0, gt=0)
    pool_capacity: int = Field(default=100, ge=1)
    keep_alive_interval: float = Field(default=600.0, gt=0)

    def login_endpoint(self, method: LoginMethod) -> str:
        if method is LoginMethod.CERTIFICATE:
            return self.certificate_login_endpoint
        return self.interactive_login_endpoint

    def betting_endpoint(self, exchange: object) -> str:
        """Resolve an exchange name such as ``"uk"`` to its JSON-RPC URL."""
        endpoint = self.betting_endpoints.get(str(exchange).lower())
        if endpoint is None:
            raise ConfigurationError(f"Invalid exchange name `{exchange}`")
        return endpoint


class CredentialSource:
    """Reads ``BETFAIR_*`` settings from an environment mapping.

    Blank values count as unset.  A ``*_FILE`` path that cannot be read
    is a configuration error rather than a silently missing credential.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None, base_path: Optional[Path] = None) -> None:
        self.environ = os.environ if environ is None else environ
        if base_path is None and self.environ.get(f"{ENV_PREFIX}SECRETS_DIR"):
            base_path = Path(self.environ[f"{ENV_PREFIX}SECRETS_DIR"])
        self.base_path = base_path

    def _read_file(self, key: str, file_path: str) -> str:
        path = Path(file_path)
        if not path.is_absolute() and self.base_path is not None:
            path = self.base_path / path
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read {ENV_PREFIX}{key}_FILE ({path}): {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        """Return the value for ``key`` (without the ``BETFAIR_`` prefix)."""
        name = f"{ENV_PREFIX}{key}"
        if key in FILE_BACKED_KEYS:
            file_path = self.environ.get(f"{name}_FILE")
            if file_path:
                return self._read_file(key, file_path) or None
        value = self.environ.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    def missing(self, keys: Tuple[str, ...]) -> List[str]:
        return [f"{ENV_PREFIX}{key}" for key in keys if self.get(key) is None]

    def login_method(self) -> LoginMethod:
        method_name = (self.get("LOGIN_METHOD") or LoginMethod.INTERACTIVE.value).lower()
        try:
            return LoginMethod(method_name)
        except ValueError:
            raise ConfigurationError(f"Unknown login method `{method_name}`") from None


def _truthy(value: Optional[str]) -> bool:
    return str(value or "false").lower() in {"true", "1", "yes"}


def load_config(source: Optional[CredentialSource] = None) -> SessionConfig:
    """Build a ``SessionConfig`` from the environment, keeping defaults for unset keys."""
    source = source or CredentialSource()
    overrides: Dict[str, str] = {}
    for key, field in (
        ("CLIENT_TIMEOUT", "client_timeout"),
        ("POOL_CAPACITY", "pool_capacity"),
        ("KEEP_ALIVE_INTERVAL", "keep_alive_interval"),
    ):
        value = source.get(key)
        if value:
            overrides[field] = value
    try:
        return SessionConfig(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid session configuration: {exc}") from exc


def load_account(source: Optional[CredentialSource] = None) -> Account:
    """Build an ``Account`` from ``BETFAIR_*`` settings.

    Raises ``ConfigurationError`` naming every key the chosen login method
    needs but did not get.
    """
    source = source or CredentialSource()
    login_method = source.login_method()
    missing = source.missing(REQUIRED_KEYS[login_method])
    if missing:
        raise ConfigurationError(f"Missing {login_method.value} login settings: {', '.join(missing)}")
    try:
        return Account(
            username=source.get("USERNAME") or "",
            password=source.get("PASSWORD") or "",
            application_key=source.get("APP_KEY") or "",
            cert_file=source.get("CERT_FILE"),
            key_file=source.get("KEY_FILE"),
            keep_alive=_truthy(source.get("KEEP_ALIVE")),
            login_method=login_method,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid account configuration: {exc}") from exc


__all__ = [
    "DEFAULT_BETTING_ENDPOINTS",
    "SessionConfig",
    "CredentialSource",
    "load_config",
    "load_account",
]
