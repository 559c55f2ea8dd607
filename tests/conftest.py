"""Pytest configuration for path setup and shared fixtures.

The package lives under ``betfair/src``.  When pytest runs without the
package installed, neither that directory nor the repository root is on
``sys.path``; this file adds both so that ``betfair_session`` and the
``tests.helpers`` fakes can be imported during collection.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]

for path in (ROOT, ROOT / "betfair" / "src"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from betfair_session.models import Account, LoginMethod  # noqa: E402
from tests.helpers.fake_transport import FakeTransport  # noqa: E402


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def account() -> Account:
    return Account(username="punter", password="s3cret&pass", application_key="app-key")


@pytest.fixture
def cert_account() -> Account:
    return Account(
        username="punter",
        application_key="app-key",
        cert_file="client.crt",
        key_file="client.key",
        login_method=LoginMethod.CERTIFICATE,
    )
