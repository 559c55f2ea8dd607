#!/usr/bin/env python
"""Betfair session check.

Logs in with the account described by the ``BETFAIR_*`` environment
variables, optionally sends a keep-alive and lists event types.  Use it
to confirm credentials, certificates and network access before running
anything that depends on a live session.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from betfair_session import BetfairError, BetfairSession, BettingAPI, load_account, load_config
from betfair_session.telemetry import start_metrics_server


async def run(args: argparse.Namespace) -> int:
    logger = logging.getLogger("session_check")
    account = load_account()
    config = load_config()
    async with BetfairSession(account, config) as session:
        try:
            token = await session.get_token()
            logger.info("Login OK (%s, token length %d)", account.login_method.value, len(token))
            if args.keep_alive:
                await session.keep_alive()
                logger.info("Keep-alive OK")
            if args.list_event_types:
                event_types = await BettingAPI(session).list_event_types({"exchange": args.exchange})
                for item in event_types:
                    print(f"{item.event_type.id}\t{item.event_type.name}\t{item.market_count}")
        except BetfairError as exc:
            logger.error("Session check failed: %s", exc)
            return 1
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Verify Betfair login using BETFAIR_* settings.")
    parser.add_argument("--keep-alive", action="store_true", help="Also call the keep-alive endpoint.")
    parser.add_argument("--list-event-types", action="store_true", help="List event types after login.")
    parser.add_argument("--exchange", default="uk", help="Exchange for API calls (uk or au).")
    parser.add_argument("--metrics-port", type=int, help="Expose Prometheus metrics on this port while running.")
    args = parser.parse_args()
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    if args.metrics_port:
        start_metrics_server(args.metrics_port)
    try:
        sys.exit(asyncio.run(run(args)))
    except BetfairError as exc:
        logging.getLogger("session_check").error("%s", exc)
        sys.exit(2)


if __name__ == "__main__":
    main()
