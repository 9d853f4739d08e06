#!/usr/bin/env python3
"""
Query Odoo from the command line

Logs in with the ODOO_* environment settings and prints `search_read`
results as JSON. Handy for checking credentials and relay configuration
before wiring a report into the dashboard.

Usage:
    python query_odoo.py sale.order --fields name amount_total --limit 5
    python query_odoo.py res.company --domain '[["name", "ilike", "Acme"]]'
    ODOO_RELAYS='["direct", "corsproxy"]' python query_odoo.py res.partner
"""

import argparse
import asyncio
import json
import logging
import sys

from odoo_dashboard.config import Settings
from odoo_dashboard.odoo import OdooClient, OdooError


async def main(model: str, domain: list, fields: list[str], limit: int) -> int:
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())

    if not settings.odoo_username or not settings.odoo_secret:
        print("Set ODOO_USERNAME and ODOO_API_KEY (or ODOO_PASSWORD)", file=sys.stderr)
        return 2

    client = OdooClient.from_settings(settings)
    try:
        session = await client.login(settings.odoo_username, settings.odoo_secret)
        records = await client.query(
            session, settings.odoo_secret, model, domain, fields, {"limit": limit}
        )
    except OdooError as e:
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1
    finally:
        await client.close()

    print(json.dumps(records, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("model", help="Odoo model, e.g. sale.order")
    parser.add_argument(
        "--domain",
        default="[]",
        help="Search domain as JSON, e.g. '[[\"state\", \"=\", \"sale\"]]'"
    )
    parser.add_argument(
        "--fields",
        nargs="*",
        default=["id", "display_name"],
        help="Fields to read"
    )
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.model, json.loads(args.domain), args.fields, args.limit)))
