"""
Check the Indexing API setup step by step.

Steps:
1. Validate the service account key.
2. Exchange it for an access token.
3. Optionally publish one URL (not logged to the database).

Usage:
    python -m scripts.indexing_check
    python -m scripts.indexing_check --key-file key.json --url https://example.com/post
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from dotenv import load_dotenv

from indexing import GoogleAuthClient, IndexingClient, IndexingError, parse_credential, service_account_source
from notification_log import NOTIFICATION_TYPES, URL_UPDATED


async def main_async(args: argparse.Namespace) -> None:
    load_dotenv()
    if args.key_file:
        raw = Path(args.key_file).read_text(encoding="utf-8")
    else:
        raw = service_account_source()()
    try:
        credential = parse_credential(raw)
    except IndexingError as exc:
        raise SystemExit(f"Service account key rejected: {exc.message}")
    print(f"Key OK: {credential.client_email} (project {credential.project_id})")

    auth = GoogleAuthClient()
    client = IndexingClient()
    try:
        token = await auth.fetch_token(credential)
        print(f"Token issued, expires in {token.expires_in} s")
        if args.url:
            response = await client.publish(token.access_token, url=args.url, notification_type=args.type)
            print(f"Publish HTTP {response.status}")
            print(json.dumps(response.data, indent=2) if response.data is not None else response.body)
    except IndexingError as exc:
        raise SystemExit(f"[{exc.status}] {exc.message}")
    finally:
        await client.close()
        await auth.close()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Indexing API setup helper.")
    parser.add_argument("--key-file", help="Path to the service account JSON (defaults to the environment)")
    parser.add_argument("--url", help="Publish a notification for this URL")
    parser.add_argument("--type", choices=list(NOTIFICATION_TYPES), default=URL_UPDATED)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
