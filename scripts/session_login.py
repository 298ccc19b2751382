#!/usr/bin/env python3
"""Log in to the backend and keep the session in durable storage.

Usage:
    # Log in and persist the token pair:
    API_BASE_URL=https://api.example.com python scripts/session_login.py login --email me@example.com

    # Show what is stored and probe an authenticated endpoint:
    python scripts/session_login.py status --probe /api/auth/me

    # Log out (backend call + local wipe):
    python scripts/session_login.py logout

Environment Variables:
    API_BASE_URL: Backend origin
    SESSION_STORAGE: memory, file (default) or redis
    SESSION_STORAGE_ROOT: Directory for file storage (default ~/.authsession)
    SESSION_EMAIL: Email for login when --email is not given
    SESSION_PASSWORD: Password for login when --password is not given
"""
from __future__ import annotations

import argparse
import asyncio
import getpass
import os
import sys
from pathlib import Path
from typing import Optional

# Add project root to path for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


async def login(email: str, password: str) -> dict:
    from authsession import AuthApi, build_client

    async with build_client() as client:
        auth = await AuthApi(client).login(email, password)
        return {
            "user_id": auth.user_id,
            "email": auth.email,
            "business_slug": auth.business_slug,
            "must_change_password": bool(auth.must_change_password),
        }


async def status(probe: Optional[str]) -> dict:
    from authsession import build_client
    from authsession.logging import redact_token

    async with build_client() as client:
        store = client.token_store
        result = {
            "authenticated": store.is_authenticated(),
            "access_token": redact_token(store.get_access_token()),
            "refresh_token": redact_token(store.get_refresh_token()),
            "user": store.get_stored_user(),
        }
        if probe:
            response = await client.get(probe)
            result["probe_status"] = response.status_code
            result["refreshed"] = client.coordinator.refresh_count > 0
        return result


async def logout() -> None:
    from authsession import AuthApi, build_client

    async with build_client() as client:
        await AuthApi(client).logout()


def main():
    parser = argparse.ArgumentParser(
        description="Manage a persisted API session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login_parser = sub.add_parser("login", help="Log in and store the token pair")
    login_parser.add_argument("--email", default=os.environ.get("SESSION_EMAIL"))
    login_parser.add_argument(
        "--password",
        default=os.environ.get("SESSION_PASSWORD"),
        help="Password (or set SESSION_PASSWORD; prompted when missing)",
    )

    status_parser = sub.add_parser("status", help="Show the stored session")
    status_parser.add_argument("--probe", help="Authenticated path to GET through the session")

    sub.add_parser("logout", help="Log out and wipe the stored session")

    args = parser.parse_args()

    from authsession.errors import ApiError
    from authsession.logging import set_correlation_id
    from authsession.storage.errors import StorageError

    # One id for every log line of this invocation
    set_correlation_id()

    try:
        if args.command == "login":
            if not args.email:
                print("Error: --email or SESSION_EMAIL environment variable required")
                sys.exit(1)
            password = args.password or getpass.getpass("Password: ")
            result = asyncio.run(login(args.email, password))
            print(f"Logged in as {result['email']} (id: {result['user_id']})")
            if result["business_slug"]:
                print(f"  Business: {result['business_slug']}")
            if result["must_change_password"]:
                print("  Password change required before continuing.")
        elif args.command == "status":
            result = asyncio.run(status(args.probe))
            for key, value in result.items():
                print(f"{key}: {value}")
        else:
            asyncio.run(logout())
            print("Logged out.")
    except ApiError as e:
        print(f"Error ({e.error_code}): {e.message}")
        sys.exit(1)
    except StorageError as e:
        print(f"Error (storage): {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
