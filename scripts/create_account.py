import argparse
import getpass
import os
import sys
from pathlib import Path

import httpx

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from authui.config import DEFAULT_MIN_PASSWORD_LENGTH

_DEFAULT_SERVICE_URL = "http://localhost:3003"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an account on a running auth-ui service")
    parser.add_argument("name", help="Display name for the account")
    parser.add_argument("email", help="Unique email address for login")
    parser.add_argument(
        "--service-url",
        default=None,
        help="Base URL of the service (defaults to AUTH_SERVICE_URL or http://localhost:3003)",
    )
    return parser.parse_args(argv)


def prompt_for_password() -> str:
    for _ in range(3):
        password = getpass.getpass("Password: ")
        confirm = getpass.getpass("Confirm password: ")
        if password != confirm:
            print("Passwords do not match. Try again.", file=sys.stderr)
            continue
        if len(password) < DEFAULT_MIN_PASSWORD_LENGTH:
            print(f"Password must be at least {DEFAULT_MIN_PASSWORD_LENGTH} characters long.", file=sys.stderr)
            continue
        return password
    raise SystemExit("Failed to set password after three attempts.")


def main(argv=None) -> int:
    args = parse_args(argv)
    password = prompt_for_password()

    base_url = args.service_url or os.getenv("AUTH_SERVICE_URL") or _DEFAULT_SERVICE_URL
    endpoint = base_url.rstrip("/") + "/api/auth/signup"

    try:
        response = httpx.post(
            endpoint,
            json={"name": args.name.strip(), "email": args.email.strip(), "password": password},
            timeout=10.0,
        )
    except httpx.HTTPError as exc:
        print(f"Error: failed to contact auth service: {exc}", file=sys.stderr)
        return 1

    try:
        payload = response.json()
    except ValueError:
        payload = {}

    if response.status_code != 201:
        message = payload.get("message") or response.text.strip()
        print(f"Error: {message} (HTTP {response.status_code})", file=sys.stderr)
        return 1

    user = payload.get("user", {})
    print(f"Created account {user.get('name')} <{user.get('email')}>")
    print("Accounts live in memory only and are lost when the service restarts.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
