"""Command line interface for the Chaum-Pedersen authentication service."""

from __future__ import annotations

import argparse
import getpass
import json
import sys

import httpx

from cpauth.client import AuthClient
from cpauth.config import Settings, configure_logging
from cpauth.constants import GROUPS
from cpauth.crypto import encode_int, generate_secret, public_key, secret_from_password
from cpauth.errors import CPAuthError
from cpauth.params import GroupParameters, load

DEFAULT_URL = "http://127.0.0.1:8000"


def _add_secret_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--secret", help="Hex-encoded secret exponent")
    group.add_argument(
        "--password",
        action="store_true",
        help="Prompt for a password and derive the secret from it",
    )


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen_parser = subparsers.add_parser("keygen", help="Derive a public key pair")
    keygen_parser.add_argument(
        "--group",
        default=Settings().group,
        choices=sorted(GROUPS),
        help="Named group to derive the key in",
    )
    _add_secret_options(keygen_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP verifier")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    for name, help_text in (
        ("register", "Register a credential with a running server"),
        ("login", "Prove knowledge of a registered credential"),
    ):
        client_parser = subparsers.add_parser(name, help=help_text)
        client_parser.add_argument("username")
        client_parser.add_argument("--url", default=DEFAULT_URL, help="Server base URL")
        _add_secret_options(client_parser)

    return parser.parse_args(argv)


def _resolve_secret(namespace: argparse.Namespace, params: GroupParameters, *, allow_new: bool) -> tuple[int, bool]:
    if namespace.secret:
        return int(namespace.secret, 16) % params.q, False
    if namespace.password:
        return secret_from_password(params, getpass.getpass("Password: ")), False
    if allow_new:
        return generate_secret(params), True
    raise ValueError("A --secret or --password is required")


def _print_key(params: GroupParameters, secret: int, generated: bool) -> None:
    y1, y2 = public_key(params, secret)
    payload = {
        "y1": encode_int(y1, params.byte_length),
        "y2": encode_int(y2, params.byte_length),
    }
    if generated:
        payload["secret"] = hex(secret)
    print(json.dumps(payload, indent=2))


def main(argv: list[str] | None = None) -> int:
    namespace = parse_args(argv if argv is not None else sys.argv[1:])

    try:
        settings = Settings.from_env()
        configure_logging(settings.log_level)

        if namespace.command == "serve":
            import uvicorn

            uvicorn.run(
                "cpauth.server:create_app",
                factory=True,
                host=namespace.host,
                port=namespace.port,
                log_level=settings.log_level.lower(),
            )
            return 0

        if namespace.command == "keygen":
            params = load(namespace.group)
            secret, generated = _resolve_secret(namespace, params, allow_new=True)
            _print_key(params, secret, generated)
            return 0

        with httpx.Client(base_url=namespace.url) as http:
            client = AuthClient.connect(http)
            secret, generated = _resolve_secret(
                namespace, client.params, allow_new=namespace.command == "register"
            )
            if namespace.command == "register":
                client.register(namespace.username, secret)
                payload = {"user_name": namespace.username, "registered": True}
                if generated:
                    payload["secret"] = hex(secret)
            else:
                session_id = client.login(namespace.username, secret)
                payload = {"user_name": namespace.username, "session_id": session_id}
        print(json.dumps(payload, indent=2))
        return 0
    except (CPAuthError, ValueError, httpx.HTTPError) as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
