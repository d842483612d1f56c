"""The `token` command group: issue and inspect bearer tokens."""

from __future__ import annotations

import click

from nurserydb.auth import issue_token
from nurserydb.cli._shared import cli_settings, emit, fail, identity_for
from nurserydb.config import parse_duration
from nurserydb.errors import NurseryError
from nurserydb.validation import TokenRequest, validate_payload


@click.group()
def token() -> None:
    """Issue and verify bearer tokens signed with NURSERYDB_JWT_SECRET."""


@token.command("issue")
@click.argument("subject")
@click.option("--email", default=None, help="Email claim.")
@click.option("--role", "roles", multiple=True, required=True, help="Role (repeatable; first is primary).")
@click.option("--expires-in", default=None, help="Lifetime such as 30m, 24h, 7d.")
def issue(subject: str, email: str | None, roles: tuple[str, ...], expires_in: str | None) -> None:
    """Sign a token for SUBJECT."""
    settings = cli_settings()
    try:
        req = validate_payload(
            TokenRequest, {"subject": subject, "email": email, "roles": list(roles)}
        )
        lifetime = parse_duration(expires_in) if expires_in else settings.jwt_expires_in
        signed = issue_token(
            req.subject, req.email, req.roles, secret=settings.jwt_secret, expires_in=lifetime
        )
    except NurseryError as e:
        fail(e, settings)

    emit({"token": signed, "roles": req.roles, "expires_in": int(lifetime.total_seconds())})


@token.command("verify")
@click.argument("value")
def verify(value: str) -> None:
    """Verify a token and print the identity it carries."""
    settings = cli_settings()
    try:
        identity = identity_for(value, settings)
    except NurseryError as e:
        fail(e, settings)

    emit({
        "id": identity.subject,
        "email": identity.email,
        "role": identity.role,
        "roles": list(identity.roles),
    })
