"""Bearer token verification and issuing (HS256 JWTs via PyJWT)."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from nurserydb.errors import AuthenticationMissing, InvalidToken, TokenExpired, ValidationError

ALGORITHM = "HS256"
_BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """The authenticated principal for one request."""

    subject: str
    email: str | None
    roles: tuple[str, ...]

    @property
    def role(self) -> str:
        """Primary role (first entry)."""
        return self.roles[0]


def extract_bearer(header: str | None) -> str | None:
    """Return the token from an Authorization header, or None."""
    if not header or not header.startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX):].strip()
    return token or None


def _claims_roles(claims: Mapping[str, object]) -> tuple[str, ...]:
    # Current tokens carry "roles"; older ones only a singular "role".
    roles = claims.get("roles")
    if isinstance(roles, str):
        roles = [roles]
    if roles is None:
        legacy = claims.get("role")
        roles = [legacy] if legacy else []
    if not isinstance(roles, Sequence):
        raise InvalidToken()
    cleaned = tuple(str(r) for r in roles if r)
    if not cleaned:
        raise InvalidToken()
    return cleaned


def identity_from_claims(claims: Mapping[str, object]) -> Identity:
    """Map the legacy and current claim shapes onto one Identity.

    Subject: ``id``, then legacy ``userId``, then ``sub``.
    Roles: ``roles``, then ``[role]``.
    """
    subject = claims.get("id") or claims.get("userId") or claims.get("sub")
    if subject is None or subject == "":
        raise InvalidToken()

    email = claims.get("email")
    return Identity(
        subject=str(subject),
        email=str(email) if email is not None else None,
        roles=_claims_roles(claims),
    )


def verify_token(
    token: str | None,
    *,
    secret: str,
    algorithms: Sequence[str] = (ALGORITHM,),
) -> Identity:
    """Verify signature and expiry, then build the Identity.

    Raises AuthenticationMissing, TokenExpired or InvalidToken.
    """
    if not token:
        raise AuthenticationMissing("No token provided")
    try:
        claims = jwt.decode(token, secret, algorithms=list(algorithms))
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired() from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken() from e
    return identity_from_claims(claims)


def authenticate(header: str | None, *, secret: str) -> Identity:
    """Required authentication from an Authorization header value."""
    return verify_token(extract_bearer(header), secret=secret)


def optional_identity(header: str | None, *, secret: str) -> Identity | None:
    """Identity when a valid token is present, otherwise anonymous (None)."""
    token = extract_bearer(header)
    if token is None:
        return None
    try:
        return verify_token(token, secret=secret)
    except (InvalidToken, TokenExpired):
        return None


def issue_token(
    subject: str,
    email: str | None,
    roles: Sequence[str],
    *,
    secret: str,
    expires_in: timedelta = timedelta(hours=24),
    now: datetime | None = None,
) -> str:
    """Sign a token in the current claim shape (``role`` kept for older clients)."""
    if not roles:
        raise ValidationError.for_field("roles", "at least one role is required")

    issued = now or datetime.now(UTC)
    payload = {
        "id": subject,
        "email": email,
        "role": roles[0],
        "roles": list(roles),
        "iat": int(issued.timestamp()),
        "exp": int((issued + expires_in).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)
