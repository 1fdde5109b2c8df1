from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from jose import JWTError, jwt


class AuthError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class AuthIdentity:
    user_id: UUID
    email: str


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def decode_access_token(
    token: str,
    *,
    secret: str,
    audience: str | None,
    algorithm: str = "HS256",
) -> AuthIdentity:
    if not secret:
        raise AuthError("auth secret is not configured")
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            audience=audience or None,
            options={"verify_aud": bool(audience)},
        )
    except JWTError as exc:
        raise AuthError("invalid token") from exc

    subject = claims.get("sub")
    email = claims.get("email")
    if not subject or not isinstance(email, str) or not email.strip():
        raise AuthError("token is missing identity claims")
    try:
        user_id = UUID(str(subject))
    except ValueError as exc:
        raise AuthError("token subject is not a user id") from exc
    return AuthIdentity(user_id=user_id, email=email.strip().lower())


def is_admin(identity: AuthIdentity, admin_emails: frozenset[str]) -> bool:
    return identity.email.lower() in admin_emails
