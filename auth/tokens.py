"""
auth/tokens.py -- Signed bearer token encode / decode.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (username), user_id, data
       (opaque issued payload) and, when the Claims have one, exp. The secret
       is passed in explicitly -- this module holds no configuration.

  Tamper detection: the HMAC covers the header and payload segments byte for
       byte, so any change there fails verification. The signature segment is
       base64url, whose last character carries unused padding bits; two
       different strings can decode to the same signature bytes. decode_token()
       therefore also requires the signature segment to be in canonical form,
       so that every single-character change to a token is rejected.

  Failure opacity: every failure raises InvalidTokenError with the same
       message. The cause goes to the debug log, never to the caller. Signature
       comparison inside python-jose uses hmac.compare_digest.

Layer rule: no imports from api/, accounts/, or core/.
"""

from __future__ import annotations

import logging
from typing import Any

from jose import jwt
from jose.exceptions import JOSEError
from jose.utils import base64url_decode, base64url_encode

from auth.models import Claims

logger = logging.getLogger("rolekeeper.auth")

ALGORITHM = "HS256"


class InvalidTokenError(Exception):
    """Token failed verification: bad signature, malformed, or expired."""

    def __init__(self) -> None:
        super().__init__("invalid token")


def encode_token(claims: Claims, secret: str) -> str:
    """Serialize claims into a compact HS256 JWT signed with secret."""
    if not secret:
        raise ValueError("token secret cannot be empty")
    payload: dict[str, Any] = {
        "sub": claims.username,
        "user_id": claims.user_id,
        "data": claims.data,
    }
    if claims.expires_at is not None:
        payload["exp"] = claims.expires_at
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str) -> Claims:
    """Verify token against secret and return its Claims.

    Raises InvalidTokenError on any failure. An exp claim in the past is a
    failure; a token without exp never expires.
    """
    if not secret:
        raise ValueError("token secret cannot be empty")
    if not _has_canonical_signature(token):
        logger.debug("Token rejected: malformed or non-canonical signature segment")
        raise InvalidTokenError()
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JOSEError as exc:
        logger.debug("Token rejected: %s", exc)
        raise InvalidTokenError() from exc

    claims = _payload_to_claims(payload)
    if claims is None:
        logger.debug("Token rejected: payload does not match the claims shape")
        raise InvalidTokenError()
    return claims


def _has_canonical_signature(token: str) -> bool:
    parts = token.split(".")
    if len(parts) != 3 or not parts[2]:
        return False
    segment = parts[2].encode("ascii", errors="replace")
    try:
        raw = base64url_decode(segment)
    except ValueError:
        return False
    return base64url_encode(raw) == segment


def _payload_to_claims(payload: dict) -> Claims | None:
    user_id = payload.get("user_id")
    username = payload.get("sub")
    data = payload.get("data")
    expires_at = payload.get("exp")
    # bool is an int subclass; a token claiming user_id=true is malformed.
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    if not isinstance(username, str) or not isinstance(data, dict):
        return None
    if expires_at is not None and (not isinstance(expires_at, int) or isinstance(expires_at, bool)):
        return None
    return Claims(user_id=user_id, username=username, data=data, expires_at=expires_at)
