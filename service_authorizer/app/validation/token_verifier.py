"""
Bearer token verification.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError

from shared.errors import (
    InvalidIssuer,
    InvalidUse,
    MalformedToken,
    SignatureInvalid,
    TokenExpired,
    UnknownKeyId,
)
from shared.logging import get_logger
from ..jwks import KeySetCache


BEARER_PATTERN = re.compile(r"Bearer ([^\s.]+)\.([^\s.]+)\.([^\s.]+)")
REQUIRED_TOKEN_USE = "id"


@dataclass(frozen=True)
class Claims:
    """Verified token payload."""

    issuer: str
    subject: str
    token_use: str
    payload: Dict[str, Any] = field(default_factory=dict)


def bearer_token(bearer_header: str) -> str:
    """Return the bare token from a ``Bearer <header>.<payload>.<signature>`` header."""
    segments = _split(bearer_header)
    return ".".join(segments)


def _split(bearer_header: Any) -> Tuple[str, str, str]:
    if not isinstance(bearer_header, str):
        raise MalformedToken("Authorization header missing")
    match = BEARER_PATTERN.fullmatch(bearer_header)
    if match is None:
        raise MalformedToken("Invalid token format, expected 'Bearer <header>.<payload>.<signature>'")
    return match.group(1), match.group(2), match.group(3)


class TokenVerifier:
    """Verifies identity tokens issued by the configured issuer.

    Checks run in a fixed order and stop at the first failure:

    1. header shape (``MalformedToken``)
    2. unverified decode of header and payload (``MalformedToken``)
    3. issuer equals the expected issuer (``InvalidIssuer``)
    4. ``token_use`` is ``id`` (``InvalidUse``)
    5. signing key found by ``kid`` (``UnknownKeyId``)
    6. signature and time claims (``TokenExpired``, ``SignatureInvalid``)

    Steps 3 and 4 read unverified data only to reject early; nothing is
    accepted until the signature check in step 6 passes.
    """

    def __init__(self, key_cache: KeySetCache):
        self.key_cache = key_cache
        self.logger = get_logger("authorizer.verifier")

    async def verify(self, bearer_header: str, expected_issuer: str) -> Claims:
        """Verify ``bearer_header`` and return the decoded claims."""
        token = ".".join(_split(bearer_header))

        try:
            header = jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JOSEError as exc:
            raise MalformedToken(f"Token segments could not be decoded: {exc}") from exc

        key_id = header.get("kid")
        issuer = unverified.get("iss")
        if issuer != expected_issuer:
            raise InvalidIssuer("Invalid issuer", details={"issuer": issuer})

        token_use = unverified.get("token_use")
        if token_use != REQUIRED_TOKEN_USE:
            raise InvalidUse(
                f"Token use must be '{REQUIRED_TOKEN_USE}'",
                details={"token_use": token_use}
            )

        key_set = await self.key_cache.get_keys(issuer)
        signing_key = key_set.find(key_id)
        if signing_key is None:
            raise UnknownKeyId(f"Invalid kid {key_id!r}", details={"kid": key_id})

        try:
            payload = jwt.decode(
                token,
                signing_key.public_key_material,
                algorithms=[signing_key.algorithm],
                issuer=expected_issuer,
                # No access token accompanies the ID token, so at_hash cannot be checked.
                options={"verify_aud": False, "verify_at_hash": False},
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired", details={"kid": key_id}) from exc
        except JOSEError as exc:
            raise SignatureInvalid(f"Token verification failed: {exc}", details={"kid": key_id}) from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise MalformedToken("Token payload missing subject")

        self.logger.debug("Token verified", sub=subject, kid=key_id)
        return Claims(
            issuer=payload["iss"],
            subject=subject,
            token_use=payload["token_use"],
            payload=dict(payload),
        )
