"""
Token validation package.

Verifies bearer tokens against the signing keys of the single configured
issuer and produces ``Claims`` or a classified ``TokenVerificationError``.
"""

from .token_verifier import Claims, TokenVerifier, bearer_token

__all__ = [
    "Claims",
    "TokenVerifier",
    "bearer_token",
]
