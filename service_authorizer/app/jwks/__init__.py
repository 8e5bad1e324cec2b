"""
Key-set cache package.

Retrieves the JSON Web Key Set an issuer publishes at
``{issuer}/.well-known/jwks.json`` and turns each key into PEM public-key
material. Key sets are cached for the process lifetime: there is no TTL
and no background refresh, so a rotated key is only picked up after a
restart.
"""

from .cache import KeySet, KeySetCache, SigningKey, jwks_location

__all__ = [
    "KeySet",
    "KeySetCache",
    "SigningKey",
    "jwks_location",
]
