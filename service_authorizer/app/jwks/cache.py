"""
Signing-key cache for token issuers.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

import httpx
from jose import jwk
from jose.exceptions import JOSEError

from shared.errors import FetchError, ParseError
from shared.logging import get_logger
from ..caching import CellState, SingleFlightCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


JWKS_PATH = "/.well-known/jwks.json"
DEFAULT_ALGORITHM = "RS256"


@dataclass(frozen=True)
class SigningKey:
    """Public key published by an issuer."""

    key_id: str
    algorithm: str
    public_key_material: str


@dataclass(frozen=True)
class KeySet:
    """Ordered signing keys for one issuer."""

    location: str
    keys: Tuple[SigningKey, ...]

    def find(self, key_id: Optional[str]) -> Optional[SigningKey]:
        """Return the key whose id equals ``key_id``, if any."""
        for key in self.keys:
            if key.key_id == key_id:
                return key
        return None

    def __len__(self) -> int:
        return len(self.keys)


def jwks_location(issuer: str) -> str:
    """Well-known key-set URL for ``issuer``."""
    return f"{issuer}{JWKS_PATH}"


class KeySetCache:
    """Fetches and memoizes key sets per issuer.

    A key set is fetched once per issuer and kept for the lifetime of the
    process; concurrent lookups for an issuer share a single fetch. Failed
    fetches are not cached.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.http_client = http_client
        self.metrics = metrics
        self.logger = get_logger("authorizer.jwks")
        self._cache: SingleFlightCache[str, KeySet] = SingleFlightCache("jwks", metrics=metrics)

    async def get_keys(self, issuer: str) -> KeySet:
        """Return the key set published by ``issuer``."""
        location = jwks_location(issuer)
        return await self._cache.get_or_load(location, lambda: self._fetch(location))

    def state(self, issuer: str) -> CellState:
        """Cache state for ``issuer``."""
        return self._cache.state(jwks_location(issuer))

    async def _fetch(self, location: str) -> KeySet:
        start_time = time.time()
        try:
            response = await self.http_client.get(location)
        except httpx.HTTPError as exc:
            self._record_call("error", start_time)
            self.logger.error("Key set fetch failed", location=location, error=str(exc))
            raise FetchError(
                f"Failed to fetch {location}: {exc}",
                details={"location": location}
            ) from exc

        if response.status_code != 200:
            self._record_call("error", start_time)
            self.logger.error(
                "Key set endpoint returned non-success status",
                location=location,
                status_code=response.status_code
            )
            raise FetchError(
                f"Failed to fetch {location}: {response.status_code}",
                details={"location": location, "status_code": response.status_code}
            )

        self._record_call("ok", start_time)
        key_set = self._parse(location, response)
        self.logger.info("Key set loaded", location=location, keys_count=len(key_set))
        return key_set

    def _parse(self, location: str, response: httpx.Response) -> KeySet:
        try:
            document = response.json()
        except ValueError as exc:
            raise ParseError(f"Key set at {location} is not valid JSON", details={"location": location}) from exc

        keys = document.get("keys") if isinstance(document, dict) else None
        if not isinstance(keys, list):
            raise ParseError(f"Key set at {location} missing 'keys' array", details={"location": location})

        return KeySet(location=location, keys=tuple(self._to_signing_key(location, raw) for raw in keys))

    def _to_signing_key(self, location: str, raw: Dict[str, Any]) -> SigningKey:
        if not isinstance(raw, dict):
            raise ParseError(f"Key set at {location} contains a non-object key", details={"location": location})

        kid = raw.get("kid")
        if not isinstance(kid, str) or not kid:
            raise ParseError(f"Key set at {location} contains a key without a kid", details={"location": location})

        algorithm = raw.get("alg") or DEFAULT_ALGORITHM
        try:
            # Only the public components; anything else in the descriptor is ignored.
            public_key = jwk.construct(
                {"kty": raw.get("kty"), "n": raw.get("n"), "e": raw.get("e")},
                algorithm=algorithm,
            )
            pem = public_key.to_pem()
        except (JOSEError, AttributeError, TypeError, ValueError) as exc:
            raise ParseError(
                f"Key {kid!r} at {location} is not a usable public key: {exc}",
                details={"location": location, "kid": kid}
            ) from exc

        return SigningKey(
            key_id=kid,
            algorithm=algorithm,
            public_key_material=pem.decode("ascii") if isinstance(pem, bytes) else pem,
        )

    def _record_call(self, status: str, start_time: float) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_calls_total", dependency="jwks", status=status)
            self.metrics.observe_histogram(
                "upstream_call_duration_seconds", time.time() - start_time, dependency="jwks"
            )
