"""
Federated identity exchange cache.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING

from shared.errors import BrokerError
from shared.logging import get_logger
from ..caching import CellState, SingleFlightCache
from ..validation import Claims
from .broker import IdentityBroker

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


@dataclass(frozen=True)
class FederatedIdentity:
    """Identity handle returned by the broker."""

    identity_id: str


def login_provider(issuer: str) -> str:
    """Login-provider key for ``issuer``: the issuer URL without its scheme."""
    return _SCHEME.sub("", issuer, count=1)


class IdentityExchangeCache:
    """Maps token subjects to federated identities.

    One broker call per subject is in flight at a time and every concurrent
    caller for that subject receives its result. Identities are kept for the
    process lifetime; broker failures are not cached.
    """

    def __init__(
        self,
        broker: IdentityBroker,
        identity_pool_id: str,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.broker = broker
        self.identity_pool_id = identity_pool_id
        self.logger = get_logger("authorizer.identity")
        self._cache: SingleFlightCache[str, FederatedIdentity] = SingleFlightCache("identity", metrics=metrics)

    async def exchange(self, token: str, claims: Claims) -> FederatedIdentity:
        """Return the federated identity for the subject of ``claims``."""
        return await self._cache.get_or_load(claims.subject, lambda: self._exchange(token, claims))

    def state(self, subject: str) -> CellState:
        """Cache state for ``subject``."""
        return self._cache.state(subject)

    async def _exchange(self, token: str, claims: Claims) -> FederatedIdentity:
        logins: Dict[str, str] = {login_provider(claims.issuer): token}
        try:
            identity_id = await self.broker.get_id(self.identity_pool_id, logins)
        except BrokerError:
            raise
        except Exception as exc:
            raise BrokerError(str(exc)) from exc

        self.logger.info("Federated identity resolved", sub=claims.subject, identity_id=identity_id)
        return FederatedIdentity(identity_id=identity_id)
