"""
Builds the process-scoped authorizer components from configuration.
"""

from typing import Optional

import httpx

from shared.config import ServiceConfig
from shared.metrics import MetricsCollector
from .decision import AuthorizationDecisionService
from .identity import CognitoIdentityBroker, IdentityBroker, IdentityExchangeCache
from .jwks import KeySetCache
from .validation import TokenVerifier


def create_http_client(config: ServiceConfig) -> httpx.AsyncClient:
    """HTTP client used for key-set fetches."""
    return httpx.AsyncClient(timeout=config.jwks_http_timeout)


def create_decision_service(
    config: ServiceConfig,
    http_client: httpx.AsyncClient,
    *,
    broker: Optional[IdentityBroker] = None,
    metrics: Optional[MetricsCollector] = None,
) -> AuthorizationDecisionService:
    """Wire caches, verifier and decision service.

    The returned service owns both caches; build it once per process.
    """
    if broker is None:
        broker = CognitoIdentityBroker(
            config.identity_pool_id,
            region_name=config.identity_region,
            metrics=metrics,
        )

    key_cache = KeySetCache(http_client, metrics=metrics)
    identity_cache = IdentityExchangeCache(broker, config.identity_pool_id, metrics=metrics)
    return AuthorizationDecisionService(
        TokenVerifier(key_cache),
        identity_cache,
        config.user_pool_url,
        metrics=metrics,
    )
