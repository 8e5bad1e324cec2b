"""
Fixtures shared by the authorizer unit tests.
"""

import pytest

from shared.config import ServiceConfig
from shared.metrics import MetricsCollector
from shared.test_helpers import (
    TEST_IDENTITY_POOL_ID,
    TEST_ISSUER,
    MockIdentityBroker,
    MockJwksEndpoint,
    MockTokenGenerator,
    create_key_pair,
    jwks_document,
)
from service_authorizer.app.decision import AuthorizationDecisionService
from service_authorizer.app.identity import IdentityExchangeCache
from service_authorizer.app.jwks import KeySetCache
from service_authorizer.app.validation import TokenVerifier


@pytest.fixture(scope="session")
def signing_key():
    """Key published by the issuer under kid ``abc``."""
    return create_key_pair("abc")


@pytest.fixture(scope="session")
def rogue_key():
    """Key the issuer never published."""
    return create_key_pair("abc")


@pytest.fixture
def tokens(signing_key):
    return MockTokenGenerator(TEST_ISSUER, signing_key)


@pytest.fixture
def jwks_endpoint(signing_key):
    return MockJwksEndpoint(jwks_document(signing_key))


@pytest.fixture
def metrics():
    return MetricsCollector("authorizer-test")


@pytest.fixture
def key_cache(jwks_endpoint, metrics):
    return KeySetCache(jwks_endpoint.client(), metrics=metrics)


@pytest.fixture
def verifier(key_cache):
    return TokenVerifier(key_cache)


@pytest.fixture
def broker():
    return MockIdentityBroker()


@pytest.fixture
def identity_cache(broker, metrics):
    return IdentityExchangeCache(broker, TEST_IDENTITY_POOL_ID, metrics=metrics)


@pytest.fixture
def decision_service(verifier, identity_cache, metrics):
    return AuthorizationDecisionService(verifier, identity_cache, TEST_ISSUER, metrics=metrics)


@pytest.fixture
def config():
    return ServiceConfig(
        service_name="authorizer",
        port=8010,
        env="test",
        user_pool_url=TEST_ISSUER,
        identity_pool_id=TEST_IDENTITY_POOL_ID,
    )
