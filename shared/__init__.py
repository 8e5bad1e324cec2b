"""
Shared utilities for the Edge Authorizer.

This package aggregates the common building blocks used by the authorizer
entry points:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace and request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service skeleton (health, metrics, error handlers)
- test_helpers: RSA key pairs and token minting for tests

Do not import from service_* packages into shared/.
"""
