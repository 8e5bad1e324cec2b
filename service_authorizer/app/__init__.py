"""
Authorizer Service package for the Edge Authorizer.

Decides ALLOW/DENY for bearer tokens presented to the API gateway and, on
ALLOW, returns the caller's federated identity and an invoke policy.

- app.jwks: key-set cache for the token issuer.
- app.validation: bearer token verification.
- app.identity: identity broker client and per-subject identity cache.
- app.decision: decision orchestration and gateway policy documents.
- app.main: FastAPI service (``POST /authorize``).
- app.handler: API Gateway Lambda authorizer entry point.

Design notes:
- Importing this package must not perform network calls; all IO happens
  inside decisions or explicit lifecycle hooks.
- Caches are owned by the decision service built once per process; only the
  Lambda entry point keeps that service in a module global.
"""
