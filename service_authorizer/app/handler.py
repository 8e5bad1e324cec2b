"""
API Gateway Lambda authorizer entry point.

The gateway invokes ``handler(event, context)`` with
``{"authorizationToken": ..., "methodArn": ...}``. An allowed request returns
the policy mapping; a denied request raises ``Unauthorized`` (the gateway
answers 401); an authorizer failure raises ``AuthorizerFailure`` (the
gateway answers 500).
"""

import asyncio
import json
from typing import Any, Dict, Optional

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from .decision import Allow, AuthorizationDecisionService, Deny, resource_prefix
from .decision.models import UNAUTHORIZED
from .factory import create_decision_service, create_http_client


class Unauthorized(Exception):
    """Raised to make the gateway answer 401."""

    def __init__(self):
        super().__init__(UNAUTHORIZED)


class AuthorizerFailure(Exception):
    """Raised to make the gateway answer 500."""


class LambdaAuthorizer:
    """Lambda adapter around a process-scoped decision service.

    Lambda reuses the process between invocations, so the caches and the
    HTTP client are kept, and they must stay on one event loop; the adapter
    owns that loop instead of calling ``asyncio.run`` per invocation.
    """

    def __init__(
        self,
        decision_service: Optional[AuthorizationDecisionService] = None,
        config: Optional[ServiceConfig] = None,
    ):
        self.config = config or get_config("authorizer", 0)
        configure_logging("authorizer", self.config.log_level)
        self.logger = get_logger("authorizer.lambda")
        self.loop = asyncio.new_event_loop()
        if decision_service is None:
            decision_service = create_decision_service(
                self.config,
                create_http_client(self.config),
                metrics=get_metrics_collector("authorizer"),
            )
        self.decision_service = decision_service

    def __call__(self, event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
        set_request_id(getattr(context, "aws_request_id", None))
        try:
            decision = self.loop.run_until_complete(
                self.decision_service.decide(
                    event.get("authorizationToken"),
                    resource_prefix(event.get("methodArn") or ""),
                )
            )
        finally:
            clear_context()

        if isinstance(decision, Allow):
            return decision.to_response()
        if isinstance(decision, Deny):
            raise Unauthorized()
        raise AuthorizerFailure(f"Error: {json.dumps({'code': decision.code, 'message': decision.message})}")

    def close(self) -> None:
        """Release the HTTP client and the event loop."""
        http_client = self.decision_service.verifier.key_cache.http_client
        self.loop.run_until_complete(http_client.aclose())
        self.loop.close()


_authorizer: Optional[LambdaAuthorizer] = None


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """Lambda entry point; the authorizer is built on the first invocation."""
    global _authorizer
    if _authorizer is None:
        _authorizer = LambdaAuthorizer()
    return _authorizer(event, context)
