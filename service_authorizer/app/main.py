"""
Authorizer service for the Edge Authorizer.
"""

from typing import Dict, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import AuthorizerException
from .decision import Allow, Deny, resource_prefix
from .factory import create_decision_service, create_http_client
from .identity import IdentityBroker


class AuthorizeRequest(BaseModel):
    """Request model for an authorization decision."""
    authorization_header: str
    resource_arn: str


class AuthorizerService(BaseService):
    """Authorizer service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        broker: Optional[IdentityBroker] = None,
        http_client=None,
    ):
        super().__init__("authorizer", 8010, config=config)
        self.http_client = http_client or create_http_client(self.config)
        self.decision_service = create_decision_service(
            self.config,
            self.http_client,
            broker=broker,
            metrics=self.metrics,
        )
        self._setup_authorizer_routes()

    def _setup_authorizer_routes(self):
        """Set up authorizer-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "authorizer",
                "message": "Edge Authorizer - Authorizer Service",
                "version": "1.0.0"
            }

        @self.app.post("/authorize")
        async def authorize(request: AuthorizeRequest):
            """Decide whether the bearer token may invoke the requested resource."""
            decision = await self.decision_service.decide(
                request.authorization_header,
                resource_prefix(request.resource_arn),
            )

            if isinstance(decision, Allow):
                return decision.to_response()
            if isinstance(decision, Deny):
                return JSONResponse(status_code=401, content={"message": decision.message})
            return JSONResponse(
                status_code=500,
                content={"code": decision.code, "message": decision.message}
            )

    async def shutdown(self):
        """Close the key-set HTTP client."""
        await self.http_client.aclose()

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check that the issuer's key set can be resolved."""
        dependencies = {}
        key_cache = self.decision_service.verifier.key_cache
        try:
            await key_cache.get_keys(self.config.user_pool_url)
            dependencies["jwks"] = "ok"
        except AuthorizerException as exc:
            self.logger.error("Key set health check failed", code=exc.code, error=exc.message)
            dependencies["jwks"] = "error"

        return dependencies


def create_app():
    """Create FastAPI application."""
    service = AuthorizerService()
    return service.app


if __name__ == "__main__":
    service = AuthorizerService()
    service.run()
