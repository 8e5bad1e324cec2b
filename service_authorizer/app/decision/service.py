"""
Authorization decision service.
"""

from typing import Optional, TYPE_CHECKING

from shared.errors import AuthorizerException, TokenVerificationError
from shared.logging import get_logger, set_subject
from ..identity import IdentityExchangeCache
from ..validation import TokenVerifier, bearer_token
from .models import (
    IDENTITY_CONTEXT_KEY,
    Allow,
    Decision,
    Deny,
    InternalError,
    invoke_policy,
)

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class AuthorizationDecisionService:
    """Turns a bearer header into an Allow, Deny or InternalError decision.

    Every token rejection becomes the same opaque Deny. Failures of the key-set
    endpoint or the identity broker, and anything unexpected, become an
    InternalError so the gateway can tell "unauthorized" from "authorizer down".
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        identity_cache: IdentityExchangeCache,
        expected_issuer: str,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.verifier = verifier
        self.identity_cache = identity_cache
        self.expected_issuer = expected_issuer
        self.metrics = metrics
        self.logger = get_logger("authorizer.decision")

    async def decide(self, bearer_header: str, resource_arn_prefix: str) -> Decision:
        """Decide whether ``bearer_header`` may invoke resources under the prefix."""
        try:
            claims = await self.verifier.verify(bearer_header, self.expected_issuer)
        except TokenVerificationError as exc:
            self.logger.info("Token rejected", reason=exc.code, error=exc.message)
            self._count("token_rejections_total", reason=exc.code)
            return self._finish(Deny(reason=exc.code))
        except AuthorizerException as exc:
            return self._fail(exc.code, exc.message)
        except Exception as exc:
            self.logger.error("Unexpected verification error", error=str(exc), exc_info=True)
            return self._fail("INTERNAL_ERROR", str(exc))

        set_subject(claims.subject)
        try:
            identity = await self.identity_cache.exchange(bearer_token(bearer_header), claims)
        except AuthorizerException as exc:
            return self._fail(exc.code, exc.message)
        except Exception as exc:
            self.logger.error("Unexpected identity exchange error", error=str(exc), exc_info=True)
            return self._fail("INTERNAL_ERROR", str(exc))

        context = dict(claims.payload)
        context[IDENTITY_CONTEXT_KEY] = identity.identity_id
        self.logger.info("Request authorized", sub=claims.subject, principal_id=identity.identity_id)
        return self._finish(
            Allow(
                principal_id=identity.identity_id,
                policy=invoke_policy(resource_arn_prefix),
                context=context,
            )
        )

    def _fail(self, code: str, message: str) -> InternalError:
        self.logger.error("Authorization failed", code=code, error=message)
        if self.metrics:
            self.metrics.record_error(code.lower())
        return self._finish(InternalError(code=code, message=message))

    def _finish(self, decision: Decision) -> Decision:
        self._count("authorization_decisions_total", outcome=decision.outcome)
        return decision

    def _count(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
