"""
Identity broker clients.
"""

import asyncio
import time
from typing import Any, Dict, Optional, Protocol, TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.errors import BrokerError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class IdentityBroker(Protocol):
    """Exchanges verified provider tokens for a federated identity id."""

    async def get_id(self, pool_identifier: str, logins: Dict[str, str]) -> str:
        ...


class CognitoIdentityBroker:
    """Identity broker backed by Amazon Cognito Identity ``GetId``."""

    def __init__(
        self,
        identity_pool_id: str,
        *,
        region_name: Optional[str] = None,
        client: Optional[Any] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.identity_pool_id = identity_pool_id
        self.metrics = metrics
        self.logger = get_logger("authorizer.identity.cognito")
        if client is None:
            client = boto3.client("cognito-identity", region_name=region_name)
        self._client = client

    async def get_id(self, pool_identifier: str, logins: Dict[str, str]) -> str:
        """Return the identity id for ``logins`` in ``pool_identifier``."""
        start_time = time.time()
        try:
            response = await asyncio.to_thread(
                self._client.get_id,
                IdentityPoolId=pool_identifier,
                Logins=logins,
            )
        except ClientError as exc:
            self._record_call("error", start_time)
            error_code = exc.response.get("Error", {}).get("Code")
            self.logger.error("Cognito GetId failed", error_code=error_code, error=str(exc))
            raise BrokerError(str(exc), details={"error_code": error_code}) from exc
        except BotoCoreError as exc:
            self._record_call("error", start_time)
            self.logger.error("Cognito GetId failed", error=str(exc))
            raise BrokerError(str(exc)) from exc

        identity_id = response.get("IdentityId")
        if not identity_id:
            self._record_call("error", start_time)
            raise BrokerError("GetId response missing IdentityId")

        self._record_call("ok", start_time)
        return identity_id

    def _record_call(self, status: str, start_time: float) -> None:
        if self.metrics:
            self.metrics.increment_counter("upstream_calls_total", dependency="identity_broker", status=status)
            self.metrics.observe_histogram(
                "upstream_call_duration_seconds", time.time() - start_time, dependency="identity_broker"
            )
