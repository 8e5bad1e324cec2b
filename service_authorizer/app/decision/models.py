"""
Authorization decision types and gateway documents.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field


POLICY_VERSION = "2012-10-17"
INVOKE_ACTION = "execute-api:Invoke"
IDENTITY_CONTEXT_KEY = "cognitoIdentityId"
UNAUTHORIZED = "Unauthorized"


class PolicyStatement(BaseModel):
    """Single IAM policy statement."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    action: str = Field(alias="Action")
    effect: str = Field(alias="Effect")
    resource: str = Field(alias="Resource")


class PolicyDocument(BaseModel):
    """IAM policy document returned to the gateway."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    version: str = Field(default=POLICY_VERSION, alias="Version")
    statement: List[PolicyStatement] = Field(alias="Statement")


class AuthorizerResponse(BaseModel):
    """Gateway authorizer output for an allowed request."""

    model_config = ConfigDict(populate_by_name=True)

    principal_id: str = Field(alias="principalId")
    policy_document: PolicyDocument = Field(alias="policyDocument")
    context: Dict[str, Any] = Field(default_factory=dict)


def resource_prefix(method_arn: str) -> str:
    """API prefix of a method ARN: everything before the first ``/``."""
    return method_arn.split("/")[0]


def invoke_policy(resource_arn_prefix: str) -> PolicyDocument:
    """Policy allowing ``execute-api:Invoke`` on every resource under the prefix."""
    return PolicyDocument(
        statement=[
            PolicyStatement(
                action=INVOKE_ACTION,
                effect="Allow",
                resource=f"{resource_arn_prefix}/*",
            )
        ]
    )


@dataclass(frozen=True)
class Allow:
    """Request may proceed under the attached policy and context."""

    outcome: ClassVar[str] = "allow"

    principal_id: str
    policy: PolicyDocument
    context: Dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        """Render as the gateway's ``{principalId, policyDocument, context}`` mapping."""
        return AuthorizerResponse(
            principal_id=self.principal_id,
            policy_document=self.policy,
            context=self.context,
        ).model_dump(by_alias=True)


@dataclass(frozen=True)
class Deny:
    """Request is unauthorized. ``reason`` is for diagnostics only."""

    outcome: ClassVar[str] = "deny"

    reason: str

    @property
    def message(self) -> str:
        return UNAUTHORIZED


@dataclass(frozen=True)
class InternalError:
    """The authorizer could not reach a decision."""

    outcome: ClassVar[str] = "error"

    code: str
    message: str


Decision = Union[Allow, Deny, InternalError]
