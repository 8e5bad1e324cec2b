"""
Decision package: orchestrates verification and identity exchange into a
tagged ``Allow | Deny | InternalError`` result and renders gateway policies.
"""

from .models import (
    Allow,
    AuthorizerResponse,
    Decision,
    Deny,
    InternalError,
    PolicyDocument,
    PolicyStatement,
    invoke_policy,
    resource_prefix,
)
from .service import AuthorizationDecisionService

__all__ = [
    "Allow",
    "AuthorizationDecisionService",
    "AuthorizerResponse",
    "Decision",
    "Deny",
    "InternalError",
    "PolicyDocument",
    "PolicyStatement",
    "invoke_policy",
    "resource_prefix",
]
