"""
Federated identity package.

- broker: the identity-broker seam and its Cognito Identity client.
- exchange: per-subject cache of federated identities.
"""

from .broker import CognitoIdentityBroker, IdentityBroker
from .exchange import FederatedIdentity, IdentityExchangeCache, login_provider

__all__ = [
    "CognitoIdentityBroker",
    "FederatedIdentity",
    "IdentityBroker",
    "IdentityExchangeCache",
    "login_provider",
]
