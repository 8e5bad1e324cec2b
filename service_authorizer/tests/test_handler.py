"""
Unit tests for the Lambda authorizer entry point.
"""

import json

import pytest

from shared.test_helpers import TEST_ARN_PREFIX, TEST_METHOD_ARN
from service_authorizer.app.handler import AuthorizerFailure, LambdaAuthorizer, Unauthorized


class FakeLambdaContext:
    aws_request_id = "lambda-req-1"


class TestLambdaAuthorizer:
    """Test cases for LambdaAuthorizer."""

    @pytest.fixture
    def authorizer(self, decision_service, config):
        authorizer = LambdaAuthorizer(decision_service, config=config)
        yield authorizer
        authorizer.close()

    def test_allow_returns_policy(self, authorizer, tokens):
        result = authorizer(
            {"authorizationToken": tokens.bearer("user-42"), "methodArn": TEST_METHOD_ARN},
            FakeLambdaContext(),
        )

        assert result["principalId"] == "us-east-1:identity-user-42"
        assert result["policyDocument"]["Statement"][0]["Resource"] == f"{TEST_ARN_PREFIX}/*"
        assert result["context"]["cognitoIdentityId"] == "us-east-1:identity-user-42"

    def test_caches_survive_between_invocations(self, authorizer, tokens, jwks_endpoint, broker):
        event = {"authorizationToken": tokens.bearer("user-42"), "methodArn": TEST_METHOD_ARN}

        first = authorizer(event)
        second = authorizer(event)

        assert first == second
        assert jwks_endpoint.calls == 1
        assert len(broker.calls) == 1

    @pytest.mark.parametrize("event", [
        {},
        {"authorizationToken": "Bearer nope", "methodArn": TEST_METHOD_ARN},
        {"authorizationToken": None, "methodArn": TEST_METHOD_ARN},
    ])
    def test_malformed_events_are_unauthorized(self, authorizer, event):
        with pytest.raises(Unauthorized) as exc_info:
            authorizer(event)

        assert str(exc_info.value) == "Unauthorized"

    def test_expired_token_is_unauthorized(self, authorizer, tokens):
        with pytest.raises(Unauthorized):
            authorizer({"authorizationToken": tokens.bearer(expires_in=-60), "methodArn": TEST_METHOD_ARN})

    def test_key_set_outage_raises_failure(self, authorizer, tokens, jwks_endpoint):
        jwks_endpoint.status_code = 500

        with pytest.raises(AuthorizerFailure) as exc_info:
            authorizer({"authorizationToken": tokens.bearer(), "methodArn": TEST_METHOD_ARN})

        message = str(exc_info.value)
        assert message.startswith("Error: ")
        assert json.loads(message[len("Error: "):])["code"] == "FETCH_ERROR"
