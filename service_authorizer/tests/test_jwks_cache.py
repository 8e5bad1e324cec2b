"""
Unit tests for KeySetCache.
"""

import asyncio

import httpx
import pytest

from shared.errors import FetchError, ParseError
from shared.test_helpers import TEST_ISSUER, MockJwksEndpoint, create_key_pair, jwks_document
from service_authorizer.app.caching import CellState
from service_authorizer.app.jwks import KeySetCache, jwks_location


class TestKeySetCache:
    """Test cases for KeySetCache."""

    @pytest.mark.asyncio
    async def test_get_keys_fetches_well_known_location(self, key_cache, jwks_endpoint, signing_key):
        """The first lookup fetches {issuer}/.well-known/jwks.json."""
        key_set = await key_cache.get_keys(TEST_ISSUER)

        assert jwks_endpoint.calls == 1
        assert str(jwks_endpoint.requests[0].url) == "https://idp.example/pool1/.well-known/jwks.json"
        assert key_set.location == jwks_location(TEST_ISSUER)
        assert len(key_set) == 1

        key = key_set.find("abc")
        assert key.key_id == "abc"
        assert key.algorithm == "RS256"
        assert key.public_key_material.startswith("-----BEGIN PUBLIC KEY-----")

    @pytest.mark.asyncio
    async def test_key_set_is_cached_for_process_lifetime(self, key_cache, jwks_endpoint):
        first = await key_cache.get_keys(TEST_ISSUER)
        second = await key_cache.get_keys(TEST_ISSUER)

        assert first is second
        assert jwks_endpoint.calls == 1
        assert key_cache.state(TEST_ISSUER) == CellState.COMPLETED

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_one_fetch(self, key_cache, jwks_endpoint):
        """N concurrent lookups for an unresolved issuer issue one fetch."""
        results = await asyncio.gather(*[key_cache.get_keys(TEST_ISSUER) for _ in range(20)])

        assert jwks_endpoint.calls == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_issuers_are_cached_separately(self, key_cache, jwks_endpoint):
        await key_cache.get_keys(TEST_ISSUER)
        await key_cache.get_keys("https://idp.example/pool2")

        assert jwks_endpoint.calls == 2

    @pytest.mark.asyncio
    async def test_key_without_alg_defaults_to_rs256(self, signing_key):
        descriptor = dict(signing_key.public_jwk)
        del descriptor["alg"]
        endpoint = MockJwksEndpoint({"keys": [descriptor]})
        cache = KeySetCache(endpoint.client())

        key_set = await cache.get_keys(TEST_ISSUER)

        assert key_set.find("abc").algorithm == "RS256"

    @pytest.mark.asyncio
    async def test_keys_keep_published_order(self, signing_key):
        second = create_key_pair("def")
        endpoint = MockJwksEndpoint(jwks_document(signing_key, second))
        cache = KeySetCache(endpoint.client())

        key_set = await cache.get_keys(TEST_ISSUER)

        assert [key.key_id for key in key_set.keys] == ["abc", "def"]
        assert key_set.find("xyz") is None

    @pytest.mark.asyncio
    async def test_non_success_status_raises_fetch_error(self, key_cache, jwks_endpoint, metrics):
        jwks_endpoint.status_code = 500

        with pytest.raises(FetchError) as exc_info:
            await key_cache.get_keys(TEST_ISSUER)

        assert exc_info.value.details["status_code"] == 500
        assert metrics.get_sample_value("upstream_calls_total", dependency="jwks", status="error") == 1

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried_on_next_call(self, key_cache, jwks_endpoint):
        """Failures are not cached."""
        jwks_endpoint.status_code = 503
        with pytest.raises(FetchError):
            await key_cache.get_keys(TEST_ISSUER)
        assert key_cache.state(TEST_ISSUER) == CellState.ABSENT

        jwks_endpoint.status_code = 200
        key_set = await key_cache.get_keys(TEST_ISSUER)

        assert key_set.find("abc") is not None
        assert jwks_endpoint.calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_callers_all_see_the_failure(self, key_cache, jwks_endpoint):
        jwks_endpoint.status_code = 500

        results = await asyncio.gather(
            *[key_cache.get_keys(TEST_ISSUER) for _ in range(5)],
            return_exceptions=True,
        )

        assert jwks_endpoint.calls == 1
        assert all(isinstance(result, FetchError) for result in results)

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        cache = KeySetCache(httpx.AsyncClient(transport=httpx.MockTransport(handler)))

        with pytest.raises(FetchError):
            await cache.get_keys(TEST_ISSUER)

    @pytest.mark.asyncio
    async def test_invalid_json_raises_parse_error(self):
        endpoint = MockJwksEndpoint()
        endpoint.body = b"<html>not json</html>"
        cache = KeySetCache(endpoint.client())

        with pytest.raises(ParseError):
            await cache.get_keys(TEST_ISSUER)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("document", [
        {"not_keys": []},
        {"keys": "abc"},
        ["keys"],
        {"keys": [{"kid": "abc", "kty": "RSA", "n": "!!!", "e": "AQAB"}]},
        {"keys": [{"kid": "abc", "kty": "EC", "crv": "P-256", "x": "AA", "y": "AA"}]},
        {"keys": [{"kty": "RSA", "n": "AQAB", "e": "AQAB"}]},
        {"keys": ["abc"]},
    ])
    async def test_malformed_key_set_raises_parse_error(self, document):
        endpoint = MockJwksEndpoint(document)
        cache = KeySetCache(endpoint.client())

        with pytest.raises(ParseError):
            await cache.get_keys(TEST_ISSUER)

        assert cache.state(TEST_ISSUER) == CellState.ABSENT
