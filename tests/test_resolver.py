"""Tests for RDAP resolution and response parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest
from factories import RDAP_BASE, rdap_payload

from domain_watchdog.core.exceptions import (
    NoRouteError,
    ParseError,
    ProtocolError,
    TransportError,
)
from domain_watchdog.rdap.resolver import RecordResolver, parse_domain_record


def _resolver(directory, handler) -> RecordResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return RecordResolver(directory, client=client, timeout=5)


# =============================================================================
# PARSING
# =============================================================================


class TestParseDomainRecord:
    def test_parses_core_fields(self):
        record = parse_domain_record(rdap_payload(), expected_name="example.com")

        assert record.ldh_name == "example.com"
        assert record.handle == "EXAMPLE.COM-REG"
        assert record.registrar == "Example Registrar, Inc."
        assert record.expires_at == datetime(2026, 6, 1, 12, 0, tzinfo=UTC)
        assert record.last_changed_at == datetime(2025, 2, 20, 10, 0, tzinfo=UTC)
        assert record.deletion_at is None
        assert record.nameservers == {"ns1.example.net", "ns2.example.net"}
        assert record.statuses == {"client transfer prohibited"}
        assert record.is_resolvable

    def test_nested_entities_are_flattened(self):
        record = parse_domain_record(rdap_payload())

        handles = {e.handle for e in record.entities}
        assert handles == {"292", "ABUSE-1"}
        assert {e.handle for e in record.contact_entities()} == {"ABUSE-1"}

    def test_registrar_falls_back_to_handle(self):
        payload = rdap_payload()
        del payload["entities"][0]["vcardArray"]

        assert parse_domain_record(payload).registrar == "292"

    def test_latest_repeated_event_wins(self):
        payload = rdap_payload(
            extra_events=[{"eventAction": "expiration", "eventDate": "2027-01-01T00:00:00Z"}]
        )

        record = parse_domain_record(payload)
        assert record.expires_at == datetime(2027, 1, 1, tzinfo=UTC)

    def test_deletion_event_makes_record_unresolvable(self):
        payload = rdap_payload(
            extra_events=[{"eventAction": "deletion", "eventDate": "2025-07-01T00:00:00Z"}]
        )

        record = parse_domain_record(payload)
        assert record.deletion_at == datetime(2025, 7, 1, tzinfo=UTC)
        assert not record.is_resolvable

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"objectClassName": "entity", "ldhName": "example.com"},
            {"objectClassName": "domain"},
        ],
    )
    def test_malformed_payload_raises_parse_error(self, payload):
        with pytest.raises(ParseError):
            parse_domain_record(payload)

    def test_name_mismatch_raises_parse_error(self):
        with pytest.raises(ParseError):
            parse_domain_record(rdap_payload("other.com"), expected_name="example.com")

    def test_bad_event_date_raises_parse_error(self):
        payload = rdap_payload(expiration="next tuesday")
        with pytest.raises(ParseError):
            parse_domain_record(payload)


# =============================================================================
# RESOLUTION
# =============================================================================


class TestRecordResolver:
    @pytest.mark.asyncio
    async def test_resolve_queries_bootstrap_endpoint(self, directory):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=rdap_payload())

        async with _resolver(directory, handler) as resolver:
            record = await resolver.resolve("Example.COM.")

        assert record.ldh_name == "example.com"
        assert str(seen[0].url) == f"{RDAP_BASE}domain/example.com"
        assert seen[0].headers["accept"] == "application/rdap+json"

    @pytest.mark.asyncio
    async def test_redirect_is_followed(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "rdap.registry.test":
                return httpx.Response(
                    301, headers={"Location": "https://rdap.registrar.test/domain/example.com"}
                )
            return httpx.Response(200, json=rdap_payload())

        async with _resolver(directory, handler) as resolver:
            record = await resolver.resolve("example.com")

        assert record.registrar == "Example Registrar, Inc."

    @pytest.mark.asyncio
    async def test_unknown_tld_raises_no_route(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(NoRouteError) as exc_info:
                await resolver.resolve("example.invalid")

        assert exc_info.value.tld == "invalid"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [404, 429, 500, 503])
    async def test_error_status_raises_protocol_error(self, directory, status_code):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json={"errorCode": status_code})

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(ProtocolError) as exc_info:
                await resolver.resolve("example.com")

        assert exc_info.value.registry_status == status_code
        assert exc_info.value.is_not_found is (status_code == 404)

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(TransportError) as exc_info:
                await resolver.resolve("example.com")

        assert exc_info.value.ldh_name == "example.com"
        assert not isinstance(exc_info.value, ProtocolError)

    @pytest.mark.asyncio
    async def test_read_timeout_raises_transport_error(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(TransportError):
                await resolver.resolve("example.com")

    @pytest.mark.asyncio
    async def test_non_json_body_raises_parse_error(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(ParseError):
                await resolver.resolve("example.com")

    @pytest.mark.asyncio
    async def test_redirect_loop_raises_transport_error(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, headers={"Location": str(request.url)})

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(TransportError) as exc_info:
                await resolver.resolve("example.com")

        assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)

    @pytest.mark.asyncio
    async def test_undecodable_body_raises_parse_error(self, directory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.DecodingError("invalid gzip stream", request=request)

        async with _resolver(directory, handler) as resolver:
            with pytest.raises(ParseError):
                await resolver.resolve("example.com")
