"""Tests for directory source parsing and fetching."""

from __future__ import annotations

import httpx
import pytest

from domain_watchdog.core.exceptions import ParseError
from domain_watchdog.domain import DirectorySource, TldType
from domain_watchdog.rdap import sources


IANA_TEXT = """# Version 2025060100, Last Updated Sun Jun  1 07:07:01 2025 UTC
AAA
COM
FR
ARPA
XN--P1AI
"""

ICANN_PAYLOAD = {
    "version": 2,
    "gTLDs": [
        {"gTLD": "shop", "registryOperator": "GMO Registry, Inc.", "removalDate": None},
        {"gTLD": "museum", "registryOperator": "MuseDoma", "removalDate": None},
        {"gTLD": "doosan", "registryOperator": "Doosan Corporation", "removalDate": "2015-10-29"},
        {"gTLD": "iwc", "registryOperator": "Richemont DNS Inc.", "contractTerminated": True},
    ],
}

BOOTSTRAP_PAYLOAD = {
    "version": "1.0",
    "publication": "2025-05-27T18:00:01Z",
    "services": [
        [["com", "net"], ["http://rdap.verisign.test/", "https://rdap.verisign.test/"]],
        [["fr"], ["https://rdap.nic.fr"]],
    ],
}


# =============================================================================
# PARSERS
# =============================================================================


class TestParseIanaTldList:
    def test_skips_comments_and_classifies(self):
        entries = {e.tld: e for e in sources.parse_iana_tld_list(IANA_TEXT)}

        assert set(entries) == {"aaa", "com", "fr", "arpa", "xn--p1ai"}
        assert entries["fr"].tld_type == TldType.CCTLD
        assert entries["arpa"].tld_type == TldType.ITLD
        assert entries["com"].tld_type == TldType.GTLD
        assert all(e.source == DirectorySource.IANA_TLD_LIST for e in entries.values())

    def test_empty_list_is_rejected(self):
        with pytest.raises(ParseError):
            sources.parse_iana_tld_list("# only a header\n")

    def test_garbage_line_is_rejected(self):
        with pytest.raises(ParseError):
            sources.parse_iana_tld_list("COM\n<html>\n<body>Not found</body>\n")


class TestParseIcannGtldList:
    def test_removed_gtlds_are_excluded(self):
        entries = {e.tld: e for e in sources.parse_icann_gtld_list(ICANN_PAYLOAD)}

        assert set(entries) == {"shop", "museum"}
        assert entries["shop"].registry_operator == "GMO Registry, Inc."
        assert entries["museum"].tld_type == TldType.STLD

    def test_missing_array_is_rejected(self):
        with pytest.raises(ParseError):
            sources.parse_icann_gtld_list({"version": 2})


class TestParseRdapBootstrap:
    def test_one_entry_per_tld_https_first(self):
        entries = {e.tld: e for e in sources.parse_rdap_bootstrap(BOOTSTRAP_PAYLOAD)}

        assert set(entries) == {"com", "net", "fr"}
        assert entries["com"].endpoints == (
            "https://rdap.verisign.test/",
            "http://rdap.verisign.test/",
        )
        assert entries["fr"].endpoints == ("https://rdap.nic.fr/",)

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"services": "nope"},
            {"services": [[["com"]]]},
            {"services": [["com", ["https://a.test/"]]]},
        ],
    )
    def test_malformed_payload_is_rejected(self, payload):
        with pytest.raises(ParseError):
            sources.parse_rdap_bootstrap(payload)


# =============================================================================
# FETCHING
# =============================================================================


class TestFetch:
    @pytest.mark.asyncio
    async def test_transport_errors_are_retried(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] < 2:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, text=IANA_TEXT)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            response = await sources.fetch(client, "https://data.iana.test/tlds.txt", attempts=3)

        assert response.status_code == 200
        assert calls["n"] == 2

    @pytest.mark.asyncio
    async def test_http_errors_are_not_retried(self):
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            return httpx.Response(503)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await sources.fetch(client, "https://data.iana.test/tlds.txt", attempts=3)

        assert calls["n"] == 1

    @pytest.mark.asyncio
    async def test_fetch_rdap_bootstrap_rejects_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not json")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ParseError):
                await sources.fetch_rdap_bootstrap(client)
