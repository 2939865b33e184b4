"""Tests for limited-mode watchlist creation rules."""

from __future__ import annotations

import asyncio

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from domain_watchdog.core.exceptions import PolicyViolationError, register_exception_handlers
from domain_watchdog.domain import DomainEventKind, User, WatchList
from domain_watchdog.repositories import InMemoryWatchListRepository
from domain_watchdog.services.watchlist_policy import WatchListPolicy


def _draft(*domains: str, user_id: int = 1) -> WatchList:
    return WatchList(user_id=user_id, domains=set(domains), triggers={DomainEventKind.TRANSFER})


@pytest.fixture
def repo() -> InMemoryWatchListRepository:
    return InMemoryWatchListRepository()


# =============================================================================
# LIMITED MODE RULES
# =============================================================================


class TestLimitedMode:
    @pytest.mark.asyncio
    async def test_duplicate_domain_is_rejected(self, user: User, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=5, max_domains=5)
        w1 = await policy.create_watchlist(user, _draft("example.com"))

        with pytest.raises(PolicyViolationError) as exc_info:
            await policy.create_watchlist(user, _draft("Example.COM", "other.org"))

        assert exc_info.value.rule == "duplicate_domain"
        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN
        assert await repo.list_for_user(user.id) == [w1]

    @pytest.mark.asyncio
    async def test_domain_limit_is_inclusive(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=5, max_domains=2)

        with pytest.raises(PolicyViolationError) as exc_info:
            await policy.create_watchlist(user, _draft("a.com", "b.com"))

        assert exc_info.value.rule == "max_domains"
        assert len(repo) == 0

    @pytest.mark.asyncio
    async def test_watchlist_limit(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=2, max_domains=5)
        await policy.create_watchlist(user, _draft("a.com"))
        await policy.create_watchlist(user, _draft("b.com"))

        with pytest.raises(PolicyViolationError) as exc_info:
            await policy.create_watchlist(user, _draft("c.com"))

        assert exc_info.value.rule == "max_watchlists"
        assert len(repo) == 2

    @pytest.mark.asyncio
    async def test_other_users_domains_do_not_conflict(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=5, max_domains=5)
        other = User(id=2, email="other@example.org")
        await policy.create_watchlist(other, _draft("example.com", user_id=2))

        created = await policy.create_watchlist(user, _draft("example.com"))

        assert created.user_id == user.id

    @pytest.mark.asyncio
    async def test_concurrent_creations_are_serialized(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=5, max_domains=5)

        results = await asyncio.gather(
            policy.create_watchlist(user, _draft("example.com")),
            policy.create_watchlist(user, _draft("example.com")),
            return_exceptions=True,
        )

        assert sum(isinstance(r, PolicyViolationError) for r in results) == 1
        assert len(repo) == 1

    @pytest.mark.asyncio
    async def test_explicit_zero_limit_is_honoured(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=0, max_domains=5)

        with pytest.raises(PolicyViolationError) as exc_info:
            await policy.create_watchlist(user, _draft("example.com"))

        assert policy.max_watchlists == 0
        assert exc_info.value.rule == "max_watchlists"

    @pytest.mark.asyncio
    async def test_user_locks_are_released_after_creation(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=True, max_watchlists=5, max_domains=5)

        await policy.create_watchlist(user, _draft("example.com"))

        assert len(policy._locks) == 0


class TestUnlimitedMode:
    @pytest.mark.asyncio
    async def test_rules_are_not_applied(self, user, repo):
        policy = WatchListPolicy(repo, limited_features=False, max_watchlists=1, max_domains=1)

        await policy.create_watchlist(user, _draft("example.com", "example.org"))
        await policy.create_watchlist(user, _draft("example.com"))

        assert len(repo) == 2


# =============================================================================
# HTTP TRANSLATION
# =============================================================================


class TestPolicyViolationResponse:
    def test_violation_becomes_403(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.post("/watchlists")
        async def create():
            raise PolicyViolationError(
                "It is forbidden to register the same domain name twice with limited mode",
                rule="duplicate_domain",
            )

        response = TestClient(app).post("/watchlists")

        assert response.status_code == status.HTTP_403_FORBIDDEN
        body = response.json()
        assert body["error"] == "WATCHLIST_POLICY_VIOLATION"
        assert body["details"] == {"rule": "duplicate_domain"}
