"""
Tests for the read-only status endpoints.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from target_monitor.dependencies import get_snapshot_store
from target_monitor.main import app
from target_monitor.models import (
    CheckStatus,
    DirectoryBreakdownEntry,
    Snapshot,
    StoreCheckResult,
    WebsiteCheckResult,
)

NOW = datetime(2025, 1, 1, 12, tzinfo=timezone.utc)


@pytest.fixture
def client():
    # Ingen lifespan: scheduler og config-loading startes ikke
    return TestClient(app)


@pytest.fixture
def published_snapshot():
    snapshot = Snapshot(
        website_results={
            "https://a.example": WebsiteCheckResult(
                url="https://a.example",
                name="A",
                status=CheckStatus.UP,
                status_code=200,
                response_time_millis=42,
                timestamp=NOW,
                message="OK - 200",
            )
        },
        store_results={
            "acct/backups": StoreCheckResult(
                account_name="acct",
                share_name="backups",
                name="Backups",
                status=CheckStatus.OK,
                file_count=3,
                timestamp=NOW,
                message="3 files found across 2 directories",
                directory_breakdown={
                    "daily": DirectoryBreakdownEntry(count=3),
                    "weekly": DirectoryBreakdownEntry.failed("Access denied"),
                },
            )
        },
        last_update=NOW,
    )
    get_snapshot_store().publish(snapshot)
    return snapshot


class TestStatusEndpoints:
    def test_root_lists_endpoints(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "/status" in response.json()["endpoints"]

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["monitoring"] is False
        assert body["uptime"] >= 0

    def test_status_before_first_cycle(self, client):
        body = client.get("/status").json()

        assert body == {"websiteResults": {}, "storeResults": {}, "lastUpdate": None}

    def test_status_returns_published_snapshot(self, client, published_snapshot):
        body = client.get("/status").json()

        site = body["websiteResults"]["https://a.example"]
        assert site["status"] == "up"
        assert site["statusCode"] == 200
        assert site["responseTimeMillis"] == 42

        store = body["storeResults"]["acct/backups"]
        assert store["fileCount"] == 3
        assert store["directoryBreakdown"]["weekly"] == {"error": "Access denied"}
        assert store["directoryBreakdown"]["daily"]["count"] == 3
        assert body["lastUpdate"].startswith("2025-01-01T12:00:00")
        assert "generation" not in body

    def test_websites_view(self, client, published_snapshot):
        body = client.get("/websites").json()

        assert set(body) == {"websiteResults", "lastUpdate"}
        assert list(body["websiteResults"]) == ["https://a.example"]

    def test_azure_files_view(self, client, published_snapshot):
        body = client.get("/azure-files").json()

        assert set(body) == {"storeResults", "lastUpdate"}
        assert body["storeResults"]["acct/backups"]["name"] == "Backups"
