"""
Tests for activity logs, catalog listings and login.
"""
import httpx
import pytest

from trialdesk.errors import BackendRejectedError
from trialdesk.schemas.catalog import ActivityLogItem
from trialdesk.services.activity_logs import ACTIVITY_LOGS_PATH, ActivityLogClient, filter_activity
from trialdesk.services.auth_service import AuthService
from trialdesk.services.catalog import CatalogClient


def activity(i, user="user-1", table="drug_overview", action="UPDATE", created="2024-06-01T12:00:00Z"):
    return {
        "id": i,
        "user_id": user,
        "table_name": table,
        "record_id": f"r-{i}",
        "action_type": action,
        "change_details": {"field": "name"},
        "created_at": created,
    }


class TestActivityLogs:

    @pytest.mark.asyncio
    async def test_legacy_shape_filtered_client_side(self, backend, review_backend):
        review_backend.activity = [
            activity(1),
            activity(2, table="therapeutic_trial"),
            activity(3, action="DELETE"),
            activity(4, created="2024-01-01T00:00:00Z"),
        ]
        client = ActivityLogClient(backend)

        page = await client.list(table_name="DRUG", action_type="UPDATE", date_from="2024-05-01T00:00:00Z")

        assert page.server_paginated is False
        assert [item.id for item in page.items] == ["1"]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_filters_forwarded_to_server(self, backend, review_backend):
        client = ActivityLogClient(backend)

        await client.list(page=2, page_size=5, user_id="user-1", action_type="CREATE")

        params = review_backend.calls_to("GET", ACTIVITY_LOGS_PATH)[0]["params"]
        assert params == {"page": "2", "pageSize": "5", "userId": "user-1", "actionType": "CREATE"}

    @pytest.mark.asyncio
    async def test_legacy_shape_paged(self, backend, review_backend):
        review_backend.activity = [activity(i) for i in range(1, 13)]
        client = ActivityLogClient(backend)

        page = await client.list(page=2, page_size=10)

        assert page.total == 12
        assert [item.id for item in page.items] == ["11", "12"]

    @pytest.mark.asyncio
    async def test_server_paginated_shape(self, mock_backend):
        client = ActivityLogClient(mock_backend(
            lambda request: httpx.Response(200, json={"items": [activity(7)], "total": 31, "page": 4, "pageSize": 10})
        ))

        page = await client.list(page=4)

        assert page.server_paginated is True
        assert page.total == 31
        assert page.items[0].record_id == "r-7"

    @pytest.mark.asyncio
    async def test_server_paginated_null_fields(self, mock_backend):
        client = ActivityLogClient(mock_backend(
            lambda request: httpx.Response(200, json={"items": [], "total": None, "page": None, "pageSize": None})
        ))

        page = await client.list(page=2, page_size=5)

        assert (page.total, page.page, page.page_size) == (0, 2, 5)

    def test_date_range_inclusive_and_skips_unparseable(self):
        items = [
            ActivityLogItem.model_validate(activity(1, created="2024-06-01T00:00:00Z")),
            ActivityLogItem.model_validate(activity(2, created="not a date")),
            ActivityLogItem.model_validate(activity(3, created="2024-06-30T00:00:00")),
        ]

        kept = filter_activity(items, date_from="2024-06-01T00:00:00Z", date_to="2024-06-30T00:00:00Z")

        assert [i.id for i in kept] == ["1", "3"]


class TestCatalog:

    @pytest.mark.asyncio
    async def test_trials_and_drugs(self, backend):
        client = CatalogClient(backend)

        trials = await client.list_trials()
        drugs = await client.list_drugs()

        assert trials.total == 1
        assert trials.items[0]["id"] == "t-100"
        assert drugs.total == 1
        assert drugs.message == "Drugs fetched"

    @pytest.mark.asyncio
    async def test_null_total_counts_items(self, mock_backend):
        client = CatalogClient(mock_backend(
            lambda request: httpx.Response(200, json={"message": "ok", "total_trials": None, "trials": [{"id": "t-1"}]})
        ))

        trials = await client.list_trials()

        assert trials.total == 1

    @pytest.mark.asyncio
    async def test_probe(self, backend):
        assert await CatalogClient(backend).probe() is True


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_builds_session(self, backend):
        session = await AuthService(backend).login("curator@example.org", "secret")

        assert session.user_id == "user-1"
        assert session.token == "token-abc"
        assert session.has_role("admin")
        assert session.auth_headers() == {"Authorization": "Bearer token-abc"}

    @pytest.mark.asyncio
    async def test_bad_credentials(self, backend):
        with pytest.raises(BackendRejectedError) as exc_info:
            await AuthService(backend).login("curator@example.org", "wrong")

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid credentials"
