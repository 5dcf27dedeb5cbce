"""
Tests for the direct-mutation editors and their local fallback.
"""
import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from trialdesk.config import MUTATION_TIMEOUT_MS
from trialdesk.errors import FallbackWriteError, LocalStoreWriteError, PreconditionError
from trialdesk.schemas.fallback import FallbackStatus, MutationOperation, SaveStatus
from trialdesk.services.editors import DrugEditor, TrialOverviewEditor, extract_new_id
from trialdesk.services.local_store import DrugMappingStore, FallbackRecordStore, LocalStore

from tests.conftest import CountingFallbackStore


def probe_ok_then(mutation_handler):
    """MockTransport handler: GETs answer 200, everything else goes to `mutation_handler`."""
    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json=[])
        return mutation_handler(request)
    return handler


def refuse_everything(request):
    raise httpx.ConnectError("connection refused", request=request)


class TestTrialOverviewEditor:

    @pytest.mark.asyncio
    async def test_remote_save(self, backend, review_backend, fallback_store, session):
        editor = TrialOverviewEditor(backend, fallback_store)

        outcome = await editor.save(session, "t-100", {"title": "Phase III study"})

        assert outcome.status == SaveStatus.SAVED_REMOTE
        assert not outcome.saved_locally
        assert review_backend.trials["t-100"]["title"] == "Phase III study"
        patch = review_backend.calls_to("PATCH", "/api/v1/therapeutic/overview/t-100")[0]
        assert patch["body"]["user_id"] == "user-1"
        assert patch["body"]["title"] == "Phase III study"
        assert "updated_at" in patch["body"]
        assert fallback_store.saved == []

    @pytest.mark.asyncio
    async def test_unreachable_backend_writes_exactly_one_record(self, mock_backend, fallback_store, session):
        editor = TrialOverviewEditor(mock_backend(refuse_everything), fallback_store)

        outcome = await editor.save(session, "t-100", {"title": "x"}, snapshot={"id": "t-100", "title": "old"})

        assert outcome.status == SaveStatus.SAVED_LOCAL
        assert len(fallback_store.saved) == 1
        record = fallback_store.saved[0]
        assert record.status == FallbackStatus.BACKEND_UNAVAILABLE
        assert record.operation == MutationOperation.PATCH
        assert record.snapshot == {"id": "t-100", "title": "old"}
        stored = await fallback_store.get("therapeutic_trial", "t-100")
        assert stored.model_dump(mode="json") == record.model_dump(mode="json")

    @pytest.mark.asyncio
    async def test_mutation_past_deadline_falls_back(self, mock_backend, fallback_store, session):
        async def handler(request):
            if request.method == "GET":
                return httpx.Response(200, json=[])
            await asyncio.sleep(1)
            return httpx.Response(200, json={})

        editor = TrialOverviewEditor(mock_backend(handler), fallback_store, mutation_timeout_ms=50)
        outcome = await editor.save(session, "t-100", {"title": "slow"})

        assert outcome.status == SaveStatus.SAVED_LOCAL
        assert len(fallback_store.saved) == 1
        assert fallback_store.saved[0].status == FallbackStatus.PENDING_API_UPDATE
        assert fallback_store.saved[0].last_error.endswith("timeout - backend unreachable")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mutation_handler", [
        lambda request: httpx.Response(500, json={"error": "relation does not exist"}),
        lambda request: httpx.Response(422, text="bad"),
        refuse_everything,
    ])
    async def test_mutation_failures_end_saved_local(self, mock_backend, fallback_store, session, mutation_handler):
        editor = TrialOverviewEditor(mock_backend(probe_ok_then(mutation_handler)), fallback_store)

        outcome = await editor.save(session, "t-100", {"title": "x"})

        assert outcome.status == SaveStatus.SAVED_LOCAL
        assert len(fallback_store.saved) == 1
        assert fallback_store.saved[0].status == FallbackStatus.PENDING_API_UPDATE

    @pytest.mark.asyncio
    async def test_both_failures_raise_compound_error(self, mock_backend, tmp_path, session):
        tiny_store = FallbackRecordStore(LocalStore(namespace="tiny", base_dir=str(tmp_path), max_bytes=10))
        editor = TrialOverviewEditor(mock_backend(refuse_everything), tiny_store)

        with pytest.raises(FallbackWriteError) as exc_info:
            await editor.save(session, "t-100", {"title": "x"})

        assert "API save failed" in exc_info.value.message
        assert "local fallback failed" in exc_info.value.message
        assert isinstance(exc_info.value.store_error, LocalStoreWriteError)

    @pytest.mark.asyncio
    async def test_missing_user_aborts_without_fallback(self, mock_backend, fallback_store, anonymous_session):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        editor = TrialOverviewEditor(mock_backend(handler), fallback_store)
        with pytest.raises(PreconditionError):
            await editor.save(anonymous_session, "t-100", {"title": "x"})

        assert calls == []
        assert fallback_store.saved == []

    @pytest.mark.asyncio
    async def test_second_failed_save_replaces_record(self, mock_backend, fallback_store, session):
        editor = TrialOverviewEditor(mock_backend(refuse_everything), fallback_store)

        await editor.save(session, "t-100", {"title": "first"})
        await editor.save(session, "t-100", {"title": "second"})

        held = await fallback_store.list("therapeutic_trial")
        assert len(held) == 1
        assert held[0].payload["title"] == "second"

    @pytest.mark.asyncio
    async def test_optimistic_view_overlays_held_payload(self, mock_backend, fallback_store, session):
        editor = TrialOverviewEditor(mock_backend(refuse_everything), fallback_store)
        await editor.save(session, "t-100", {"title": "pending title"})

        view = await editor.optimistic_view("t-100", {"id": "t-100", "title": "server title", "phase": "II"})

        assert view["title"] == "pending title"
        assert view["phase"] == "II"
        assert "user_id" not in view

    @pytest.mark.asyncio
    async def test_optimistic_view_without_held_record(self, mock_backend, fallback_store):
        editor = TrialOverviewEditor(mock_backend(refuse_everything), fallback_store)
        entity = {"id": "t-100", "title": "server title"}
        assert await editor.optimistic_view("t-100", entity) == entity

    def test_default_deadline(self, mock_backend, fallback_store):
        editor = TrialOverviewEditor(mock_backend(refuse_everything), fallback_store)
        assert editor.mutation_timeout_ms == MUTATION_TIMEOUT_MS
        assert editor.deadline_s == MUTATION_TIMEOUT_MS / 1000.0


class TestDrugEditor:

    @pytest.mark.asyncio
    async def test_saves_new_version_and_maps_ids(self, backend, review_backend, local_store, session):
        mappings = DrugMappingStore(local_store)
        editor = DrugEditor(backend, CountingFallbackStore(local_store), mappings)
        snapshot = dict(review_backend.drugs["d-100"])

        outcome = await editor.save(session, "d-100", {"name": "Drugzumab XR"}, snapshot=snapshot)

        assert outcome.status == SaveStatus.SAVED_REMOTE
        assert outcome.new_record_id == "d-1"
        body = review_backend.calls_to("POST", "/api/v1/drugs/overview")[0]["body"]
        assert body == {
            "name": "Drugzumab XR",
            "original_drug_id": "d-100",
            "is_updated_version": True,
            "user_id": "user-1",
        }
        assert await mappings.resolve("d-100") == "d-1"

    @pytest.mark.asyncio
    async def test_mapping_failure_keeps_remote_success(self, backend, local_store, session):
        mappings = AsyncMock(spec=DrugMappingStore)
        mappings.record.side_effect = LocalStoreWriteError("Local store quota exceeded")
        editor = DrugEditor(backend, CountingFallbackStore(local_store), mappings)

        outcome = await editor.save(session, "d-100", {"name": "x"}, snapshot={"name": "y"})

        assert outcome.status == SaveStatus.SAVED_REMOTE
        mappings.record.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_new_version_is_held(self, mock_backend, local_store, session):
        fallback_store = CountingFallbackStore(local_store)
        editor = DrugEditor(
            mock_backend(probe_ok_then(lambda request: httpx.Response(500, json={"message": "insert failed"}))),
            fallback_store,
            DrugMappingStore(local_store),
        )

        outcome = await editor.save(session, "d-100", {"name": "x"}, snapshot={"id": "d-100", "name": "y"})

        assert outcome.saved_locally
        record = fallback_store.saved[0]
        assert record.entity_type == "drug"
        assert record.target_table == "drug_overview"
        assert record.operation == MutationOperation.NEW_VERSION
        assert record.last_error == "insert failed"
        assert record.payload["original_drug_id"] == "d-100"

    def test_extract_new_id(self):
        assert extract_new_id({"id": 7}) == "7"
        assert extract_new_id({"data": {"id": "d-2"}}) == "d-2"
        assert extract_new_id({"drug": {"id": "d-3"}}) == "d-3"
        assert extract_new_id({"message": "ok"}) is None
        assert extract_new_id(None) is None
