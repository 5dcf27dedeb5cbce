"""
In-memory stand-in for the reference-data backend.

Serves the endpoints the client talks to. Install `record` as an httpx request
hook to capture every call for assertions on bodies and headers.
"""
import json
from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse


class ReviewBackend:
    """FastAPI app plus the state it mutates."""

    def __init__(self):
        self.changes: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Dict[str, Any]] = []
        self.list_calls = 0
        self.bare_list = False
        self.trials: Dict[str, Dict[str, Any]] = {
            "t-100": {"id": "t-100", "title": "Phase II study", "therapeutic_area": "Oncology"},
        }
        self.drugs: Dict[str, Dict[str, Any]] = {
            "d-100": {"id": "d-100", "name": "Drugzumab", "created_at": "2024-01-01T00:00:00Z"},
        }
        self.activity: List[Dict[str, Any]] = []
        self.saved_queries: List[Dict[str, Any]] = []
        self._next_id = 1
        self.app = self._build_app()

    def new_id(self, prefix: str) -> str:
        value = f"{prefix}-{self._next_id}"
        self._next_id += 1
        return value

    async def record(self, request: httpx.Request) -> None:
        """httpx request event hook."""
        raw = request.content
        self.calls.append({
            "method": request.method,
            "path": request.url.path,
            "params": dict(request.url.params),
            "headers": {k.lower(): v for k, v in request.headers.items()},
            "raw_body": raw,
            "body": json.loads(raw) if raw else None,
        })

    def calls_to(self, method: str, path: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    def _build_app(self) -> FastAPI:
        app = FastAPI()
        router = APIRouter(prefix="/api/v1")
        backend = self

        # Change submission
        @router.post("/pending-changes/submitChange")
        async def submit_change(request: Request):
            body = await request.json()
            change_id = backend.new_id("chg")
            record = {"id": change_id, **body, "status": "pending"}
            backend.changes[change_id] = record
            return JSONResponse({"message": "Change submitted for approval", "data": record}, status_code=201)

        # Review queue
        @router.get("/approvals")
        async def list_approvals(page: Optional[int] = None, pageSize: Optional[int] = Query(None)):
            backend.list_calls += 1
            items = list(backend.changes.values())
            if backend.bare_list:
                return items
            if page and pageSize:
                start = (page - 1) * pageSize
                return {"items": items[start:start + pageSize], "total": len(items), "page": page, "pageSize": pageSize}
            return {"items": items, "total": len(items)}

        @router.get("/approvals/{change_id}")
        async def get_approval(change_id: str):
            if change_id not in backend.changes:
                return JSONResponse({"error": "Change not found"}, status_code=404)
            return backend.changes[change_id]

        async def _decide(change_id: str, status: str, request: Request):
            change = backend.changes.get(change_id)
            if change is None:
                return JSONResponse({"error": "Change not found"}, status_code=404)
            if change["status"] != "pending":
                return JSONResponse({"error": f"Change already {change['status']}"}, status_code=409)
            raw = await request.body()
            body = json.loads(raw) if raw else {}
            change["status"] = status
            if body.get("reason"):
                change["rejection_reason"] = body["reason"]
            return {"message": f"Change {status}", "id": change_id}

        @router.post("/approvals/{change_id}/approve")
        async def approve(change_id: str, request: Request):
            return await _decide(change_id, "approved", request)

        @router.post("/approvals/{change_id}/reject")
        async def reject(change_id: str, request: Request):
            return await _decide(change_id, "rejected", request)

        # Direct mutations
        @router.get("/therapeutic/overview")
        async def list_overviews():
            return list(backend.trials.values())

        @router.patch("/therapeutic/overview/{trial_id}")
        async def patch_overview(trial_id: str, request: Request):
            if trial_id not in backend.trials:
                return JSONResponse({"message": "Trial overview not found"}, status_code=404)
            body = await request.json()
            backend.trials[trial_id].update({k: v for k, v in body.items() if k != "user_id"})
            return {"message": "Overview updated", "data": backend.trials[trial_id]}

        @router.post("/drugs/overview")
        async def create_drug_version(request: Request):
            body = await request.json()
            new_id = backend.new_id("d")
            backend.drugs[new_id] = {"id": new_id, **body}
            return JSONResponse({"message": "Drug overview created", "data": backend.drugs[new_id]}, status_code=201)

        # Catalog
        @router.get("/therapeutic/all-trials-with-data")
        async def all_trials():
            trials = list(backend.trials.values())
            return {"message": "Trials fetched", "total_trials": len(trials), "trials": trials}

        @router.get("/drugs/all-drugs-with-data")
        async def all_drugs():
            drugs = list(backend.drugs.values())
            return {"message": "Drugs fetched", "total_drugs": len(drugs), "drugs": drugs}

        # Activity (legacy shape: everything, no paging)
        @router.get("/user-activity/listActivity")
        async def list_activity():
            return {"activity": backend.activity}

        # Users
        @router.post("/users/loginUser")
        async def login(request: Request):
            body = await request.json()
            if body.get("password") != "secret":
                return JSONResponse({"message": "Invalid credentials"}, status_code=401)
            return {
                "user": {"id": "user-1", "email": body["email"]},
                "token": "token-abc",
                "roles": [{"role_name": "Admin"}],
            }

        # Saved queries
        @router.post("/queries/saved")
        async def save_query(request: Request):
            body = await request.json()
            backend.saved_queries.append(body)
            return JSONResponse({"message": "Query saved", "data": {"id": len(backend.saved_queries), **body}}, status_code=201)

        app.include_router(router)
        return app
