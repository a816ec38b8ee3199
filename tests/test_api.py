"""End-to-end API tests through the FastAPI app with an in-memory database."""

from uuid import uuid4

import pytest
from httpx import AsyncClient

TBP_FIELDS = {
    "tbp_graphics_location": "Drive/Graphics/Preview",
    "tbp_publish_date": "2025-04-01T00:00:00Z",
    "tbp_article_link": "https://example.com/preview",
    "tbp_tx_tie": "Set in El Paso",
}


async def create_item(client: AsyncClient, headers: dict, **fields) -> dict:
    body = {"type": "GENERAL", "title": "Homepage banner", **fields}
    response = await client.post("/api/work-items", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# TEST: AUTH AND HEALTH
# =============================================================================


class TestAuth:
    async def test_health_is_public(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_missing_token(self, client):
        response = await client.get("/api/work-items")

        assert response.status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get(
            "/api/work-items", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401


# =============================================================================
# TEST: WORK ITEMS
# =============================================================================


class TestWorkItemEndpoints:
    async def test_create_and_fetch_detail(self, client, member_headers, member):
        created = await create_item(client, member_headers, priority="HIGH", tags=["web"])

        assert created["status"] == "BACKLOG"
        assert created["priority"] == "HIGH"
        assert created["requester_id"] == str(member.id)
        assert created["version"] == 1

        response = await client.get(f"/api/work-items/{created['id']}", headers=member_headers)

        assert response.status_code == 200
        detail = response.json()["data"]
        assert detail["requester"]["name"] == "Morgan Member"
        assert detail["subtasks"] == []
        assert [e["action"] for e in detail["recent_audit"]] == ["created"]

    async def test_create_validates_body(self, client, member_headers):
        response = await client.post(
            "/api/work-items",
            json={"type": "NOT_A_TYPE", "title": ""},
            headers=member_headers,
        )

        assert response.status_code == 422

    async def test_unknown_item_is_404(self, client, member_headers):
        response = await client.get(f"/api/work-items/{uuid4()}", headers=member_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    async def test_list_my_items(self, client, member_headers, admin_headers, member):
        mine = await create_item(client, member_headers, title="Mine", owner_id=str(member.id))
        await create_item(client, admin_headers, title="Someone else's")

        response = await client.get("/api/work-items?my_items=true", headers=member_headers)

        assert response.status_code == 200
        items = response.json()["data"]
        assert [i["id"] for i in items] == [mine["id"]]
        assert items[0]["owner"]["name"] == "Morgan Member"

    async def test_delete_requires_admin(self, client, member_headers, admin_headers):
        item = await create_item(client, member_headers)

        forbidden = await client.delete(f"/api/work-items/{item['id']}", headers=member_headers)
        assert forbidden.status_code == 403

        deleted = await client.delete(f"/api/work-items/{item['id']}", headers=admin_headers)
        assert deleted.status_code == 204

        gone = await client.get(f"/api/work-items/{item['id']}", headers=member_headers)
        assert gone.status_code == 404

        audit = await client.get(f"/api/work-items/{item['id']}/audit", headers=member_headers)
        assert audit.json()["data"]["total"] == 1


# =============================================================================
# TEST: TRANSITIONS
# =============================================================================


class TestTransitionEndpoint:
    async def test_gate_failure_returns_400_and_keeps_status(self, client, member_headers):
        item = await create_item(client, member_headers, type="TX_BOOK_PREVIEW_LEAD")

        response = await client.patch(
            f"/api/work-items/{item['id']}",
            json={"status": "NEEDS_QA", "tbp_tx_tie": "Lubbock"},
            headers=member_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "gate_validation_failed"
        assert [d["message"] for d in body["details"]] == [
            "Graphics location is required for TBP/Magazine items",
            "Publish date is required for TBP/Magazine items",
            "Article link is required for TBP/Magazine items",
        ]

        detail = await client.get(f"/api/work-items/{item['id']}", headers=member_headers)
        data = detail.json()["data"]
        assert data["status"] == "BACKLOG"
        assert data["tbp_tx_tie"] is None
        assert data["version"] == 1

    async def test_transition_with_tbp_fields(self, client, member_headers):
        item = await create_item(client, member_headers, type="SPONSORED_EDITORIAL_REVIEW")

        response = await client.patch(
            f"/api/work-items/{item['id']}",
            json={"status": "NEEDS_QA", **TBP_FIELDS},
            headers=member_headers,
        )

        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["status"] == "NEEDS_QA"
        assert data["version"] == 2
        assert data["status_changed_at"] is not None

        audit = await client.get(f"/api/work-items/{item['id']}/audit", headers=member_headers)
        entries = audit.json()["data"]["items"]
        assert [e["action"] for e in entries] == ["status_changed", "created"]
        assert entries[0]["from_value"] == "BACKLOG"
        assert entries[0]["to_value"] == "NEEDS_QA"

    async def test_stale_version_is_409(self, client, member_headers):
        item = await create_item(client, member_headers)
        url = f"/api/work-items/{item['id']}"

        first = await client.patch(url, json={"title": "One", "expected_version": 1}, headers=member_headers)
        assert first.status_code == 200

        second = await client.patch(url, json={"title": "Two", "expected_version": 1}, headers=member_headers)
        assert second.status_code == 409
        assert second.json()["error"] == "conflict"

    async def test_null_title_rejected(self, client, member_headers):
        item = await create_item(client, member_headers)

        response = await client.patch(
            f"/api/work-items/{item['id']}", json={"title": None}, headers=member_headers
        )

        assert response.status_code == 422

    async def test_null_clears_nullable_field(self, client, member_headers, member):
        item = await create_item(client, member_headers, owner_id=str(member.id))

        response = await client.patch(
            f"/api/work-items/{item['id']}", json={"owner_id": None}, headers=member_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["owner_id"] is None


# =============================================================================
# TEST: QC, SUBTASKS, CONVERSATIONS
# =============================================================================


class TestQcFlow:
    async def test_done_blocked_until_checks_pass(self, client, member_headers):
        item = await create_item(client, member_headers)
        qc_url = f"/api/work-items/{item['id']}/qc"

        added = await client.post(qc_url, json={"checkpoints": ["Spelling", "Links"]}, headers=member_headers)
        assert added.status_code == 201

        await client.patch(qc_url, json={"checkpoint": "Spelling", "status": "PASSED"}, headers=member_headers)

        blocked = await client.patch(
            f"/api/work-items/{item['id']}", json={"status": "DONE"}, headers=member_headers
        )
        assert blocked.status_code == 400
        assert blocked.json()["message"] == "Cannot mark as DONE: QA not complete (1/2 passed, 0 failed)"

        await client.patch(qc_url, json={"checkpoint": "Links", "status": "PASSED"}, headers=member_headers)

        checklist = (await client.get(qc_url, headers=member_headers)).json()["data"]
        assert checklist["stats"]["completion_rate"] == 100

        done = await client.patch(
            f"/api/work-items/{item['id']}", json={"status": "DONE"}, headers=member_headers
        )
        assert done.status_code == 200
        assert done.json()["data"]["completed_at"] is not None
        assert done.json()["data"]["needs_proofing"] is False

    async def test_unknown_checkpoint_is_404(self, client, member_headers):
        item = await create_item(client, member_headers)

        response = await client.patch(
            f"/api/work-items/{item['id']}/qc",
            json={"checkpoint": "Nope", "status": "PASSED"},
            headers=member_headers,
        )

        assert response.status_code == 404


class TestSubtaskEndpoints:
    async def test_subtask_lifecycle(self, client, member_headers):
        item = await create_item(client, member_headers)
        url = f"/api/work-items/{item['id']}/subtasks"

        created = await client.post(url, json={"title": "Resize images"}, headers=member_headers)
        assert created.status_code == 201
        subtask_id = created.json()["data"]["id"]

        updated = await client.patch(
            f"/api/subtasks/{subtask_id}", json={"completed": True}, headers=member_headers
        )
        assert updated.json()["data"]["completed_at"] is not None

        deleted = await client.delete(f"/api/subtasks/{subtask_id}", headers=member_headers)
        assert deleted.status_code == 204

        listed = await client.get(url, headers=member_headers)
        assert listed.json()["data"] == []


class TestConversationEndpoints:
    async def test_comment_and_message(self, client, member_headers):
        item = await create_item(client, member_headers)
        base = f"/api/work-items/{item['id']}"

        comment = await client.post(f"{base}/comments", json={"body": "On it"}, headers=member_headers)
        assert comment.status_code == 201
        assert comment.json()["data"]["user"]["name"] == "Morgan Member"

        message = await client.post(
            f"{base}/messages",
            json={"body": "Need the logo", "direction": "OUTBOUND", "channel": "EMAIL"},
            headers=member_headers,
        )
        assert message.status_code == 201
        assert message.json()["data"]["sent_at"] is not None

        detail = (await client.get(base, headers=member_headers)).json()["data"]
        assert detail["waiting_reason"] == "Awaiting reply"
        assert [c["body"] for c in detail["comments"]] == ["On it"]

        messages = (await client.get(f"{base}/messages", headers=member_headers)).json()["data"]
        assert [m["direction"] for m in messages] == ["OUTBOUND"]


# =============================================================================
# TEST: TEMPLATES AND METRICS
# =============================================================================


class TestTemplateEndpoints:
    async def test_only_admins_create(self, client, member_headers, admin_headers):
        body = {
            "name": "Social asset",
            "work_item_type": "SOCIAL_ASSET_REQUEST",
            "subtasks": [{"title": "Draft caption"}],
            "due_days_offset": 3,
        }

        forbidden = await client.post("/api/templates", json=body, headers=member_headers)
        assert forbidden.status_code == 403

        created = await client.post("/api/templates", json=body, headers=admin_headers)
        assert created.status_code == 201

        item = await create_item(client, member_headers, type="SOCIAL_ASSET_REQUEST")
        subtasks = await client.get(f"/api/work-items/{item['id']}/subtasks", headers=member_headers)
        assert [s["title"] for s in subtasks.json()["data"]] == ["Draft caption"]

        listed = await client.get("/api/templates", headers=member_headers)
        assert [t["name"] for t in listed.json()["data"]] == ["Social asset"]


class TestMetricsEndpoints:
    async def test_stats_are_cached(self, client, member_headers):
        await create_item(client, member_headers)

        first = await client.get("/api/stats", headers=member_headers)
        assert first.status_code == 200
        assert first.json()["data"]["total_items"] == 1

        await create_item(client, member_headers)

        second = await client.get("/api/stats", headers=member_headers)
        assert second.json()["data"]["total_items"] == 1

    async def test_cycle_time(self, client, member_headers):
        item = await create_item(client, member_headers)
        await client.patch(
            f"/api/work-items/{item['id']}", json={"status": "DONE"}, headers=member_headers
        )

        response = await client.get("/api/metrics/cycle-time", headers=member_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["overall_count"] == 1
        assert data["by_type"][0]["type"] == "GENERAL"
        assert data["blocked"] == []


class TestTemplateAdminEndpoints:
    async def test_edit_retire_and_delete(self, client, member_headers, admin_headers):
        body = {"name": "Event page", "work_item_type": "WEBSITE_EVENT", "due_days_offset": 5}
        template_id = (await client.post("/api/templates", json=body, headers=admin_headers)).json()["data"]["id"]
        url = f"/api/templates/{template_id}"

        forbidden = await client.put(url, json={"is_active": False}, headers=member_headers)
        assert forbidden.status_code == 403

        null_name = await client.put(url, json={"name": None}, headers=admin_headers)
        assert null_name.status_code == 422

        retired = await client.put(url, json={"is_active": False, "description": "Old"}, headers=admin_headers)
        assert retired.status_code == 200
        assert retired.json()["data"]["is_active"] is False
        assert retired.json()["data"]["due_days_offset"] == 5

        listed = await client.get("/api/templates", headers=member_headers)
        assert listed.json()["data"] == []

        fetched = await client.get(url, headers=admin_headers)
        assert fetched.json()["data"]["description"] == "Old"

        deleted = await client.delete(url, headers=admin_headers)
        assert deleted.status_code == 204

        missing = await client.get(url, headers=admin_headers)
        assert missing.status_code == 404


# =============================================================================
# TEST: USERS AND INBOX
# =============================================================================


class TestUserEndpoints:
    async def test_list_users(self, client, member_headers):
        response = await client.get("/api/users", headers=member_headers)

        assert response.status_code == 200
        assert [(u["name"], u["role"]) for u in response.json()["data"]] == [
            ("Avery Admin", "ADMIN"),
            ("Morgan Member", "MEMBER"),
        ]


class TestInboxEndpoint:
    async def test_awaiting_reply_and_blocked(self, client, member_headers, admin_headers, member):
        waiting = await create_item(client, member_headers, title="Need quote", owner_id=str(member.id))
        await client.post(
            f"/api/work-items/{waiting['id']}/messages",
            json={"body": "Any update?", "direction": "OUTBOUND", "channel": "EMAIL"},
            headers=member_headers,
        )
        blocked = await create_item(client, admin_headers, title="Stuck")
        await client.patch(
            f"/api/work-items/{blocked['id']}", json={"status": "BLOCKED"}, headers=admin_headers
        )

        response = await client.get("/api/inbox", headers=member_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [a["work_item"]["title"] for a in data["awaiting_reply"]] == ["Need quote"]
        assert data["awaiting_reply"][0]["waiting_days"] == 0
        assert [b["title"] for b in data["blocked"]] == ["Stuck"]
        assert data["counts"] == {"awaiting": 1, "blocked": 1, "inbound": 0}

        mine = (await client.get("/api/inbox?mine=true", headers=member_headers)).json()["data"]
        assert mine["counts"] == {"awaiting": 1, "blocked": 0, "inbound": 0}


class TestAuditPagination:
    async def test_pages_newest_first(self, client, member_headers):
        item = await create_item(client, member_headers)
        for status in ("READY", "IN_PROGRESS"):
            await client.patch(
                f"/api/work-items/{item['id']}", json={"status": status}, headers=member_headers
            )

        response = await client.get(
            f"/api/work-items/{item['id']}/audit?page=2&page_size=2", headers=member_headers
        )

        data = response.json()["data"]
        assert data["total"] == 3
        assert data["total_pages"] == 2
        assert [e["action"] for e in data["items"]] == ["created"]
