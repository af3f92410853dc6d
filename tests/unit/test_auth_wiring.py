"""Tests for auth wiring: audit and directory endpoints require the API key."""


EVENT = {"userId": "u1", "entityType": "JournalEntry", "entityId": "JE-1", "action": "Created"}


class TestAdminEndpointsRequireAuth:
    async def test_append_no_auth(self, client):
        resp = await client.post("/audit-logs/t1", json=EVENT)
        assert resp.status_code == 422  # missing required header

    async def test_append_wrong_auth(self, client):
        resp = await client.post(
            "/audit-logs/t1", json=EVENT, headers={"X-Tala-Api-Key": "wrong-key"},
        )
        assert resp.status_code == 403

    async def test_trail_no_auth(self, client):
        resp = await client.get(
            "/audit-logs/t1", params={"entityType": "JournalEntry", "entityId": "JE-1"},
        )
        assert resp.status_code == 422

    async def test_detect_tampering_wrong_auth(self, client):
        resp = await client.get(
            "/audit-logs/t1/detect-tampering", headers={"X-Tala-Api-Key": "wrong"},
        )
        assert resp.status_code == 403

    async def test_events_no_auth(self, client):
        resp = await client.get("/audit-logs/t1/events")
        assert resp.status_code == 422

    async def test_get_user_wrong_auth(self, client):
        resp = await client.get("/users/u1", headers={"X-Tala-Api-Key": "wrong"})
        assert resp.status_code == 403

    async def test_rejected_append_writes_nothing(self, client, admin_headers):
        await client.post("/audit-logs/t1", json=EVENT, headers={"X-Tala-Api-Key": "wrong"})
        resp = await client.get(
            "/audit-logs/t1",
            params={"entityType": "JournalEntry", "entityId": "JE-1"},
            headers=admin_headers,
        )
        assert resp.json()["logs"] == []


class TestPublicEndpointsWork:
    async def test_health_no_auth(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "tala-audit"


class TestLibraryExports:
    def test_top_level_exports(self):
        import tala_audit

        for name in (
            "AuditClient", "AuditEvent", "AuditAction", "EntityType",
            "compute_data_hash", "format_timestamp", "verify_chain", "scan_for_tampering",
        ):
            assert hasattr(tala_audit, name), name

    def test_version(self):
        import tala_audit
        assert tala_audit.__version__ == "0.1.0"
