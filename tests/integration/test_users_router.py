"""Integration tests for the user directory endpoints."""


class TestUsersRouter:
    async def test_create_and_get(self, client, admin_headers):
        resp = await client.post("/users", json={
            "tenantId": "t1", "email": "ana@example.com", "firstName": "Ana",
        }, headers=admin_headers)
        assert resp.status_code == 201
        created = resp.json()
        assert created["tenantId"] == "t1"

        resp = await client.get(f"/users/{created['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["email"] == "ana@example.com"

    async def test_get_not_found(self, client, admin_headers):
        resp = await client.get("/users/nope", headers=admin_headers)
        assert resp.status_code == 404

    async def test_requires_auth(self, client):
        resp = await client.post("/users", json={"tenantId": "t1", "email": "a@b.c"})
        assert resp.status_code == 422
