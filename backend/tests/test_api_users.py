"""
API tests for the cache strategy endpoints and the health checks.
"""

import pytest


def new_user(username="neo"):
    return {"username": username, "firstName": "Thomas", "lastName": "Anderson", "zipcode": "10001"}


class TestUserEndpoints:
    """Test the read/write-through user cache."""

    def test_put_and_get(self, client, fake_valkey):
        """Test a posted user gets an id and is cached."""
        created = client.post("/users", json=new_user()).json()
        assert created["id"] is not None
        assert f"exposed:users:{created['id']}" in fake_valkey.data

        found = client.get(f"/users/{created['id']}").json()
        assert found["username"] == "neo"
        assert found["firstName"] == "Thomas"

    def test_get_missing(self, client):
        """Test an unknown user answers 404."""
        response = client.get("/users/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found. id=999"

    def test_get_malformed_id(self, client):
        """Test a non-numeric id answers 400."""
        assert client.get("/users/abc").status_code == 400

    def test_find_all_with_limit(self, client):
        """Test listing users with a limit."""
        for name in ("neo", "trinity", "morpheus"):
            client.post("/users", json=new_user(name))
        assert len(client.get("/users").json()) == 3
        assert [u["username"] for u in client.get("/users", params={"limit": 2}).json()] == ["neo", "trinity"]

    def test_get_all_skips_unknown_ids(self, client):
        """Test the bulk lookup returns only ids that exist."""
        first = client.post("/users", json=new_user("neo")).json()
        second = client.post("/users", json=new_user("trinity")).json()

        found = client.get("/users/all", params={"ids": f"{first['id']},{second['id']},999"}).json()
        assert sorted(u["username"] for u in found) == ["neo", "trinity"]

    def test_invalidate_deletes_rows(self, client):
        """Test invalidating a user also deletes its row."""
        created = client.post("/users", json=new_user()).json()

        assert client.delete("/users/invalidate", params={"ids": str(created["id"])}).json() == 1
        assert client.get(f"/users/{created['id']}").status_code == 404

    def test_invalidate_all_keeps_rows(self, client, fake_valkey):
        """Test invalidate/all only clears the cache."""
        created = client.post("/users", json=new_user()).json()

        assert client.delete("/users/invalidate/all").json() == 1
        assert not any(key.startswith("exposed:users:") for key in fake_valkey.data)
        assert client.get(f"/users/{created['id']}").json()["username"] == "neo"

    def test_invalidate_by_patterns(self, client):
        """Test several comma separated patterns are summed."""
        ids = [client.post("/users", json=new_user(f"user{i}")).json()["id"] for i in range(3)]

        removed = client.delete("/users/invalidate/pattern", params={"patterns": f"{ids[0]},{ids[1]}"}).json()
        assert removed == 2


class TestUserCredentialsEndpoints:
    """Test the read-only-through credentials cache."""

    def test_put_stays_in_cache(self, client):
        """Test credentials written through the API are cached but not stored."""
        saved = client.post("/user-credentials", json={"username": "neo", "email": "neo@example.com"}).json()
        assert len(saved["id"]) == 36

        assert client.get(f"/user-credentials/{saved['id']}").json()["email"] == "neo@example.com"

        assert client.delete("/user-credentials/invalidate", params={"ids": saved["id"]}).json() == 1
        assert client.get(f"/user-credentials/{saved['id']}").status_code == 404

    def test_missing(self, client):
        """Test unknown credentials answer 404."""
        assert client.get("/user-credentials/no-such-id").status_code == 404


class TestUserEventEndpoints:
    """Test the write-behind user event cache."""

    @staticmethod
    def event(event_id=None, event_type="LOGIN"):
        body = {"username": "neo", "eventSource": "web", "eventType": event_type}
        if event_id is not None:
            body["id"] = event_id
        return body

    def test_events_persist_on_flush(self, client):
        """Test events are counted only after the write-behind flush."""
        assert client.post("/user-events", json=self.event()).json() is True
        assert client.post("/user-events/batch", json=[self.event(), self.event(event_type="LOGOUT")]).json() is True
        assert client.post("/user-events/bulk", json=[self.event(event_type="SIGNUP")]).json() is True

        assert client.get("/user-events/count").json() == 0
        assert client.post("/user-events/flush").json() == 4
        assert client.get("/user-events/count").json() == 4
        assert client.post("/user-events/flush").json() == 0

    def test_get_before_flush(self, client):
        """Test a queued event is readable from the cache."""
        client.post("/user-events", json=self.event(event_id=12345))

        event = client.get("/user-events/12345").json()
        assert event["eventType"] == "LOGIN"
        assert event["eventSource"] == "web"

    def test_invalid_event_type(self, client):
        """Test an unknown event type is rejected."""
        assert client.post("/user-events", json=self.event(event_type="TELEPORT")).status_code == 422

    def test_missing(self, client):
        """Test an unknown event answers 404."""
        assert client.get("/user-events/1").status_code == 404


class TestHealthEndpoints:
    """Test the health checks."""

    def test_health(self, client):
        """Test the basic health check reports the version."""
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0"

    def test_database_health(self, client):
        """Test every database answers."""
        response = client.get("/health/db")
        assert response.status_code == 200
        services = response.json()["services"]
        assert services["database"] is True
        assert services["async_database"] is True
        assert services["tenants"] == {"korean": True, "english": True}

    def test_database_health_failure(self, app, client):
        """Test a failing database answers 503."""
        app.state.database.test_connection = lambda: False
        response = client.get("/health/db")
        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    @pytest.mark.parametrize("attach_client,status", [(True, "healthy"), (False, "degraded")])
    def test_cache_health(self, app, client, attach_client, status):
        """Test the cache health follows the Valkey client."""
        if not attach_client:
            app.state.cache_manager.client = None
        assert client.get("/health/cache").json()["status"] == status
