"""
API tests for posts, comments, customers and the cached country lookup.
"""


class TestPostEndpoints:
    """Test posts and their comments."""

    def test_find_all(self, client):
        """Test the sample posts are listed."""
        posts = client.get("/posts").json()
        assert [p["title"] for p in posts] == ["My first post title", "My second post title"]

    def test_find_missing(self, client):
        """Test a missing post answers 404 with its id."""
        response = client.get("/posts/42")
        assert response.status_code == 404
        assert response.json()["detail"] == "Post not found. id=42"

    def test_save_post(self, client):
        """Test a saved post is found by its new id."""
        saved = client.post("/posts", json={"title": "Third", "content": "Body"}).json()
        assert saved["id"] is not None
        assert client.get(f"/posts/{saved['id']}").json()["title"] == "Third"

    def test_comments(self, client):
        """Test the comments of a post and their count."""
        comments = client.get("/posts/1/comments").json()
        assert [c["content"] for c in comments] == ["Content 1 of post 1", "Content 2 of post 1"]
        assert all(c["postId"] == 1 for c in comments)
        assert client.get("/posts/1/comments/count").json() == 2

    def test_save_comment_uses_path_post(self, client):
        """Test the post id in the path wins over the body."""
        saved = client.post("/posts/2/comments", json={"postId": 1, "content": "Nice"}).json()
        assert saved["postId"] == 2
        assert client.get("/posts/2/comments/count").json() == 3


class TestCustomerEndpoints:
    """Test customer creation and the name filters."""

    def test_find_by_name(self, client):
        """Test customers are filtered by first or last name."""
        for first, last in [("Skyler", "White"), ("Walter", "White"), ("Jesse", "Pinkman")]:
            assert client.post("/customers", json={"firstname": first, "lastname": last}).status_code == 200

        assert len(client.get("/customers").json()) == 3
        assert len(client.get("/customers", params={"lastname": "White"}).json()) == 2
        jesse = client.get("/customers", params={"firstname": "Jesse"}).json()
        assert [c["lastname"] for c in jesse] == ["Pinkman"]


class TestCountryEndpoints:
    """Test the cache-aside country lookup."""

    def test_find_by_code(self, client, fake_valkey):
        """Test a lookup fills the cache and lower-case codes work."""
        country = client.get("/countries/kr").json()
        assert country["code"] == "KR"
        assert "cache:code:country:country:KR" in fake_valkey.data
        assert client.get("/countries/KR").json() == country

    def test_unknown_code(self, client):
        """Test an unknown code answers 404."""
        assert client.get("/countries/ZZ").status_code == 404

    def test_invalid_code_length(self, client):
        """Test a code that is not two letters is rejected."""
        assert client.get("/countries/KOR").status_code == 422

    def test_update_evicts(self, client):
        """Test an update is visible on the next lookup."""
        client.get("/countries/JP")
        response = client.put("/countries/JP", json={"code": "JP", "name": "Japan"})
        assert response.json() == 1
        assert client.get("/countries/JP").json()["name"] == "Japan"

    def test_update_code_mismatch(self, client):
        """Test a body naming another country answers 400."""
        response = client.put("/countries/JP", json={"code": "KR", "name": "Korea"})
        assert response.status_code == 400

    def test_evict_all(self, client, fake_valkey):
        """Test evicting the country cache."""
        client.get("/countries/US")
        response = client.delete("/countries/cache")
        assert response.status_code == 204
        assert not any(key.startswith("cache:code:country") for key in fake_valkey.data)
