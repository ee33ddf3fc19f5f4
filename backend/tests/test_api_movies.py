"""
API tests for the actor and movie endpoints, sync and reactive.
"""

import pytest


class TestApplication:
    """Test the application context."""

    def test_context_loads(self, app, client):
        """Test the lifespan parks its state on the app."""
        assert app.state.cache_manager is not None
        assert app.state.database.get_connection_info()["is_initialized"]

    def test_openapi_schema(self, client):
        """Test the OpenAPI document lists the REST resources."""
        paths = client.get("/openapi.json").json()["paths"]
        assert "/actors" in paths
        assert "/reactive/movie-actors/{movie_id}" in paths
        assert "/user-events/bulk" not in paths


@pytest.mark.parametrize("prefix", ["", "/reactive"])
class TestActorEndpoints:
    """Test actor CRUD on both the sync and the reactive endpoints."""

    def test_search_by_first_name(self, client, prefix):
        """Test searching actors by first name."""
        response = client.get(f"{prefix}/actors", params={"firstName": "Angelina"})
        assert response.status_code == 200
        assert sorted(a["lastName"] for a in response.json()) == ["Grace", "Jolie"]

    def test_search_all(self, client, prefix):
        """Test an empty search lists every actor."""
        assert len(client.get(f"{prefix}/actors").json()) == 9

    def test_malformed_search_value(self, client, prefix):
        """Test a malformed birthday answers 400."""
        response = client.get(f"{prefix}/actors", params={"birthday": "yesterday"})
        assert response.status_code == 400

    def test_get_by_id(self, client, prefix):
        """Test an actor is found by id with camelCase fields."""
        actor = client.get(f"{prefix}/actors/1").json()
        assert set(actor) == {"id", "firstName", "lastName", "birthday"}
        assert actor["id"] == 1

    def test_get_missing(self, client, prefix):
        """Test a missing actor answers 404."""
        response = client.get(f"{prefix}/actors/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Actor not found. id=999"

    def test_create_and_delete(self, client, prefix):
        """Test a created actor can be deleted once."""
        response = client.post(f"{prefix}/actors", json={
            "firstName": "Sean",
            "lastName": "Connery",
            "birthday": "1930-08-25",
        })
        assert response.status_code == 200
        created = response.json()
        assert created["id"] is not None
        assert created["birthday"] == "1930-08-25"

        assert len(client.get(f"{prefix}/actors").json()) == 10
        assert client.delete(f"{prefix}/actors/{created['id']}").json() == 1
        assert client.delete(f"{prefix}/actors/{created['id']}").json() == 0

    def test_create_invalid_body(self, client, prefix):
        """Test a body without a last name is rejected."""
        response = client.post(f"{prefix}/actors", json={"firstName": "Sean"})
        assert response.status_code == 422


@pytest.mark.parametrize("prefix", ["", "/reactive"])
class TestMovieEndpoints:
    """Test movie CRUD and the movie/actor reports."""

    def test_search_by_producer(self, client, prefix):
        """Test searching movies by producer."""
        movies = client.get(f"{prefix}/movies", params={"producerName": "Johnny"}).json()
        assert sorted(m["name"] for m in movies) == ["Gladiator", "Guardians of the galaxy"]

    def test_search_by_release_date(self, client, prefix):
        """Test a bare release date matches the stored timestamp."""
        movies = client.get(f"{prefix}/movies", params={"releaseDate": "1999-09-13"}).json()
        assert [m["name"] for m in movies] == ["Fight club"]
        assert movies[0]["releaseDate"].startswith("1999-09-13T00:00:00")

    def test_get_missing(self, client, prefix):
        """Test a missing movie answers 404."""
        assert client.get(f"{prefix}/movies/999").status_code == 404

    def test_create_with_plain_date(self, client, prefix):
        """Test a movie posted with a plain date is stored at midnight."""
        response = client.post(f"{prefix}/movies", json={
            "name": "Heat",
            "producerName": "Michael",
            "releaseDate": "1995-12-15",
        })
        assert response.status_code == 200
        movie = client.get(f"{prefix}/movies/{response.json()['id']}").json()
        assert movie["releaseDate"].startswith("1995-12-15T00:00:00")

    def test_movies_with_actors(self, client, prefix):
        """Test every movie is listed with its cast."""
        movies = client.get(f"{prefix}/movie-actors").json()
        assert len(movies) == 4
        assert sum(len(m["actors"]) for m in movies) == 13

    def test_movie_with_actors(self, client, prefix):
        """Test a single movie with its cast."""
        movie = client.get(f"{prefix}/movie-actors/2").json()
        assert movie["name"] == "Guardians of the galaxy"
        assert len(movie["actors"]) == 5

    def test_movie_with_actors_missing(self, client, prefix):
        """Test a missing movie answers 404."""
        response = client.get(f"{prefix}/movie-actors/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Movie not found. id=999"

    def test_actor_count(self, client, prefix):
        """Test the actor count per movie."""
        counts = client.get(f"{prefix}/movie-actors/count").json()
        assert {c["movieName"]: c["actorCount"] for c in counts} == {
            "Gladiator": 3,
            "Guardians of the galaxy": 5,
            "Fight club": 3,
            "13 Reasons Why": 2,
        }

    def test_acting_producers(self, client, prefix):
        """Test the movie whose producer also acts in it."""
        assert client.get(f"{prefix}/movie-actors/acting-producers").json() == [
            {"movieName": "Guardians of the galaxy", "producerActorName": "Johnny Depp"},
        ]
