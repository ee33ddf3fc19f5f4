"""
API routers, one module per resource.
"""

from . import (
    actors,
    countries,
    customers,
    health,
    movies,
    posts,
    reactive,
    tenant_actors,
    user_events,
    users,
)

ROUTERS = [
    health.router,
    actors.router,
    movies.router,
    movies.movie_actors_router,
    reactive.router,
    posts.router,
    customers.router,
    countries.router,
    users.users_router,
    users.user_credentials_router,
    user_events.router,
    tenant_actors.router,
]

__all__ = ["ROUTERS"]
