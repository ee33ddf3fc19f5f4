"""
ORM workshop: SQLAlchemy repositories, multi-tenant routing and Valkey
cache strategies behind a FastAPI service.
"""

__version__ = "0.1.0"
