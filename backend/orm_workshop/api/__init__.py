"""
REST API for the ORM workshop.
"""

from .app import create_app

__all__ = ["create_app"]
