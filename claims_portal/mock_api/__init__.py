# Mock API module - in-memory claims backend for development and tests
from .main import create_app
from .store import MockStore, seeded_store

__all__ = ["create_app", "MockStore", "seeded_store"]
