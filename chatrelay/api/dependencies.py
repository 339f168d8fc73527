"""Process-wide collaborators injected into the route handlers.

Tests swap them through ``app.dependency_overrides``.
"""

from functools import lru_cache

from chatrelay.services.fallback import FallbackOrchestrator
from chatrelay.services.session_store import SessionStore


@lru_cache(maxsize=1)
def get_session_store() -> SessionStore:
    return SessionStore()


@lru_cache(maxsize=1)
def get_orchestrator() -> FallbackOrchestrator:
    return FallbackOrchestrator()
