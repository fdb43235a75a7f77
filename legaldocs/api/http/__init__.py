from legaldocs.api.http.health import router as health_router
from legaldocs.api.http.collaboration import router as collaboration_router
from legaldocs.api.http.ai import router as ai_router

__all__ = [
    "health_router",
    "collaboration_router",
    "ai_router"
]
