# sessiongate API Routes
from sessiongate.api.auth import router as auth_router
from sessiongate.api.health import router as health_router

__all__ = ["auth_router", "health_router"]
