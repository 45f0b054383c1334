"""API route modules."""
from api.routes.system import router as system_router
from api.routes.datasets import router as datasets_router
from api.routes.sessions import router as sessions_router

__all__ = [
    "system_router",
    "datasets_router",
    "sessions_router",
]
