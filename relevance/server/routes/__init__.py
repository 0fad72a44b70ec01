"""Register all route modules on the FastAPI app."""

from fastapi import FastAPI

from .root import router as root_router
from .signals import router as signals_router
from .users import router as users_router


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the app."""
    app.include_router(root_router)
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(signals_router, prefix="/api/signals", tags=["signals"])
