from pctracker.api.auth import router as auth_router
from pctracker.api.board import router as board_router
from pctracker.api.health import router as health_router

__all__ = [
    "auth_router",
    "board_router",
    "health_router",
]
