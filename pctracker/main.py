import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pctracker.api import auth_router, board_router, health_router
from pctracker.config import settings


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        application.state.http = client
        yield


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    version=pkg_version("pctracker"),
    lifespan=lifespan,
)

app.include_router(auth_router)
app.include_router(board_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.site_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def run() -> None:
    """CLI entry point for serving the API."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
