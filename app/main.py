from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import install_exception_handlers
from app.api.middleware import install_middleware
from app.api.routes.admin import router as admin_router
from app.api.routes.analytics import router as analytics_router
from app.api.routes.artists import router as artists_router
from app.api.routes.auth import router as auth_router
from app.api.routes.blogs import router as blogs_router
from app.api.routes.cart import router as cart_router
from app.api.routes.events import router as events_router
from app.api.routes.health import router as health_router
from app.api.routes.merch import router as merch_router
from app.api.routes.orders import router as orders_router
from app.api.routes.playlists import router as playlists_router
from app.api.routes.songs import router as songs_router
from app.api.routes.subscriptions import router as subscriptions_router
from app.api.routes.users import router as users_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.core.redis import close_redis
from app.db.session import dispose_engine


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await close_redis()
    await dispose_engine()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Rise Up Creators API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    install_exception_handlers(app)
    install_middleware(app)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.client_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(playlists_router)
    app.include_router(artists_router)
    app.include_router(songs_router)
    app.include_router(merch_router)
    app.include_router(events_router)
    app.include_router(blogs_router)
    app.include_router(subscriptions_router)
    app.include_router(cart_router)
    app.include_router(orders_router)
    app.include_router(analytics_router)
    app.include_router(admin_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
