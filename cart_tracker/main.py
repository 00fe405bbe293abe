# cart_tracker/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from cart_tracker.data.database import Base, engine
from cart_tracker.api.routers import events, stats, health
from cart_tracker.utils.logging import get_logger

# import modeli przed create_all
from cart_tracker.data.models import CartLineModel  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Cart Tracker",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(events.router)
    app.include_router(stats.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
