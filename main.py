# main.py
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import settings
from services.cache import CACHE
from services.duty_api import router as duty_router
from services.store import build_stores
from services.sweeper import ExpirySweeper

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    stores = build_stores()
    app.state.stores = stores
    CACHE.acquire(settings.DUTIES_COLLECTION, stores.duties)
    sweeper = ExpirySweeper(stores.duties, lambda: CACHE.snapshot(settings.DUTIES_COLLECTION))
    sweeper.start()
    logger.info("Duty API started")
    try:
        yield
    finally:
        sweeper.stop()
        CACHE.release(settings.DUTIES_COLLECTION)
        logger.info("Duty API stopped")


app = FastAPI(title="Naka/Patrol Duty API", lifespan=lifespan)
app.include_router(duty_router)


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
