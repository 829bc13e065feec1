from contextlib import asynccontextmanager

from fastapi import FastAPI

from americano.router import router as americano_router
from database import create_tables


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    yield


app = FastAPI(title="Padel Americano", lifespan=lifespan)
app.include_router(americano_router)
