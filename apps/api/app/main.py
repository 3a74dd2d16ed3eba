from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.db import create_schema
from app.middleware.request_id import RequestIdMiddleware

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.create_schema_on_startup:
        create_schema()
    yield


app = FastAPI(title="ClubRide API", lifespan=lifespan)

# Starlette runs the LAST added middleware FIRST (outermost), so the request id
# is bound before CORS preflight responses are produced.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)

if settings.metrics_enabled:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/")
def root():
    return {"name": "ClubRide API", "club": settings.club_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(v1_router, prefix="/v1")
