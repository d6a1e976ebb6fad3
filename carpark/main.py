import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from carpark.db.init_db import create_database
from carpark.db.base import Base
from carpark.db.session import engine, SessionLocal
from carpark.core.config import settings
from carpark.core.exceptions import CarparkError
from carpark.api.v1.router import api_router
from carpark.core.rate_limit import purge_expired_hits
from carpark.services.flights import purge_old_flights
from carpark.services.reservations import SpotReservationStore

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def run_sweep(db) -> dict:
    """Delete expired spot holds, stale rate-limit hits and old cached flights."""
    purged = {
        "reservations": SpotReservationStore(db).purge_expired(),
        "rate_limit_hits": purge_expired_hits(db),
        "flights": purge_old_flights(db),
    }
    for table, count in purged.items():
        if count:
            logger.info("Purged %d row(s) from %s.", count, table)
    return purged


async def _sweep_loop() -> None:
    """Background task. Hold expiry itself is checked on every read."""
    while True:
        try:
            db = SessionLocal()
            try:
                run_sweep(db)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during sweep.")
        await asyncio.sleep(settings.RESERVATION_SWEEP_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    sweep_task = asyncio.create_task(_sweep_loop())
    yield

    # Shutdown: cancel background task
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CarparkError)
async def carpark_error_handler(request: Request, exc: CarparkError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
    )


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "KEF Parking"}
