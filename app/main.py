import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import CORS_ORIGINS
from app.core.exception_handlers import handle_service_error
from app.core.logging_config import configure_logging
from app.database.db import init_db
from app.routes import events, users
from app.services.errors import ServiceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Create all tables (in production, use migrations such as Alembic)
    init_db()
    logger.info("Event registration API started")
    yield


app = FastAPI(title="Event registration API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceError, handle_service_error)

# Include the routers
app.include_router(events.router)
app.include_router(users.router)


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}
