import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

import config
from database import check_connection, init_db
from routers.adjustments import router as adjustments_router
from routers.invoices import router as invoices_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not config.JWT_SECRET:
        logger.error("JWT_SECRET is not set; every ledger request will be refused")
    if config.AUTO_CREATE_TABLES:
        # Local / dev convenience; deployed databases are managed by Alembic
        init_db()
        logger.info("Database tables created")
    yield


# App instance
app = FastAPI(title="Finance Ledger", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(invoices_router)
app.include_router(adjustments_router)


@app.get("/api/health")
def health():
    return {"status": "ok", "database": check_connection()}


# Last-resort handler: log the failure, hide the details from clients
@app.middleware("http")
async def error_middleware(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT, reload=True)
