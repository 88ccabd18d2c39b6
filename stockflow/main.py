import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from stockflow.api.v1.endpoints.api import api_router
from stockflow.core.config import settings
from stockflow.core.errors import DomainFailure, FatalFailure
from stockflow.core.flow_logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="stockflow API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in settings.CORS_ALLOW_ORIGINS.split(",") if o] or ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainFailure)
async def domain_failure_handler(request: Request, exc: DomainFailure):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.exception_handler(SQLAlchemyError)
async def storage_failure_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("storage_failure path=%s", request.url.path)
    failure = FatalFailure(message="Storage failure; the request was rolled back.")
    return JSONResponse(status_code=failure.status_code, content={"detail": failure.to_detail()})


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "up"}
