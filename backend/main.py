"""
PeacePad Backend API

A FastAPI backend for co-parenting coordination: custody schedules, shared
expenses and settlements. This module sets up the app and mounts routers -
all endpoint logic is in routers/.
"""

import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import models
from database import engine
from utils.errors import LedgerError

# Import routers
from routers import auth, partnerships, events, custody, expenses, settlements, balances


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Create database tables
models.Base.metadata.create_all(bind=engine)

# Comma separated list of frontend origins
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]

# Initialize FastAPI app
app = FastAPI(
    title="PeacePad API",
    description="API for custody scheduling, shared expenses and settlements",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Include routers
app.include_router(auth.router)
app.include_router(partnerships.router)
app.include_router(events.router)
app.include_router(custody.router)
app.include_router(expenses.router)
app.include_router(settlements.router)
app.include_router(balances.router)


def run():
    """Serve the app with uvicorn. HOST and PORT default to 0.0.0.0:8000."""
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").lower()
    )


if __name__ == "__main__":
    run()
