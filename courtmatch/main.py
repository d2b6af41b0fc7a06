"""
Main FastAPI application for the Doubles Match Scheduler.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from courtmatch.api import routes
from courtmatch.core.config import CORS_ORIGINS
from courtmatch.core.logging_config import setup_logging

setup_logging()

app = FastAPI(
    title="Doubles Match Scheduler API",
    description="API for generating balanced doubles matches for club sessions",
    version="1.0.0"
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Doubles Match Scheduler API",
        "version": "1.0.0",
        "endpoints": {
            "generate": "/api/matches",
            "optimize": "/api/matches/optimize",
            "sequence": "/api/matches/sequence",
            "validate": "/api/matches/validate",
            "health": "/api/health"
        }
    }
