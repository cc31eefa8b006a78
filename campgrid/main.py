"""
Main FastAPI application for the campgrid scheduling core.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campgrid.api import routes
from campgrid.core.logging_config import setup_logging

setup_logging()

app = FastAPI(
    title="Campgrid Scheduling API",
    description="API for merging, validating and inspecting daily camp schedules",
    version="1.0.0"
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(routes.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Campgrid Scheduling API",
        "version": "1.0.0",
        "endpoints": {
            "merge": "/api/schedule/{date}/merge",
            "validate": "/api/schedule/{date}/validate",
            "report": "/api/schedule/{date}/report",
            "health": "/api/health"
        }
    }
