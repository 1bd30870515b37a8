"""
FastAPI application: batch generation plus week-by-week editing sessions.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schedulemaker.api import routes
from schedulemaker.core.config import CORS_ORIGINS, LOG_LEVEL
from schedulemaker.core.logging_config import setup_logging

setup_logging(LOG_LEVEL)

app = FastAPI(
    title="League Schedule Maker API",
    description="Generate league schedules and edit them one game at a time with live feasibility reports",
    version="1.0.0"
)

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
    return {
        "message": "League Schedule Maker API",
        "version": "1.0.0",
        "endpoints": {
            "generate": "/api/schedule",
            "generate_async": "/api/schedule/async",
            "sessions": "/api/sessions",
            "health": "/api/health"
        }
    }
