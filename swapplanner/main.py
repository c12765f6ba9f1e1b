import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from swapplanner.core.config import settings
from swapplanner.routers import planner

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Unified API Prefix: /api
app.include_router(planner.router, prefix="/api")

logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")


@app.get("/health")
async def health_check():
    return {"status": "ok", "project": settings.PROJECT_NAME}


@app.get("/")
async def root():
    return {"message": "SwapPlanner API is running", "docs": "/docs"}
