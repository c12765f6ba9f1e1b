import uvicorn

from swapplanner.core.config import settings

if __name__ == "__main__":
    # Start Uvicorn programmatically
    print(f"Starting {settings.PROJECT_NAME} via Custom Launcher...")
    # Reload only in dev
    uvicorn.run(
        "swapplanner.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.ENVIRONMENT == "dev",
        log_level=settings.LOG_LEVEL.lower(),
    )
