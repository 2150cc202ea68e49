from fastapi import FastAPI
import os
import logging
from dotenv import load_dotenv

from .api.files import router as files_router
from .storage.factory import create_default_storage
from .storage.errors import StorageConfigurationError

# Load environment variables
load_dotenv()

# Set up logging
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="filestorage",
    description="Unified file storage over local, S3 and FTP disks",
    version="1.0.0"
)

# Initialize storage on startup
@app.on_event("startup")
async def startup_event():
    """Initialize storage and attach it to application state."""
    try:
        storage = create_default_storage()
        app.state.storage = storage
        logger.info(f"Storage initialized on disk '{storage.name}'")
    except StorageConfigurationError as e:
        logger.error(f"Failed to initialize storage: {e}")
        raise RuntimeError(f"Storage initialization failed: {e}") from e

@app.on_event("shutdown")
async def shutdown_event():
    """Release the connections of the storage drivers."""
    storage = getattr(app.state, "storage", None)
    if storage is not None:
        await storage.close()
        logger.info("Storage closed")

# Include API routers
app.include_router(files_router)

@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring and deployment validation"""
    return {
        "status": "healthy",
        "service": "filestorage",
        "version": "1.0.0"
    }

if __name__ == "__main__":
    import uvicorn
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    debug = os.getenv("DEBUG", "False").lower() == "true"

    uvicorn.run("filestorage.main:app", host=host, port=port, reload=debug)
