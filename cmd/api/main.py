"""
FastAPI Service - Main entry point for the Chunked Transcribe API.
Implements clean separation of concerns with comprehensive logging and error handling:
- Routes are separated into modules
- Large uploads are split with ffmpeg and transcribed segment by segment
- Stale working files are swept in the background
"""

import warnings
from contextlib import asynccontextmanager
from pathlib import Path

# Suppress expected warnings at startup
warnings.filterwarnings("ignore", message=".*protected namespace.*", category=UserWarning)
warnings.filterwarnings("ignore", message=".*ffmpeg.*", category=RuntimeWarning)
warnings.filterwarnings("ignore", message=".*avconv.*", category=RuntimeWarning)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.dependencies import validate_dependencies
from core.errors import MissingDependencyError
from core.logger import logger
from internal.api.routes.health_routes import create_health_routes
from internal.api.routes.transcribe_routes import router as transcribe_router
from internal.api.routes.transcription_routes import router as transcription_router
from services.cleanup import CleanupScheduler


# Lifespan context manager
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan - startup and shutdown.
    Prepares working directories and runs the cleanup sweep in the background.
    """
    try:
        settings = get_settings()
        logger.info(
            f"========== Starting {settings.app_name} v{settings.app_version} API service =========="
        )
        logger.info(f"Environment: {settings.environment}")
        logger.info(f"Debug mode: {settings.debug}")
        logger.info(f"API: {settings.api_host}:{settings.api_port}")

        # Working directories
        for directory in (settings.upload_dir, settings.segments_dir, settings.transcriptions_dir):
            Path(directory).mkdir(parents=True, exist_ok=True)
        logger.info("Working directories ready")

        # Small files do not need ffmpeg, so a missing binary is not fatal here
        try:
            validate_dependencies()
        except MissingDependencyError as e:
            logger.warning(f"Large files will fail until this is fixed: {e}")

        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY is not set, transcription requests will be rejected")

        # Cleanup sweep
        cleanup_scheduler = CleanupScheduler()
        cleanup_scheduler.start()
        app.state.cleanup_scheduler = cleanup_scheduler

        logger.info(
            f"========== {settings.app_name} API service started successfully =========="
        )

        yield

        # Shutdown sequence
        logger.info("========== Shutting down API service ==========")

        if hasattr(app.state, "cleanup_scheduler"):
            app.state.cleanup_scheduler.stop()

        logger.info("========== API service stopped successfully ==========")

    except Exception as e:
        logger.error(f"Fatal error in application lifespan: {e}")
        logger.exception("Lifespan error details:")
        raise


def create_app() -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.
    Includes comprehensive logging and error handling.

    Returns:
        FastAPI: Configured application instance
    """
    try:
        logger.info("Creating FastAPI application...")
        settings = get_settings()

        # OpenAPI metadata
        description = f"""
## Chunked Transcribe API

Transcribes audio files of any length through a speech-to-text service that only
accepts files up to {settings.transcription_limit_mb}MB.

### Key Features

* **Audio Upload** - Upload audio files for transcription (MP3, WAV, M4A, OGG, FLAC)
* **Segmented Processing** - Large files are split into segments with ffmpeg
* **Concurrent Transcription** - Segments are transcribed while splitting is still running
* **Streamed Progress** - Large files report progress as a stream of JSON events
* **Saved Transcripts** - Every transcript is saved and can be listed and downloaded

### Processing Flow

1. **Upload** - Upload audio via `POST /transcribe` (multipart field `audio`)
2. **Small files** - Transcribed in one request, answered with JSON
3. **Large files** - Probed, split, repaired and transcribed segment by segment
4. **Retrieve** - List saved transcripts via `/api/transcriptions`
        """

        tags_metadata = [
            {
                "name": "Transcription",
                "description": "Upload audio files and receive the transcript, or a progress stream for large files.",
            },
            {
                "name": "Transcriptions",
                "description": "Saved transcripts, newest first.",
            },
            {
                "name": "Health",
                "description": "Health check endpoints for monitoring API status and dependencies (ffmpeg, ffprobe).",
            },
        ]

        # Create FastAPI application
        logger.debug("Configuring FastAPI instance...")
        app = FastAPI(
            title=settings.app_name,
            version=settings.app_version,
            description=description,
            lifespan=lifespan,
            openapi_tags=tags_metadata,
            docs_url="/docs",
            redoc_url="/redoc",
            openapi_url="/openapi.json",
        )
        logger.debug("FastAPI instance configured")

        # Add CORS middleware
        logger.debug("Adding CORS middleware...")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],  # Configure appropriately for production
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logger.debug("CORS middleware added")

        # Include all API routes
        logger.debug("Including API routes...")

        app.include_router(transcribe_router)
        logger.info("✅ Transcribe routes registered")

        app.include_router(transcription_router)
        logger.info("✅ Transcription routes registered")

        # Health routes (no prefix - uses root "/" and "/health")
        health_router = create_health_routes(app)
        app.include_router(health_router)
        logger.info("✅ Health routes registered")

        logger.info("FastAPI application created successfully")
        return app

    except Exception as e:
        logger.error(f"Failed to create FastAPI application: {e}")
        logger.exception("Application creation error details:")
        raise


# Create application instance
try:
    logger.info("Initializing Chunked Transcribe API...")
    app = create_app()
    logger.info("Application instance created successfully")
except Exception as e:
    logger.error(f"Failed to create application instance: {e}")
    logger.exception("Startup error details:")
    raise


# Run with: uvicorn cmd.api.main:app --host 0.0.0.0 --port 8000 --reload
if __name__ == "__main__":
    import uvicorn
    import sys
    import os

    try:
        settings = get_settings()

        logger.info("========== Starting Uvicorn Server ==========")
        logger.info(f"Host: {settings.api_host}")
        logger.info(f"Port: {settings.api_port}")
        logger.info(f"Reload: {settings.api_reload}")
        logger.info(f"Workers: {settings.api_workers}")

        # uvicorn's reload subprocess imports the app by path and needs the project root
        project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
        if project_root not in sys.path:
            sys.path.insert(0, project_root)

        current_pythonpath = os.environ.get("PYTHONPATH", "")
        if project_root not in current_pythonpath:
            new_pythonpath = f"{project_root}:{current_pythonpath}" if current_pythonpath else project_root
            os.environ["PYTHONPATH"] = new_pythonpath

        if settings.api_reload:
            uvicorn.run(
                "cmd.api.main:app",
                host=settings.api_host,
                port=settings.api_port,
                reload=True,
                log_level="info" if settings.debug else "warning",
            )
        else:
            uvicorn.run(
                app,
                host=settings.api_host,
                port=settings.api_port,
                reload=False,
                log_level="info" if settings.debug else "warning",
            )

    except Exception as e:
        logger.error(f"Failed to start Uvicorn server: {e}")
        logger.exception("Uvicorn startup error details:")
        raise
