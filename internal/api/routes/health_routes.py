"""
Health Check API Routes.
"""

from fastapi import APIRouter

from internal.api.schemas import HealthResponse
from internal.api.schemas.common_schemas import StandardResponse
from internal.api.utils import success_response
from core import check_ffmpeg, get_settings


def create_health_routes(app) -> APIRouter:
    """
    Factory function to create health routes.

    Args:
        app: FastAPI application instance

    Returns:
        APIRouter: Configured router with health endpoints
    """
    router = APIRouter(tags=["Health"])

    @router.get(
        "/",
        response_model=StandardResponse,
        summary="Root Endpoint",
        description="Get basic API information",
        operation_id="get_root",
        responses={
            200: {
                "description": "API information",
                "content": {
                    "application/json": {
                        "example": {
                            "error_code": 0,
                            "message": "API service is running",
                            "data": {
                                "service": "Chunked Transcribe",
                                "version": "1.0.0",
                                "status": "running",
                            },
                        }
                    }
                },
            }
        },
    )
    async def root():
        """
        Root endpoint.

        Returns basic information about the API service including
        service name, version, and current status.

        **Returns:**
        Service metadata and status information.
        """
        settings = get_settings()
        return success_response(
            message="API service is running",
            data={
                "service": settings.app_name,
                "version": settings.app_version,
                "status": "running",
            },
        )

    @router.get(
        "/health",
        response_model=StandardResponse,
        summary="Health Check",
        description="Check service health",
        operation_id="health_check",
        responses={
            200: {
                "description": "Health status",
                "content": {
                    "application/json": {
                        "examples": {
                            "healthy": {
                                "summary": "Service operational",
                                "value": {
                                    "error_code": 0,
                                    "message": "Service is healthy",
                                    "data": {
                                        "status": "healthy",
                                        "service": "Chunked Transcribe",
                                        "version": "1.0.0",
                                        "ffmpeg": True,
                                        "ffprobe": True,
                                        "api_key_configured": True,
                                    },
                                },
                            },
                        }
                    }
                },
            }
        },
    )
    async def health_check():
        """
        Health check endpoint.

        **Returns:**
        Health status object indicating:
        - Overall health status (healthy, or degraded when ffmpeg/ffprobe are missing)
        - Service name and version
        - ffmpeg/ffprobe availability and whether an API key is configured
        """
        settings = get_settings()

        binaries = check_ffmpeg()

        health_data = HealthResponse(
            status="healthy" if all(binaries.values()) else "degraded",
            service=settings.app_name,
            version=settings.app_version,
            ffmpeg=binaries["ffmpeg"],
            ffprobe=binaries["ffprobe"],
            api_key_configured=bool(settings.openai_api_key),
        )

        # Convert Pydantic model to dict for response
        health_dict = health_data.model_dump()

        return success_response(message=f"Service is {health_data.status}", data=health_dict)

    return router
