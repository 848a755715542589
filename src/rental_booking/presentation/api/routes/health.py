"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ..config import Settings, get_settings

router = APIRouter()


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "storage": settings.storage_backend
    }


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Rental Booking Service API", "version": "0.1.0"}
