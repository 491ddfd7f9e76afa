"""Health check route."""

from fastapi import APIRouter

from teammind.models.schemas import HealthResponse

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "message": "TeamMind API is running"}
