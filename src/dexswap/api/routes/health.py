"""Health check endpoints."""

from fastapi import APIRouter, Request

from dexswap import __version__

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "dexswap"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with redacted configuration."""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "service": "dexswap",
        "version": __version__,
        "workflow_state": request.app.state.workflow.state.value,
        "config": settings.get_safe_dict(),
    }
