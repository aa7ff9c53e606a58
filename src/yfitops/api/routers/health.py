"""Health check endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from yfitops import __version__

router = APIRouter(prefix="/health", tags=["Health"])


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive")
    timestamp: str = Field(description="ISO timestamp")
    version: str = Field(default=__version__, description="Application version")


@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Returns 200 while the process is running. No dependency checks."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())
