from datetime import datetime, timezone

from fastapi import APIRouter

from blog_platform.schemas import HealthOut

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthOut)
async def health():
    return HealthOut(status="OK", timestamp=datetime.now(timezone.utc))
