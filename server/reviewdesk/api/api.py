import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

# Create API router with prefix
router = APIRouter()

STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check():
    """
    Health check endpoint to verify the API is running
    """
    return JSONResponse(
        status_code=200,
        content={
            "ok": True,
            "service": "reviewdesk",
            "uptime": round(time.monotonic() - STARTED_AT, 3),
        },
    )
